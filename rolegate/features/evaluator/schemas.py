"""
Pydantic schemas for permission checks.
"""
from typing import List, Optional
from pydantic import BaseModel, Field


class PermissionCheckRequest(BaseModel):
    """Schema for checking if the acting user has a permission."""
    operation: str = Field(..., description="Operation, e.g. 'edit'")
    object_type: str = Field(..., description="Object, e.g. 'invoice_line_item'")
    organization_id: Optional[str] = Field(None, description="Narrow the check to one organization")


class PermissionCheckResponse(BaseModel):
    """A bare decision; denials carry no reason."""
    allowed: bool


class UserPermissionsResponse(BaseModel):
    """Everything the acting user may currently do."""
    user_id: str
    organization_id: Optional[str] = None
    active_profile: Optional[str] = None
    permissions: List[str] = []
