"""
Pydantic schemas for users and role assignments.
"""
from typing import Optional
from pydantic import BaseModel, Field

from rolegate.features.memberships.entities import User


class UserCreate(BaseModel):
    """Schema for registering a user (admin only)."""
    name: str = Field(..., min_length=1, max_length=255)
    is_admin: bool = Field(False, description="System admin: bypasses checks on admin routes")


class UserResponse(BaseModel):
    id: str
    name: str
    is_admin: bool
    active_profile: Optional[str] = None

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            is_admin=user.is_admin,
            active_profile=user.active_profile.value if user.active_profile else None,
        )


class AssignmentResponse(BaseModel):
    """Outcome of an assign or revoke."""
    user_id: str
    role_id: str
    changed: bool = Field(..., description="False when the call was a no-op")
    active_profile: Optional[str] = None
    active_profile_cleared: bool = False
