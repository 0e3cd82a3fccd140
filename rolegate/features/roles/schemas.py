"""
Pydantic schemas for organizations and roles.
"""
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from rolegate.features.roles.entities import Organization, Role


# ============================================================================
# Organization Schemas
# ============================================================================

class OrganizationCreate(BaseModel):
    name: str = Field("", max_length=255, description="Display name")


class OrganizationResponse(BaseModel):
    id: str
    name: str

    @classmethod
    def from_entity(cls, organization: Organization) -> "OrganizationResponse":
        return cls(id=organization.id, name=organization.name)


# ============================================================================
# Role Schemas
# ============================================================================

class RoleCreate(BaseModel):
    """Schema for creating a new role."""
    profile: str = Field(..., description="Profile value the role belongs to")
    organization_id: str = Field(..., description="Organization ID")
    label: str = Field(..., min_length=1, max_length=255, description="Display label")
    value: str = Field(..., min_length=1, max_length=100, description="Slug, unique per organization and profile")
    permissions: List[str] = Field(default_factory=list, description="Permission keys, e.g. 'read:invoice'")

    @field_validator('value')
    @classmethod
    def value_slug(cls, v: str) -> str:
        """Validate role value format."""
        if not v.replace('_', '').replace('-', '').isalnum():
            raise ValueError('Role value must contain only alphanumeric characters, underscores, and hyphens')
        return v.lower()


class RoleUpdate(BaseModel):
    label: str = Field(..., min_length=1, max_length=255)


class RolePermissionsUpdate(BaseModel):
    """Replaces the whole permission set."""
    permissions: List[str] = Field(..., description="Permission keys")


class RoleResponse(BaseModel):
    id: str
    profile: str
    organization_id: str
    label: str
    value: str
    permissions: List[str] = []

    @classmethod
    def from_entity(cls, role: Role) -> "RoleResponse":
        return cls(
            id=role.id,
            profile=role.profile.value,
            organization_id=role.organization.id,
            label=role.label,
            value=role.value,
            permissions=sorted(p.key for p in role.permissions),
        )


class CascadeDeleteResponse(BaseModel):
    role_id: str
    revoked_user_ids: List[str] = []
    cleared_active_profile_user_ids: List[str] = []
