"""
Pydantic schemas for catalog listings.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from rolegate.features.catalog.entities import ObjectType, Operation, Permission, Profile


class OperationResponse(BaseModel):
    value: str
    label: str

    @classmethod
    def from_entity(cls, operation: Operation) -> "OperationResponse":
        return cls(value=operation.value, label=operation.label)


class ObjectTypeResponse(BaseModel):
    value: str
    label: str

    @classmethod
    def from_entity(cls, object_type: ObjectType) -> "ObjectTypeResponse":
        return cls(value=object_type.value, label=object_type.label)


class PermissionResponse(BaseModel):
    key: str = Field(..., description="'<operation>:<object>' key, e.g. 'read:invoice'")
    operation: str
    object_type: str
    description: Optional[str] = None

    @classmethod
    def from_entity(cls, permission: Permission) -> "PermissionResponse":
        return cls(
            key=permission.key,
            operation=permission.operation.value,
            object_type=permission.object_type.value,
            description=permission.description or None,
        )


class ProfileResponse(BaseModel):
    value: str
    label: str

    @classmethod
    def from_entity(cls, profile: Profile) -> "ProfileResponse":
        return cls(value=profile.value, label=profile.label)


class ProfileWithPermissions(ProfileResponse):
    """Profile with the permissions its roles may grant."""
    permissions: List[PermissionResponse] = []
