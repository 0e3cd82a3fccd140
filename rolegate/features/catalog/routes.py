"""
Catalog API routes (read-only).
"""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends

from rolegate.features.catalog.schemas import (
    ObjectTypeResponse,
    OperationResponse,
    PermissionResponse,
    ProfileResponse,
    ProfileWithPermissions,
)
from rolegate.features.memberships.dependencies import get_current_user
from rolegate.features.memberships.entities import User
from rolegate.state import AuthorizationCore, get_core


router = APIRouter()


@router.get("/operations", response_model=List[OperationResponse])
async def list_operations(
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    return [OperationResponse.from_entity(op) for op in core.catalog.operations]


@router.get("/objects", response_model=List[ObjectTypeResponse])
async def list_objects(
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    return [ObjectTypeResponse.from_entity(obj) for obj in core.catalog.objects]


@router.get("/permissions", response_model=List[PermissionResponse])
async def list_permissions(
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)],
    operation: Optional[str] = None,
    object_type: Optional[str] = None,
):
    """List permissions with optional filtering."""
    permissions = core.catalog.permissions
    if operation:
        permissions = [p for p in permissions if p.operation.value == operation]
    if object_type:
        permissions = [p for p in permissions if p.object_type.value == object_type]
    return [PermissionResponse.from_entity(p) for p in permissions]


@router.get("/profiles", response_model=List[ProfileResponse])
async def list_profiles(
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    return [ProfileResponse.from_entity(p) for p in core.catalog.profiles]


@router.get("/profiles/{profile}", response_model=ProfileWithPermissions)
async def get_profile(
    profile: str,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    """Get a profile and the permissions assignable under it."""
    entity = core.catalog.profile(profile)
    permissions = sorted(core.catalog.permissions_for_profile(entity), key=lambda p: p.key)
    return ProfileWithPermissions(
        value=entity.value,
        label=entity.label,
        permissions=[PermissionResponse.from_entity(p) for p in permissions],
    )
