"""
Permission check routes for the acting user.
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Request

from rolegate.core import config
from rolegate.core.limiter import limiter
from rolegate.features.evaluator.schemas import (
    PermissionCheckRequest,
    PermissionCheckResponse,
    UserPermissionsResponse,
)
from rolegate.features.memberships.dependencies import get_current_user
from rolegate.features.memberships.entities import User
from rolegate.state import AuthorizationCore, get_core


router = APIRouter()


@router.post("/can", response_model=PermissionCheckResponse)
@limiter.limit(config.CHECK_RATE_LIMIT)
async def check_permission(
    request: Request,
    check: PermissionCheckRequest,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    """Check a permission under the acting user's active profile."""
    allowed = core.evaluator.can(
        current_user, check.operation, check.object_type, check.organization_id
    )
    return PermissionCheckResponse(allowed=allowed)


@router.get("/permissions", response_model=UserPermissionsResponse)
async def list_my_permissions(
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)],
    organization_id: Optional[str] = None,
):
    """Union of the permissions granted under the active profile."""
    permissions = core.evaluator.permissions_for(current_user, organization_id)
    active = current_user.active_profile
    return UserPermissionsResponse(
        user_id=current_user.id,
        organization_id=organization_id,
        active_profile=active.value if active else None,
        permissions=sorted(p.key for p in permissions),
    )
