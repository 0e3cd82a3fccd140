"""
Authorization guards for routes.

A denied check is an unconditional 403 with a generic message: nothing
about which roles or permissions exist is revealed.
"""
from typing import Annotated, Optional
from fastapi import Depends, HTTPException, Query, status

from rolegate.features.memberships.dependencies import get_current_user
from rolegate.features.memberships.entities import User
from rolegate.state import AuthorizationCore, get_core
from rolegate.utils import get_logger


log = get_logger(__name__)

PERMISSION_DENIED = "Permission denied"


def deny() -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=PERMISSION_DENIED)


def require_permission(operation: str, object_type: str):
    """
    FastAPI dependency requiring a permission of the acting user.

    The optional ``organization_id`` query parameter narrows the check to one
    organization; without it every organization counts.

    Usage:
        @router.post("/invoices")
        async def create_invoice(
            user: User = Depends(require_permission("create", "invoice"))
        ):
            ...
    """
    async def permission_dependency(
        core: Annotated[AuthorizationCore, Depends(get_core)],
        current_user: Annotated[User, Depends(get_current_user)],
        organization_id: Annotated[Optional[str], Query()] = None,
    ) -> User:
        if not core.evaluator.can(current_user, operation, object_type, organization_id):
            raise deny()
        return current_user

    return permission_dependency


def ensure_can_administer(
    core: AuthorizationCore,
    user: User,
    operation: str,
    object_type: str,
    organization_id: str,
) -> None:
    """
    Guard for administrative routes.

    System admins pass; anyone else needs the permission within the target
    organization under their active profile.

    Raises:
        HTTPException: 403 otherwise
    """
    if user.is_admin:
        return
    if not core.evaluator.can(user, operation, object_type, organization_id):
        log.info(
            "User %s refused %s:%s in org %s", user.id, operation, object_type, organization_id
        )
        raise deny()
