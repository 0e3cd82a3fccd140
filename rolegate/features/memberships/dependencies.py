"""
FastAPI dependencies for identifying the acting user.

Authentication happens upstream; the gateway forwards the authenticated
user id in ``config.USER_ID_HEADER``.
"""
from typing import Annotated
from fastapi import Depends, HTTPException, Request, status

from rolegate.core import config
from rolegate.core.errors import NotFoundError
from rolegate.features.memberships.entities import User
from rolegate.state import AuthorizationCore, get_core


async def get_current_user(
    request: Request,
    core: Annotated[AuthorizationCore, Depends(get_core)]
) -> User:
    """
    Resolve the acting user from the user id header.

    Usage:
        @router.get("/me")
        async def get_me(user: User = Depends(get_current_user)):
            return user
    """
    user_id = request.headers.get(config.USER_ID_HEADER)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity",
        )
    try:
        return core.memberships.user(user_id)
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user",
        )


async def get_current_admin_user(
    user: Annotated[User, Depends(get_current_user)]
) -> User:
    """Require system admin privileges."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return user


def get_user_id_header(request: Request) -> str:
    """
    Rate limiting key: the acting user, or the client address.
    Used with slowapi Limiter.
    """
    user_id = request.headers.get(config.USER_ID_HEADER)
    if user_id:
        return user_id
    return request.client.host if request.client else "anonymous"
