"""
Active profile routes for the acting user.

Used by the UI to decide where to navigate after login or a switch.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.database.engine import get_db
from rolegate.features.audit.service import create_audit_log
from rolegate.features.catalog.schemas import ProfileResponse
from rolegate.features.memberships.dependencies import get_current_user
from rolegate.features.memberships.entities import User
from rolegate.features.memberships.repository import save_active_profile
from rolegate.features.profiles.schemas import (
    ProfileCheckResponse,
    ProfileStateResponse,
    SwitchProfileRequest,
)
from rolegate.state import AuthorizationCore, get_core, persist_or_revert


router = APIRouter()


def _state_response(core: AuthorizationCore, user: User) -> ProfileStateResponse:
    state = core.profiles.state(user)
    available = sorted(core.profiles.available_profiles(user), key=lambda p: p.value)
    return ProfileStateResponse(
        status=state.status,
        active_profile=ProfileResponse.from_entity(state.profile) if state.profile else None,
        available_profiles=[ProfileResponse.from_entity(p) for p in available],
    )


@router.get("/profile", response_model=ProfileStateResponse)
async def get_profile_state(
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    return _state_response(core, current_user)


@router.get("/profile/{profile}", response_model=ProfileCheckResponse)
async def is_profile(
    profile: str,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    """Whether the acting user is currently acting as ``profile``."""
    return ProfileCheckResponse(
        profile=profile,
        active=core.evaluator.is_profile(current_user, profile),
    )


@router.post("/profile/switch", response_model=ProfileStateResponse)
async def switch_profile(
    payload: SwitchProfileRequest,
    request: Request,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Act as another profile; 403 unless the user holds a role in it."""
    previous = current_user.active_profile
    profile = core.profiles.switch_profile(current_user, payload.profile)

    async with persist_or_revert(db, lambda: core.profiles.restore_profile(current_user, previous)):
        await save_active_profile(db, current_user)
        await create_audit_log(
            db, current_user.id, "switch", "profile",
            resource_id=current_user.id,
            details={
                "from": previous.value if previous else None,
                "to": profile.value,
            },
            request=request,
        )
    return _state_response(core, current_user)
