"""
User and role assignment routes.
"""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from ulid import ULID

from rolegate.core.database.engine import get_db
from rolegate.core.errors import NotFoundError
from rolegate.features.audit.service import create_audit_log
from rolegate.features.catalog.schemas import ProfileResponse
from rolegate.features.evaluator.dependencies import deny
from rolegate.features.memberships.dependencies import get_current_admin_user, get_current_user
from rolegate.features.memberships.entities import User
from rolegate.features.memberships.repository import (
    delete_user_role,
    save_active_profile,
    save_user,
    save_user_role,
)
from rolegate.features.memberships.schemas import AssignmentResponse, UserCreate, UserResponse
from rolegate.features.roles.dependencies import get_administered_role
from rolegate.features.roles.schemas import OrganizationResponse, RoleResponse
from rolegate.state import AuthorizationCore, get_core, persist_or_revert


router = APIRouter()


def _visible_user(core: AuthorizationCore, current_user: User, user_id: str) -> User:
    """Users can see themselves; system admins can see anyone."""
    if user_id == current_user.id:
        return current_user
    if not current_user.is_admin:
        raise deny()
    return core.memberships.user(user_id)


def _target_user(core: AuthorizationCore, current_user: User, user_id: str) -> User:
    try:
        return core.memberships.user(user_id)
    except NotFoundError:
        if current_user.is_admin:
            raise
        raise deny()


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    request: Request,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    admin: Annotated[User, Depends(get_current_admin_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Register a user (admin only). New users have no roles and no active profile."""
    user = core.memberships.add_user(
        User(id=str(ULID()), name=payload.name, is_admin=payload.is_admin)
    )

    async with persist_or_revert(db, lambda: core.memberships.remove_user(user)):
        await save_user(db, user)
        await create_audit_log(
            db, admin.id, "create", "user",
            resource_id=user.id, details=payload.model_dump(), request=request,
        )
    return UserResponse.from_entity(user)


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)]
):
    return UserResponse.from_entity(current_user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    return UserResponse.from_entity(_visible_user(core, current_user, user_id))


@router.get("/{user_id}/roles", response_model=List[RoleResponse])
async def list_user_roles(
    user_id: str,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)],
    organization_id: Optional[str] = None,
):
    """Roles held by a user, optionally within one organization."""
    user = _visible_user(core, current_user, user_id)
    roles = core.memberships.roles_for(user, organization_id)
    return [RoleResponse.from_entity(r) for r in sorted(roles, key=lambda r: r.id)]


@router.get("/{user_id}/profiles", response_model=List[ProfileResponse])
async def list_user_profiles(
    user_id: str,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    """Distinct profiles across all of the user's roles."""
    user = _visible_user(core, current_user, user_id)
    profiles = core.memberships.profiles_for(user)
    return [ProfileResponse.from_entity(p) for p in sorted(profiles, key=lambda p: p.value)]


@router.get("/{user_id}/organizations", response_model=List[OrganizationResponse])
async def list_user_organizations(
    user_id: str,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    """Distinct organizations across all of the user's roles."""
    user = _visible_user(core, current_user, user_id)
    organizations = core.memberships.organizations_for(user)
    return [OrganizationResponse.from_entity(o) for o in sorted(organizations, key=lambda o: o.id)]


@router.put("/{user_id}/roles/{role_id}", response_model=AssignmentResponse)
async def assign_role(
    user_id: str,
    role_id: str,
    request: Request,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Assign a role to a user. Idempotent; never changes the active profile."""
    role = get_administered_role(core, current_user, role_id, "create", "user_role")
    user = _target_user(core, current_user, user_id)
    changed = core.memberships.assign_role(user, role)

    if changed:
        async with persist_or_revert(db, lambda: core.memberships.revoke_role(user, role)):
            await save_user_role(db, user.id, role.id, assigned_by_id=current_user.id)
            await create_audit_log(
                db, current_user.id, "assign", "user_role",
                resource_id=role.id, organization_id=role.organization.id,
                details={"user_id": user.id, "role_id": role.id}, request=request,
            )
    return AssignmentResponse(
        user_id=user.id,
        role_id=role.id,
        changed=changed,
        active_profile=user.active_profile.value if user.active_profile else None,
    )


@router.delete("/{user_id}/roles/{role_id}", response_model=AssignmentResponse)
async def revoke_role(
    user_id: str,
    role_id: str,
    request: Request,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Revoke a role from a user. Idempotent; may clear the active profile."""
    role = get_administered_role(core, current_user, role_id, "delete", "user_role")
    user = _target_user(core, current_user, user_id)
    previous_profile = user.active_profile
    changed = core.memberships.revoke_role(user, role)
    cleared = previous_profile is not None and user.active_profile is None

    def revert():
        # the role may have been deleted meanwhile; the profile is restored regardless
        try:
            core.memberships.assign_role(user, role)
        finally:
            if cleared:
                core.profiles.restore_profile(user, previous_profile)

    if changed:
        async with persist_or_revert(db, revert):
            await delete_user_role(db, user.id, role.id)
            if cleared:
                await save_active_profile(db, user)
            await create_audit_log(
                db, current_user.id, "revoke", "user_role",
                resource_id=role.id, organization_id=role.organization.id,
                details={
                    "user_id": user.id,
                    "role_id": role.id,
                    "active_profile_cleared": cleared,
                },
                request=request,
            )
    return AssignmentResponse(
        user_id=user.id,
        role_id=role.id,
        changed=changed,
        active_profile=user.active_profile.value if user.active_profile else None,
        active_profile_cleared=cleared,
    )
