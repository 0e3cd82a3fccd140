"""
Organization and role administration routes.

Every mutation is applied to the in-memory registry first (which validates
it), then persisted together with an audit entry.
"""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from ulid import ULID

from rolegate.core.database.engine import get_db
from rolegate.features.audit.service import create_audit_log
from rolegate.features.evaluator.dependencies import ensure_can_administer
from rolegate.features.memberships.dependencies import get_current_admin_user, get_current_user
from rolegate.features.memberships.entities import User
from rolegate.features.memberships.repository import (
    delete_user_roles_for_role,
    save_active_profile,
)
from rolegate.features.roles.dependencies import get_administered_role
from rolegate.features.roles.entities import Organization
from rolegate.features.roles.repository import delete_role_row, save_organization, save_role
from rolegate.features.roles.schemas import (
    CascadeDeleteResponse,
    OrganizationCreate,
    OrganizationResponse,
    RoleCreate,
    RolePermissionsUpdate,
    RoleResponse,
    RoleUpdate,
)
from rolegate.state import AuthorizationCore, get_core, persist_or_revert
from rolegate.utils import get_logger


log = get_logger(__name__)
router = APIRouter()
organization_router = APIRouter()


# ============================================================================
# Organization Routes
# ============================================================================

@organization_router.post("", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    payload: OrganizationCreate,
    request: Request,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    admin: Annotated[User, Depends(get_current_admin_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Register an organization (admin only)."""
    organization = core.registry.add_organization(Organization(str(ULID()), payload.name))

    async with persist_or_revert(db, lambda: core.registry.remove_organization(organization)):
        await save_organization(db, organization)
        await create_audit_log(
            db, admin.id, "create", "organization",
            resource_id=organization.id, organization_id=organization.id,
            details={"name": organization.name}, request=request,
        )
    return OrganizationResponse.from_entity(organization)


@organization_router.get("", response_model=List[OrganizationResponse])
async def list_organizations(
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    """List organizations: all for admins, the user's own otherwise."""
    if current_user.is_admin:
        organizations = core.registry.organizations()
    else:
        organizations = core.memberships.organizations_for(current_user)
    return [OrganizationResponse.from_entity(o) for o in sorted(organizations, key=lambda o: o.id)]


# ============================================================================
# Role Routes
# ============================================================================

@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    payload: RoleCreate,
    request: Request,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create a role in an organization."""
    ensure_can_administer(core, current_user, "create", "role", payload.organization_id)
    role = core.registry.create_role(
        payload.profile,
        payload.organization_id,
        payload.label,
        payload.value,
        payload.permissions,
    )

    async with persist_or_revert(db, lambda: core.registry.discard_role(role)):
        await save_role(db, role)
        await create_audit_log(
            db, current_user.id, "create", "role",
            resource_id=role.id, organization_id=role.organization.id,
            details=payload.model_dump(), request=request,
        )
    return RoleResponse.from_entity(role)


@router.get("", response_model=List[RoleResponse])
async def list_roles(
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)],
    organization_id: Optional[str] = None,
    profile: Optional[str] = None,
):
    """List roles, optionally filtered by organization and profile."""
    if organization_id:
        ensure_can_administer(core, current_user, "read", "role", organization_id)
    organization = core.registry.organization(organization_id) if organization_id else None
    profile_entity = core.catalog.profile(profile) if profile else None
    roles = core.registry.roles(organization, profile_entity)
    if not current_user.is_admin and organization is None:
        roles = [r for r in roles if core.evaluator.can(current_user, "read", "role", r.organization)]
    return [RoleResponse.from_entity(r) for r in sorted(roles, key=lambda r: r.id)]


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: str,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)]
):
    """Get a role with its permissions."""
    role = get_administered_role(core, current_user, role_id, "read")
    return RoleResponse.from_entity(role)


@router.put("/{role_id}/permissions", response_model=RoleResponse)
async def replace_role_permissions(
    role_id: str,
    payload: RolePermissionsUpdate,
    request: Request,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Replace a role's permission set."""
    role = get_administered_role(core, current_user, role_id, "edit")
    previous = role.permissions
    core.registry.update_role_permissions(role, payload.permissions)

    async with persist_or_revert(db, lambda: core.registry.update_role_permissions(role, previous)):
        await save_role(db, role)
        await create_audit_log(
            db, current_user.id, "update", "role",
            resource_id=role.id, organization_id=role.organization.id,
            details={
                "previous": sorted(p.key for p in previous),
                "permissions": sorted(p.key for p in role.permissions),
            },
            request=request,
        )
    return RoleResponse.from_entity(role)


@router.patch("/{role_id}", response_model=RoleResponse)
async def relabel_role(
    role_id: str,
    payload: RoleUpdate,
    request: Request,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Change a role's display label."""
    role = get_administered_role(core, current_user, role_id, "edit")
    previous = role.label
    core.registry.update_role_label(role, payload.label)

    async with persist_or_revert(db, lambda: core.registry.update_role_label(role, previous)):
        await save_role(db, role)
        await create_audit_log(
            db, current_user.id, "update", "role",
            resource_id=role.id, organization_id=role.organization.id,
            details={"label": payload.label}, request=request,
        )
    return RoleResponse.from_entity(role)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role_id: str,
    request: Request,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Delete a role that nobody holds (409 otherwise)."""
    role = get_administered_role(core, current_user, role_id, "delete")
    core.registry.delete_role(role)

    async with persist_or_revert(db, lambda: core.registry.restore(role)):
        await delete_role_row(db, role.id)
        await create_audit_log(
            db, current_user.id, "delete", "role",
            resource_id=role.id, organization_id=role.organization.id,
            details={"value": role.value, "profile": role.profile.value}, request=request,
        )
    return None


@router.delete("/{role_id}/cascade", response_model=CascadeDeleteResponse)
async def delete_role_cascading(
    role_id: str,
    request: Request,
    core: Annotated[AuthorizationCore, Depends(get_core)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Revoke a role from all its holders, then delete it."""
    role = get_administered_role(core, current_user, role_id, "delete")
    previous_profiles = {u.id: u.active_profile for u in core.memberships.holders_of(role)}
    revoked = core.registry.delete_role_cascading(role)
    cleared = [u for u in revoked if previous_profiles.get(u.id) and u.active_profile is None]

    def revert():
        core.registry.restore(role)
        for user in revoked:
            core.memberships.assign_role(user, role)
        for user in cleared:
            core.profiles.restore_profile(user, previous_profiles[user.id])

    async with persist_or_revert(db, revert):
        await delete_user_roles_for_role(db, role.id)
        for user in cleared:
            await save_active_profile(db, user)
        await delete_role_row(db, role.id)
        await create_audit_log(
            db, current_user.id, "delete", "role",
            resource_id=role.id, organization_id=role.organization.id,
            details={
                "value": role.value,
                "profile": role.profile.value,
                "cascade": True,
                "revoked_user_ids": sorted(u.id for u in revoked),
            },
            request=request,
        )
    return CascadeDeleteResponse(
        role_id=role.id,
        revoked_user_ids=sorted(u.id for u in revoked),
        cleared_active_profile_user_ids=sorted(u.id for u in cleared),
    )
