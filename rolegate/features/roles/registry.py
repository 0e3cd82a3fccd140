"""
Role registry.

Roles are runtime data validated against the catalog: a role can only grant
permissions that its profile allows, and its value is unique per
(organization, profile).
"""
import threading
from typing import Iterable, Optional, Protocol, Union

from ulid import ULID

from rolegate.core.errors import (
    DuplicateValueError,
    InvalidPermissionForProfileError,
    NotFoundError,
    OrganizationInUseError,
    RoleInUseError,
)
from rolegate.features.catalog.catalog import Catalog, ProfileRef
from rolegate.features.catalog.entities import Permission, Profile
from rolegate.features.roles.entities import Organization, Role
from rolegate.utils import get_logger


log = get_logger(__name__)

PermissionRef = Union[Permission, str]


class RoleHolders(Protocol):
    """What the registry needs to know about memberships when deleting roles."""

    def holders_of(self, role: Role) -> frozenset: ...

    def revoke_from_all(self, role: Role) -> list: ...


class RoleRegistry:
    """
    In-memory registry of organizations and roles.

    Structural changes (create, delete) are serialized by ``lock``; the
    membership store takes the same lock before a user's lock when it
    assigns a role, so a role cannot disappear mid-assignment.
    """

    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        self.lock = threading.RLock()
        self._organizations: dict[str, Organization] = {}
        self._roles: dict[str, Role] = {}
        self._values: dict[tuple[str, str, str], str] = {}
        self._holders: Optional[RoleHolders] = None

    def bind_holders(self, holders: RoleHolders) -> None:
        self._holders = holders

    # Organizations

    def add_organization(self, organization: Organization) -> Organization:
        with self.lock:
            existing = self._organizations.get(organization.id)
            if existing is not None:
                return existing
            self._organizations[organization.id] = organization
            log.info("Registered organization %s", organization.id)
            return organization

    def remove_organization(self, organization: Organization) -> None:
        """Forget an organization that scopes no role."""
        with self.lock:
            scoped = sum(1 for r in self._roles.values() if r.organization == organization)
            if scoped:
                raise OrganizationInUseError(organization.id, scoped)
            self._organizations.pop(organization.id, None)

    def organization(self, organization_id: str) -> Organization:
        try:
            return self._organizations[organization_id]
        except KeyError:
            raise NotFoundError("Organization", organization_id) from None

    def organizations(self) -> list[Organization]:
        return list(self._organizations.values())

    # Roles

    def role(self, role_id: str) -> Role:
        try:
            return self._roles[role_id]
        except KeyError:
            raise NotFoundError("Role", role_id) from None

    def contains(self, role: Role) -> bool:
        return self._roles.get(role.id) is role

    def roles(
        self,
        organization: Optional[Organization] = None,
        profile: Optional[Profile] = None,
    ) -> list[Role]:
        roles = list(self._roles.values())
        if organization is not None:
            roles = [r for r in roles if r.organization == organization]
        if profile is not None:
            roles = [r for r in roles if r.profile == profile]
        return roles

    def _validated_permissions(
        self, profile: Profile, permissions: Iterable[PermissionRef]
    ) -> frozenset[Permission]:
        resolved = set()
        invalid = []
        for ref in permissions:
            key = ref if isinstance(ref, str) else ref.key
            try:
                permission = self.catalog.permission(key)
            except NotFoundError:
                invalid.append(key)
                continue
            if not self.catalog.is_permission_valid_for_profile(permission, profile):
                invalid.append(key)
                continue
            resolved.add(permission)
        if invalid:
            raise InvalidPermissionForProfileError(profile.value, invalid)
        return frozenset(resolved)

    def create_role(
        self,
        profile: ProfileRef,
        organization: Union[Organization, str],
        label: str,
        value: str,
        permissions: Iterable[PermissionRef] = (),
        role_id: Optional[str] = None,
    ) -> Role:
        """
        Create a role.

        Raises:
            NotFoundError: unknown profile or organization
            InvalidPermissionForProfileError: a permission is not assignable under the profile
            DuplicateValueError: (organization, profile, value) is already taken
        """
        profile = self.catalog.profile(profile if isinstance(profile, str) else profile.value)
        org_id = organization if isinstance(organization, str) else organization.id
        granted = self._validated_permissions(profile, permissions)

        with self.lock:
            org = self.organization(org_id)
            slot = (org.id, profile.value, value)
            if slot in self._values:
                raise DuplicateValueError(org.id, profile.value, value)
            role = Role(
                id=role_id or str(ULID()),
                profile=profile,
                organization=org,
                label=label,
                value=value,
                permissions=granted,
            )
            self._roles[role.id] = role
            self._values[slot] = role.id

        log.info(
            "Created role %s (%s) for profile %s in org %s with %d permissions",
            role.id, value, profile.value, org.id, len(granted)
        )
        return role

    def update_role_permissions(self, role: Role, permissions: Iterable[PermissionRef]) -> Role:
        """
        Replace a role's permission set in one step.

        Raises:
            NotFoundError: the role is not registered
            InvalidPermissionForProfileError: a permission is not assignable under the profile
        """
        granted = self._validated_permissions(role.profile, permissions)
        with role.lock:
            if not self.contains(role):
                raise NotFoundError("Role", role.id)
            role.permissions = granted
        log.info("Replaced permissions of role %s: %s", role.id, sorted(p.key for p in granted))
        return role

    def update_role_label(self, role: Role, label: str) -> Role:
        with role.lock:
            if not self.contains(role):
                raise NotFoundError("Role", role.id)
            role.label = label
        return role

    def _remove(self, role: Role) -> None:
        del self._roles[role.id]
        self._values.pop((role.organization.id, role.profile.value, role.value), None)

    def restore(self, role: Role) -> None:
        """Re-register a deleted role object, e.g. when persisting the delete failed."""
        with self.lock:
            self._roles[role.id] = role
            self._values[(role.organization.id, role.profile.value, role.value)] = role.id

    def delete_role(self, role: Role) -> None:
        """
        Delete a role nobody holds.

        Raises:
            NotFoundError: the role is not registered
            RoleInUseError: at least one user still holds the role
        """
        with self.lock:
            if not self.contains(role):
                raise NotFoundError("Role", role.id)
            holders = self._holders.holders_of(role) if self._holders else frozenset()
            if holders:
                raise RoleInUseError(role.id, len(holders))
            self._remove(role)
        log.info("Deleted role %s", role.id)

    def delete_role_cascading(self, role: Role) -> list:
        """
        Revoke a role from every holder, then delete it.

        Revocations follow the membership store's rules, so a holder losing
        their last role under their active profile has it cleared.

        Returns:
            The users the role was revoked from
        """
        with self.lock:
            if not self.contains(role):
                raise NotFoundError("Role", role.id)
            revoked = self._holders.revoke_from_all(role) if self._holders else []
            self._remove(role)
        log.info("Deleted role %s with cascade, revoked from %d user(s)", role.id, len(revoked))
        return revoked

    def discard_role(self, role: Role) -> list:
        """
        Drop a role whatever its state, e.g. when persisting its creation failed.

        Holders are revoked first. A role that is already gone is ignored.

        Returns:
            The users the role was revoked from
        """
        with self.lock:
            if not self.contains(role):
                return []
            revoked = self._holders.revoke_from_all(role) if self._holders else []
            self._remove(role)
        log.info("Discarded role %s, revoked from %d user(s)", role.id, len(revoked))
        return revoked
