"""
Membership store: which users hold which roles.

Each user's role set is a frozenset replaced on every change, so readers
(the evaluator) never lock. Writers for one user are serialized by the
user's lock.
"""
import threading
from typing import Optional, Union

from rolegate.core.errors import NotFoundError, UserHasRolesError
from rolegate.features.catalog.entities import Profile
from rolegate.features.memberships.entities import User
from rolegate.features.roles.entities import Organization, Role
from rolegate.features.roles.registry import RoleRegistry
from rolegate.utils import get_logger


log = get_logger(__name__)

OrganizationRef = Union[Organization, str]


class MembershipStore:
    def __init__(self, registry: RoleRegistry):
        self.registry = registry
        self._users: dict[str, User] = {}
        self._memberships: dict[str, frozenset[Role]] = {}
        self._users_lock = threading.Lock()
        registry.bind_holders(self)

    # Users

    def add_user(self, user: User) -> User:
        with self._users_lock:
            existing = self._users.get(user.id)
            if existing is not None:
                return existing
            self._users[user.id] = user
            self._memberships[user.id] = frozenset()
        log.info("Registered user %s", user.id)
        return user

    def remove_user(self, user: User) -> None:
        """Forget a user that holds no role."""
        with self._users_lock, user.lock:
            held = self._memberships.get(user.id)
            if held:
                raise UserHasRolesError(user.id, len(held))
            self._users.pop(user.id, None)
            self._memberships.pop(user.id, None)

    def user(self, user_id: str) -> User:
        try:
            return self._users[user_id]
        except KeyError:
            raise NotFoundError("User", user_id) from None

    def users(self) -> list[User]:
        return list(self._users.values())

    def _held(self, user: User) -> frozenset[Role]:
        try:
            return self._memberships[user.id]
        except KeyError:
            raise NotFoundError("User", user.id) from None

    # Assignments

    def assign_role(self, user: User, role: Role) -> bool:
        """
        Give a user a role. Idempotent.

        Never touches ``active_profile``: the user has to switch explicitly.

        Returns:
            True if the membership was created, False if it already existed
        """
        with self.registry.lock:
            if not self.registry.contains(role):
                raise NotFoundError("Role", role.id)
            with user.lock:
                held = self._held(user)
                if role in held:
                    return False
                self._memberships[user.id] = held | {role}
        log.info("Assigned role %s to user %s", role.id, user.id)
        return True

    def revoke_role(self, user: User, role: Role) -> bool:
        """
        Take a role away from a user. Idempotent.

        If that was the user's last role under their active profile, the
        active profile is cleared.

        Returns:
            True if a membership was removed
        """
        with user.lock:
            held = self._held(user)
            if role not in held:
                return False
            remaining = held - {role}
            self._memberships[user.id] = remaining
            active = user.active_profile
            if active is not None and not any(r.profile == active for r in remaining):
                user.active_profile = None
                log.info(
                    "User %s lost last role under profile %s, active profile cleared",
                    user.id, active.value
                )
        log.info("Revoked role %s from user %s", role.id, user.id)
        return True

    # Queries

    def roles_for(self, user: User, organization: Optional[OrganizationRef] = None) -> frozenset[Role]:
        held = self._held(user)
        if organization is None:
            return held
        org_id = organization if isinstance(organization, str) else organization.id
        return frozenset(role for role in held if role.organization.id == org_id)

    def profiles_for(self, user: User) -> frozenset[Profile]:
        return frozenset(role.profile for role in self._held(user))

    def organizations_for(self, user: User) -> frozenset[Organization]:
        return frozenset(role.organization for role in self._held(user))

    # RoleHolders

    def holders_of(self, role: Role) -> frozenset[User]:
        return frozenset(
            self._users[user_id]
            for user_id, held in list(self._memberships.items())
            if role in held
        )

    def revoke_from_all(self, role: Role) -> list[User]:
        return [user for user in self.holders_of(role) if self.revoke_role(user, role)]
