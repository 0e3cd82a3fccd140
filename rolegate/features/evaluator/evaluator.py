"""
Permission decisions.

Grants are strictly additive: a permission held by any qualifying role is
granted, whatever the other roles hold. There is no deny and no ordering
between roles.
"""
from typing import Iterable, Optional

from rolegate.core.errors import NotFoundError
from rolegate.features.catalog.catalog import Catalog, ObjectTypeRef, OperationRef, ProfileRef
from rolegate.features.catalog.entities import Permission
from rolegate.features.memberships.entities import User
from rolegate.features.memberships.store import MembershipStore, OrganizationRef
from rolegate.utils import get_logger


log = get_logger(__name__)


class PermissionEvaluator:
    """
    Side-effect-free decision engine.

    The user is always passed in explicitly; there is no ambient
    "current user".
    """

    def __init__(self, catalog: Catalog, memberships: MembershipStore):
        self._catalog = catalog
        self._memberships = memberships

    def is_profile(self, user: User, profile: ProfileRef) -> bool:
        """True iff the user is currently acting as ``profile``."""
        active = user.active_profile
        if active is None:
            return False
        value = profile if isinstance(profile, str) else profile.value
        return active.value == value

    def can(
        self,
        user: User,
        operation: OperationRef,
        object_type: ObjectTypeRef,
        organization: Optional[OrganizationRef] = None,
    ) -> bool:
        """
        Decide whether ``user`` may perform ``operation`` on ``object_type``.

        Only roles under the user's active profile count; ``organization``
        narrows them to one organization, otherwise every organization the
        user has such a role in contributes. Never raises: anything that
        cannot be resolved is a deny.
        """
        try:
            active = user.active_profile
            if active is None:
                log.debug("Denied user %s: no active profile", user.id)
                return False

            try:
                permission = self._catalog.permission_of(operation, object_type)
            except NotFoundError:
                log.debug("Denied user %s: unknown permission %s:%s", user.id, operation, object_type)
                return False

            for role in self._memberships.roles_for(user, organization):
                if role.profile == active and role.grants(permission):
                    log.debug(
                        "Granted %s to user %s via role %s in org %s",
                        permission.key, user.id, role.id, role.organization.id
                    )
                    return True

            log.debug("Denied %s to user %s (org=%s)", permission.key, user.id, organization)
            return False
        except Exception:
            log.exception("Permission check failed for user %s, denying", getattr(user, "id", None))
            return False

    def can_any(
        self,
        user: User,
        checks: Iterable[tuple[OperationRef, ObjectTypeRef]],
        organization: Optional[OrganizationRef] = None,
    ) -> bool:
        """True if any of the (operation, object) pairs is granted."""
        return any(self.can(user, op, obj, organization) for op, obj in checks)

    def permissions_for(
        self, user: User, organization: Optional[OrganizationRef] = None
    ) -> frozenset[Permission]:
        """Union of the permissions ``can`` would grant right now."""
        active = user.active_profile
        if active is None:
            return frozenset()
        granted: set[Permission] = set()
        for role in self._memberships.roles_for(user, organization):
            if role.profile == active:
                granted |= role.permissions
        return frozenset(granted)
