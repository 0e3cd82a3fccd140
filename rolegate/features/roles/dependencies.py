"""
Role lookup helpers for administrative routes.
"""
from rolegate.core.errors import NotFoundError
from rolegate.features.evaluator.dependencies import deny, ensure_can_administer
from rolegate.features.memberships.entities import User
from rolegate.features.roles.entities import Role
from rolegate.state import AuthorizationCore


def get_administered_role(
    core: AuthorizationCore,
    user: User,
    role_id: str,
    operation: str,
    object_type: str = "role",
) -> Role:
    """
    Look up a role the user may administer.

    Non-admins get the same 403 for an unknown role as for a forbidden one,
    so role ids of other organizations cannot be probed.

    Raises:
        NotFoundError: unknown role, for system admins
        HTTPException: 403 for everyone else
    """
    try:
        role = core.registry.role(role_id)
    except NotFoundError:
        if user.is_admin:
            raise
        raise deny()
    ensure_can_administer(core, user, operation, object_type, role.organization.id)
    return role
