"""
Error taxonomy for the authorization core.

Administrative errors carry enough detail to fix the input. None of them
ever escapes ``PermissionEvaluator.can``: lookup failures there become a
deny.
"""
from typing import Iterable


class RolegateError(Exception):
    """Base class for every error raised by the core."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(RolegateError):
    """Lookup miss for a catalog entry, organization, role or user."""

    def __init__(self, kind: str, key: str):
        super().__init__(f"{kind} not found: {key}")
        self.kind = kind
        self.key = key


class InvalidPermissionForProfileError(RolegateError):
    """A role would grant permissions that are not assignable under its profile."""

    def __init__(self, profile: str, permissions: Iterable[str]):
        self.profile = profile
        self.permissions = tuple(sorted(permissions))
        super().__init__(
            f"Permissions not valid for profile '{profile}': {', '.join(self.permissions)}"
        )


class DuplicateValueError(RolegateError):
    """The (organization, profile, value) triple of a role is already taken."""

    def __init__(self, organization: str, profile: str, value: str):
        self.organization = organization
        self.profile = profile
        self.value = value
        super().__init__(
            f"Role value '{value}' already exists for profile '{profile}' "
            f"in organization {organization}"
        )


class RoleInUseError(RolegateError):
    """A role still has holders and deletion was not requested as cascading."""

    def __init__(self, role_id: str, holder_count: int):
        self.role_id = role_id
        self.holder_count = holder_count
        super().__init__(
            f"Role {role_id} is assigned to {holder_count} user(s); "
            "revoke it first or delete with cascade"
        )


class NoRoleInProfileError(RolegateError):
    """A profile switch targeted a profile the user holds no role in."""

    def __init__(self, user_id: str, profile: str):
        self.user_id = user_id
        self.profile = profile
        super().__init__(f"User {user_id} holds no role in profile '{profile}'")


class OrganizationInUseError(RolegateError):
    """An organization still scopes roles and cannot be removed."""

    def __init__(self, organization_id: str, role_count: int):
        self.organization_id = organization_id
        self.role_count = role_count
        super().__init__(
            f"Organization {organization_id} still scopes {role_count} role(s); delete them first"
        )


class UserHasRolesError(RolegateError):
    """A user still holds roles and cannot be removed."""

    def __init__(self, user_id: str, role_count: int):
        self.user_id = user_id
        self.role_count = role_count
        super().__init__(f"User {user_id} still holds {role_count} role(s); revoke them first")
