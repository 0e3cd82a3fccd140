"""
Read-only catalog lookups.

The catalog is built once (from the seed or from the database) and never
mutated afterwards, so lookups need no locking.
"""
from types import MappingProxyType
from typing import Iterable, Iterator, Union

from rolegate.core.errors import NotFoundError
from rolegate.features.catalog.entities import (
    ObjectType,
    Operation,
    Permission,
    Profile,
    permission_key,
)


OperationRef = Union[Operation, str]
ObjectTypeRef = Union[ObjectType, str]
ProfileRef = Union[Profile, str]


def _value(ref) -> str:
    return ref if isinstance(ref, str) else ref.value


class Catalog:
    """
    Immutable registry of operations, objects, permissions and profiles.

    Usage:
        catalog = Catalog(operations, objects, permissions, profiles, profile_permissions)
        permission = catalog.permission_of("read", "invoice")
        catalog.is_permission_valid_for_profile(permission, client_profile)
    """

    def __init__(
        self,
        operations: Iterable[Operation],
        objects: Iterable[ObjectType],
        permissions: Iterable[Permission],
        profiles: Iterable[Profile],
        profile_permissions: Iterable[tuple[Profile, Permission]],
    ):
        self._operations = MappingProxyType({op.value: op for op in operations})
        self._objects = MappingProxyType({obj.value: obj for obj in objects})
        self._profiles = MappingProxyType({p.value: p for p in profiles})

        by_key: dict[str, Permission] = {}
        for permission in permissions:
            if permission.operation.value not in self._operations:
                raise NotFoundError("Operation", permission.operation.value)
            if permission.object_type.value not in self._objects:
                raise NotFoundError("Object", permission.object_type.value)
            by_key[permission.key] = permission
        self._permissions = MappingProxyType(by_key)

        grants: dict[str, set[Permission]] = {value: set() for value in self._profiles}
        for profile, permission in profile_permissions:
            if profile.value not in self._profiles:
                raise NotFoundError("Profile", profile.value)
            if permission.key not in self._permissions:
                raise NotFoundError("Permission", permission.key)
            grants[profile.value].add(self._permissions[permission.key])
        self._grants = MappingProxyType(
            {value: frozenset(perms) for value, perms in grants.items()}
        )

    # Core lookups

    def permission_of(self, operation: OperationRef, object_type: ObjectTypeRef) -> Permission:
        """
        Resolve the permission registered for an (operation, object) pair.

        Raises:
            NotFoundError: if no such permission is registered
        """
        key = permission_key(_value(operation), _value(object_type))
        try:
            return self._permissions[key]
        except KeyError:
            raise NotFoundError("Permission", key) from None

    def is_permission_valid_for_profile(self, permission: Permission, profile: ProfileRef) -> bool:
        """True iff a ProfilePermission entry exists for the pair."""
        return permission in self._grants.get(_value(profile), frozenset())

    # Supplementary lookups

    def operation(self, value: str) -> Operation:
        try:
            return self._operations[value]
        except KeyError:
            raise NotFoundError("Operation", value) from None

    def object_type(self, value: str) -> ObjectType:
        try:
            return self._objects[value]
        except KeyError:
            raise NotFoundError("Object", value) from None

    def profile(self, value: str) -> Profile:
        try:
            return self._profiles[value]
        except KeyError:
            raise NotFoundError("Profile", value) from None

    def permission(self, key: str) -> Permission:
        try:
            return self._permissions[key]
        except KeyError:
            raise NotFoundError("Permission", key) from None

    def permissions_for_profile(self, profile: ProfileRef) -> frozenset[Permission]:
        value = _value(profile)
        if value not in self._profiles:
            raise NotFoundError("Profile", value)
        return self._grants[value]

    @property
    def operations(self) -> tuple[Operation, ...]:
        return tuple(self._operations.values())

    @property
    def objects(self) -> tuple[ObjectType, ...]:
        return tuple(self._objects.values())

    @property
    def permissions(self) -> tuple[Permission, ...]:
        return tuple(self._permissions.values())

    @property
    def profiles(self) -> tuple[Profile, ...]:
        return tuple(self._profiles.values())

    def profile_permissions(self) -> Iterator[tuple[Profile, Permission]]:
        for value, perms in self._grants.items():
            profile = self._profiles[value]
            for permission in sorted(perms, key=lambda p: p.key):
                yield profile, permission

    def __repr__(self) -> str:
        return (
            f"<Catalog(operations={len(self._operations)}, objects={len(self._objects)}, "
            f"permissions={len(self._permissions)}, profiles={len(self._profiles)})>"
        )
