"""
Organization and Role entities.
"""
import threading
from dataclasses import dataclass, field

from rolegate.features.catalog.entities import Permission, Profile


@dataclass(frozen=True)
class Organization:
    """A bare scoping entity for roles."""

    id: str
    name: str = field(default="", compare=False)


@dataclass(eq=False)
class Role:
    """
    An org- and profile-scoped bundle of permissions.

    ``permissions`` is always a frozenset and is only ever replaced as a
    whole, so a reader sees either the old or the new set.
    """

    id: str
    profile: Profile
    organization: Organization
    label: str
    value: str
    permissions: frozenset[Permission] = frozenset()
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def grants(self, permission: Permission) -> bool:
        return permission in self.permissions

    def __repr__(self) -> str:
        return (
            f"<Role(id={self.id}, value={self.value!r}, profile={self.profile.value}, "
            f"org_id={self.organization.id}, permissions={len(self.permissions)})>"
        )
