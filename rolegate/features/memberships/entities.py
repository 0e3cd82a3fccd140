"""
User entity.
"""
import threading
from dataclasses import dataclass, field
from typing import Optional

from rolegate.features.catalog.entities import Profile


@dataclass(eq=False)
class User:
    """
    A user and the profile they are currently acting as.

    ``active_profile`` only changes under ``lock``: through a profile switch
    or when the user's last role under it is revoked.
    """

    id: str
    name: str = ""
    is_admin: bool = False
    active_profile: Optional[Profile] = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def __repr__(self) -> str:
        active = self.active_profile.value if self.active_profile else None
        return f"<User(id={self.id}, name={self.name!r}, active_profile={active})>"
