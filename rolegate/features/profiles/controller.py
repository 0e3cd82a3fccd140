"""
Active-profile state machine.

    Unset --switch_profile(p)--> ActiveAs(p) --switch_profile(q)--> ActiveAs(q)
    ActiveAs(p) --last role under p revoked--> Unset

Assigning a role never activates a profile.
"""
import enum
from dataclasses import dataclass
from typing import Optional

from rolegate.core.errors import NoRoleInProfileError
from rolegate.features.catalog.catalog import ProfileRef
from rolegate.features.catalog.entities import Profile
from rolegate.features.memberships.entities import User
from rolegate.features.memberships.store import MembershipStore
from rolegate.utils import get_logger


log = get_logger(__name__)


class ProfileStatus(str, enum.Enum):
    UNSET = "unset"
    ACTIVE = "active"


@dataclass(frozen=True)
class ProfileState:
    status: ProfileStatus
    profile: Optional[Profile] = None


class ProfileSwitchController:
    def __init__(self, memberships: MembershipStore):
        self._memberships = memberships

    def state(self, user: User) -> ProfileState:
        active = user.active_profile
        if active is None:
            return ProfileState(ProfileStatus.UNSET)
        return ProfileState(ProfileStatus.ACTIVE, active)

    def available_profiles(self, user: User) -> frozenset[Profile]:
        return self._memberships.profiles_for(user)

    def switch_profile(self, user: User, target: ProfileRef) -> Profile:
        """
        Make ``target`` the user's active profile.

        Raises:
            NoRoleInProfileError: the user holds no role under ``target``;
                the active profile is left unchanged
        """
        value = target if isinstance(target, str) else target.value
        with user.lock:
            for profile in self._memberships.profiles_for(user):
                if profile.value == value:
                    previous = user.active_profile
                    user.active_profile = profile
                    break
            else:
                raise NoRoleInProfileError(user.id, value)
        log.info(
            "User %s switched profile %s -> %s",
            user.id, previous.value if previous else None, profile.value
        )
        return profile

    def restore_profile(self, user: User, profile: Optional[Profile]) -> Optional[Profile]:
        """
        Put back an earlier active profile, e.g. when persisting a switch failed.

        Memberships may have changed in the meantime: if the user no longer
        holds a role under ``profile`` the state becomes unset instead.
        """
        with user.lock:
            if profile is not None and profile not in self._memberships.profiles_for(user):
                log.info(
                    "User %s no longer holds profile %s, leaving it unset",
                    user.id, profile.value
                )
                profile = None
            user.active_profile = profile
        return profile
