import pytest

from rolegate.core.errors import NotFoundError, UserHasRolesError
from rolegate.features.memberships.entities import User


@pytest.fixture()
def viewer(core, tom):
    return core.registry.create_role("client", tom, "Viewer", "viewer", ["read:invoice"])


@pytest.fixture()
def crew(core, tom):
    return core.registry.create_role("lawn_care_worker", tom, "Crew", "crew", ["read:job"])


def test_assign_is_idempotent(core, user, viewer) -> None:
    assert core.memberships.assign_role(user, viewer)
    assert not core.memberships.assign_role(user, viewer)

    assert core.memberships.roles_for(user) == frozenset({viewer})


def test_assign_never_activates_a_profile(core, user, viewer) -> None:
    core.memberships.assign_role(user, viewer)

    assert user.active_profile is None
    assert not core.evaluator.can(user, "read", "invoice")


def test_assign_deleted_role_raises(core, user, viewer) -> None:
    core.registry.delete_role(viewer)

    with pytest.raises(NotFoundError):
        core.memberships.assign_role(user, viewer)

    assert core.memberships.roles_for(user) == frozenset()


def test_assign_to_unregistered_user_raises(core, viewer) -> None:
    stranger = User(id="nobody")

    with pytest.raises(NotFoundError):
        core.memberships.assign_role(stranger, viewer)


def test_revoke_is_idempotent(core, user, viewer) -> None:
    core.memberships.assign_role(user, viewer)

    assert core.memberships.revoke_role(user, viewer)
    assert not core.memberships.revoke_role(user, viewer)
    assert core.memberships.roles_for(user) == frozenset()


def test_revoking_last_role_in_active_profile_clears_it(core, user, viewer, crew) -> None:
    core.memberships.assign_role(user, viewer)
    core.memberships.assign_role(user, crew)
    core.profiles.switch_profile(user, "client")

    core.memberships.revoke_role(user, viewer)

    assert user.active_profile is None
    # the other profile is still available but not activated
    assert core.profiles.available_profiles(user) == frozenset({crew.profile})


def test_revoking_role_in_other_profile_keeps_active(core, user, viewer, crew) -> None:
    core.memberships.assign_role(user, viewer)
    core.memberships.assign_role(user, crew)
    core.profiles.switch_profile(user, "client")

    core.memberships.revoke_role(user, crew)

    assert user.active_profile == viewer.profile


def test_revoking_one_of_two_roles_in_active_profile_keeps_it(core, user, tom, jack, viewer) -> None:
    other = core.registry.create_role("client", jack, "Viewer", "viewer", ["read:job"])
    core.memberships.assign_role(user, viewer)
    core.memberships.assign_role(user, other)
    core.profiles.switch_profile(user, "client")

    core.memberships.revoke_role(user, viewer)

    assert user.active_profile == viewer.profile


def test_roles_for_organization(core, user, tom, jack, viewer) -> None:
    other = core.registry.create_role("client", jack, "Viewer", "viewer", ["read:job"])
    core.memberships.assign_role(user, viewer)
    core.memberships.assign_role(user, other)

    assert core.memberships.roles_for(user, tom) == frozenset({viewer})
    assert core.memberships.roles_for(user, jack.id) == frozenset({other})
    assert core.memberships.roles_for(user, "org-none") == frozenset()


def test_profiles_and_organizations_for(core, user, tom, jack, viewer, crew) -> None:
    other = core.registry.create_role("client", jack, "Viewer", "viewer", [])
    for role in (viewer, crew, other):
        core.memberships.assign_role(user, role)

    assert {p.value for p in core.memberships.profiles_for(user)} == {"client", "lawn_care_worker"}
    assert core.memberships.organizations_for(user) == frozenset({tom, jack})


def test_holders_of(core, user, viewer) -> None:
    other_user = core.memberships.add_user(User(id="user-v"))
    core.memberships.assign_role(user, viewer)
    core.memberships.assign_role(other_user, viewer)

    assert core.memberships.holders_of(viewer) == frozenset({user, other_user})


def test_add_user_is_idempotent(core, user) -> None:
    again = core.memberships.add_user(User(id=user.id, name="Someone else"))

    assert again is user
    assert core.memberships.user(user.id) is user


def test_remove_user(core, user, viewer) -> None:
    core.memberships.assign_role(user, viewer)
    with pytest.raises(UserHasRolesError) as excinfo:
        core.memberships.remove_user(user)
    assert excinfo.value.role_count == 1

    core.memberships.revoke_role(user, viewer)
    core.memberships.remove_user(user)

    with pytest.raises(NotFoundError):
        core.memberships.user(user.id)
