import pytest

from rolegate.core.errors import (
    DuplicateValueError,
    InvalidPermissionForProfileError,
    NotFoundError,
    OrganizationInUseError,
    RoleInUseError,
)


def _keys(role) -> set[str]:
    return {p.key for p in role.permissions}


def test_create_role(core, tom) -> None:
    role = core.registry.create_role(
        "client", tom, "Invoice viewer", "invoice-viewer", ["read:invoice", "read:invoice_line_item"]
    )

    assert role.profile == core.catalog.profile("client")
    assert role.organization == tom
    assert role.value == "invoice-viewer"
    assert _keys(role) == {"read:invoice", "read:invoice_line_item"}
    assert core.registry.role(role.id) is role


def test_create_role_accepts_permission_entities(core, tom) -> None:
    permission = core.catalog.permission_of("read", "invoice")

    role = core.registry.create_role("client", tom.id, "Viewer", "viewer", [permission])

    assert role.permissions == frozenset({permission})


def test_create_role_rejects_permission_foreign_to_profile(core, tom) -> None:
    with pytest.raises(InvalidPermissionForProfileError) as excinfo:
        core.registry.create_role(
            "client", tom, "Sneaky", "sneaky", ["read:invoice", "create:role", "delete:invoice"]
        )

    assert excinfo.value.profile == "client"
    assert excinfo.value.permissions == ("create:role", "delete:invoice")
    assert "create:role" in excinfo.value.detail
    assert core.registry.roles(tom) == []


def test_create_role_rejects_unregistered_permission(core, tom) -> None:
    with pytest.raises(InvalidPermissionForProfileError) as excinfo:
        core.registry.create_role("client", tom, "Odd", "odd", ["launch:rocket"])

    assert excinfo.value.permissions == ("launch:rocket",)


def test_create_role_duplicate_value_in_same_scope(core, tom) -> None:
    core.registry.create_role("client", tom, "Viewer", "viewer", ["read:invoice"])

    with pytest.raises(DuplicateValueError) as excinfo:
        core.registry.create_role("client", tom, "Other viewer", "viewer", [])

    assert excinfo.value.value == "viewer"
    assert excinfo.value.organization == tom.id


def test_same_value_allowed_in_other_organization_or_profile(core, tom, jack) -> None:
    core.registry.create_role("client", tom, "Viewer", "viewer", ["read:invoice"])

    other_org = core.registry.create_role("client", jack, "Viewer", "viewer", ["read:invoice"])
    other_profile = core.registry.create_role(
        "lawn_care_worker", tom, "Viewer", "viewer", ["read:job"]
    )

    assert len(core.registry.roles()) == 3
    assert other_org.organization == jack
    assert other_profile.profile.value == "lawn_care_worker"


def test_create_role_unknown_organization_or_profile(core, tom) -> None:
    with pytest.raises(NotFoundError):
        core.registry.create_role("client", "org-nowhere", "Viewer", "viewer", [])
    with pytest.raises(NotFoundError):
        core.registry.create_role("ghost", tom, "Viewer", "viewer", [])


def test_update_role_permissions_replaces_whole_set(core, tom) -> None:
    role = core.registry.create_role("client", tom, "Viewer", "viewer", ["read:invoice"])
    before = role.permissions

    core.registry.update_role_permissions(role, ["read:job", "create:job"])

    assert _keys(role) == {"read:job", "create:job"}
    # the previous set object is untouched, readers holding it see the old state
    assert {p.key for p in before} == {"read:invoice"}


def test_update_role_permissions_validates(core, tom) -> None:
    role = core.registry.create_role("client", tom, "Viewer", "viewer", ["read:invoice"])

    with pytest.raises(InvalidPermissionForProfileError):
        core.registry.update_role_permissions(role, ["read:job", "edit:role"])

    assert _keys(role) == {"read:invoice"}


def test_update_label(core, tom) -> None:
    role = core.registry.create_role("client", tom, "Viewer", "viewer", [])

    core.registry.update_role_label(role, "Invoice viewer")

    assert role.label == "Invoice viewer"


def test_delete_unheld_role(core, tom) -> None:
    role = core.registry.create_role("client", tom, "Viewer", "viewer", [])

    core.registry.delete_role(role)

    with pytest.raises(NotFoundError):
        core.registry.role(role.id)
    # the value is free again
    core.registry.create_role("client", tom, "Viewer", "viewer", [])


def test_delete_held_role_is_refused(core, tom, user) -> None:
    role = core.registry.create_role("client", tom, "Viewer", "viewer", ["read:invoice"])
    core.memberships.assign_role(user, role)

    with pytest.raises(RoleInUseError) as excinfo:
        core.registry.delete_role(role)

    assert excinfo.value.holder_count == 1
    assert core.registry.role(role.id) is role
    assert role in core.memberships.roles_for(user)


def test_delete_role_cascading_revokes_holders(core, tom, user) -> None:
    role = core.registry.create_role("client", tom, "Viewer", "viewer", ["read:invoice"])
    core.memberships.assign_role(user, role)
    core.profiles.switch_profile(user, "client")

    revoked = core.registry.delete_role_cascading(role)

    assert revoked == [user]
    assert core.memberships.roles_for(user) == frozenset()
    assert user.active_profile is None
    assert not core.evaluator.can(user, "read", "invoice")
    with pytest.raises(NotFoundError):
        core.registry.role(role.id)


def test_delete_unknown_role(core, tom) -> None:
    role = core.registry.create_role("client", tom, "Viewer", "viewer", [])
    core.registry.delete_role(role)

    with pytest.raises(NotFoundError):
        core.registry.delete_role(role)
    with pytest.raises(NotFoundError):
        core.registry.delete_role_cascading(role)
    with pytest.raises(NotFoundError):
        core.registry.update_role_permissions(role, [])


def test_restore_after_delete(core, tom) -> None:
    role = core.registry.create_role("client", tom, "Viewer", "viewer", [])
    core.registry.delete_role(role)

    core.registry.restore(role)

    assert core.registry.role(role.id) is role
    with pytest.raises(DuplicateValueError):
        core.registry.create_role("client", tom, "Viewer", "viewer", [])


def test_roles_filters(core, tom, jack) -> None:
    a = core.registry.create_role("client", tom, "A", "a", [])
    b = core.registry.create_role("lawn_care_worker", tom, "B", "b", [])
    c = core.registry.create_role("client", jack, "C", "c", [])

    assert set(core.registry.roles(tom)) == {a, b}
    assert set(core.registry.roles(profile=core.catalog.profile("client"))) == {a, c}
    assert core.registry.roles(jack, core.catalog.profile("lawn_care_worker")) == []


def test_remove_organization_with_roles_is_refused(core, tom) -> None:
    core.registry.create_role("client", tom, "A", "a", [])

    with pytest.raises(OrganizationInUseError) as excinfo:
        core.registry.remove_organization(tom)

    assert excinfo.value.role_count == 1
    assert "still scopes 1 role" in excinfo.value.detail
    assert core.registry.organization(tom.id) == tom


def test_discard_role_revokes_holders_and_tolerates_missing(core, tom, user) -> None:
    role = core.registry.create_role("client", tom, "Viewer", "viewer", ["read:invoice"])
    core.memberships.assign_role(user, role)
    core.profiles.switch_profile(user, "client")

    assert core.registry.discard_role(role) == [user]
    assert core.registry.roles() == []
    assert user.active_profile is None

    assert core.registry.discard_role(role) == []
