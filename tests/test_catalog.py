import pytest

from rolegate.core.errors import NotFoundError
from rolegate.features.catalog.entities import ObjectType, Operation, Permission, Profile
from rolegate.features.catalog.seed import build_catalog


def test_permission_of_resolves_values_and_entities(catalog) -> None:
    by_value = catalog.permission_of("read", "invoice")
    by_entity = catalog.permission_of(Operation("read"), ObjectType("invoice"))

    assert by_value is by_entity
    assert by_value.key == "read:invoice"
    assert by_value.description == "View invoices"


def test_permission_of_unknown_pair_raises(catalog) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        catalog.permission_of("delete", "customer")

    assert excinfo.value.key == "delete:customer"


def test_permission_of_unknown_operation_raises(catalog) -> None:
    with pytest.raises(NotFoundError):
        catalog.permission_of("launch", "invoice")


def test_is_permission_valid_for_profile(catalog) -> None:
    edit_line_item = catalog.permission_of("edit", "invoice_line_item")
    create_role = catalog.permission_of("create", "role")

    assert catalog.is_permission_valid_for_profile(edit_line_item, "client")
    assert catalog.is_permission_valid_for_profile(edit_line_item, catalog.profile("client"))
    assert not catalog.is_permission_valid_for_profile(create_role, "client")
    assert catalog.is_permission_valid_for_profile(create_role, "lawn_care_administrator")


def test_is_permission_valid_for_unknown_profile_is_false(catalog) -> None:
    permission = catalog.permission_of("read", "invoice")

    assert not catalog.is_permission_valid_for_profile(permission, "ghost")


def test_labels_do_not_affect_identity(catalog) -> None:
    permission = catalog.permission_of("read", "invoice")
    rebuilt = Permission(Operation("read", "whatever"), ObjectType("invoice"))

    assert rebuilt == permission
    assert catalog.is_permission_valid_for_profile(rebuilt, Profile("client", "Other label"))


def test_lookups_raise_not_found(catalog) -> None:
    with pytest.raises(NotFoundError):
        catalog.profile("ghost")
    with pytest.raises(NotFoundError):
        catalog.operation("launch")
    with pytest.raises(NotFoundError):
        catalog.object_type("rocket")
    with pytest.raises(NotFoundError):
        catalog.permissions_for_profile("ghost")


def test_permissions_for_profile(catalog) -> None:
    keys = {p.key for p in catalog.permissions_for_profile("lawn_care_worker")}

    assert keys == {"read:customer", "read:job", "edit:job"}


def test_profile_mapping_must_reference_registered_permission() -> None:
    with pytest.raises(NotFoundError):
        build_catalog(profile_permissions={"client": ["launch:rocket"]})


def test_permission_must_reference_registered_operation() -> None:
    with pytest.raises(NotFoundError):
        build_catalog(permissions=[("launch", "invoice", "")], profile_permissions={})


def test_profile_permissions_round_trip(catalog) -> None:
    pairs = list(catalog.profile_permissions())
    rebuilt = build_catalog(
        profile_permissions={
            profile.value: [p.key for p in catalog.permissions_for_profile(profile)]
            for profile in catalog.profiles
        }
    )

    assert len(pairs) == sum(len(catalog.permissions_for_profile(p)) for p in catalog.profiles)
    for profile in catalog.profiles:
        assert rebuilt.permissions_for_profile(profile) == catalog.permissions_for_profile(profile)
