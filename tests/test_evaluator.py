import itertools

import pytest


@pytest.fixture()
def tom_role(core, tom):
    return core.registry.create_role("client", tom, "Tom client", "tom-client", ["read:invoice"])


@pytest.fixture()
def jack_role(core, jack):
    return core.registry.create_role(
        "client", jack, "Jack client", "jack-client", ["read:invoice", "edit:invoice_line_item"]
    )


@pytest.fixture()
def acting_client(core, user, tom_role, jack_role):
    core.memberships.assign_role(user, tom_role)
    core.memberships.assign_role(user, jack_role)
    core.profiles.switch_profile(user, "client")
    return user


def test_union_across_organizations(core, acting_client, tom, jack) -> None:
    can = core.evaluator.can

    assert can(acting_client, "edit", "invoice_line_item")
    assert not can(acting_client, "edit", "invoice_line_item", tom)
    assert can(acting_client, "edit", "invoice_line_item", jack)
    assert can(acting_client, "edit", "invoice_line_item", jack.id)


def test_revoke_only_affects_that_organization(core, acting_client, tom, jack, tom_role) -> None:
    core.memberships.revoke_role(acting_client, tom_role)

    assert tom_role not in core.memberships.roles_for(acting_client)
    assert not core.evaluator.can(acting_client, "read", "invoice", tom)
    assert core.evaluator.can(acting_client, "read", "invoice", jack)
    assert acting_client.is_admin is False


def test_first_role_does_not_activate_profile(core, user, tom_role) -> None:
    core.memberships.assign_role(user, tom_role)

    assert not core.evaluator.is_profile(user, "client")
    assert not core.evaluator.can(user, "read", "invoice")

    core.profiles.switch_profile(user, "client")

    assert core.evaluator.is_profile(user, "client")
    assert core.evaluator.is_profile(user, core.catalog.profile("client"))
    assert core.evaluator.can(user, "read", "invoice")


def test_no_active_profile_denies_everything(core, user, tom_role, jack_role) -> None:
    core.memberships.assign_role(user, tom_role)
    core.memberships.assign_role(user, jack_role)

    for permission in core.catalog.permissions:
        assert not core.evaluator.can(user, permission.operation, permission.object_type)
    assert core.evaluator.permissions_for(user) == frozenset()


def test_unknown_pair_is_denied(core, acting_client) -> None:
    assert not core.evaluator.can(acting_client, "delete", "customer")
    assert not core.evaluator.can(acting_client, "launch", "rocket")


def test_unknown_organization_is_denied(core, acting_client) -> None:
    assert not core.evaluator.can(acting_client, "read", "invoice", "org-nowhere")


def test_roles_under_other_profile_do_not_count(core, user, tom) -> None:
    crew = core.registry.create_role("lawn_care_worker", tom, "Crew", "crew", ["read:customer"])
    viewer = core.registry.create_role("client", tom, "Viewer", "viewer", ["read:invoice"])
    core.memberships.assign_role(user, crew)
    core.memberships.assign_role(user, viewer)

    core.profiles.switch_profile(user, "client")
    assert not core.evaluator.can(user, "read", "customer")
    assert core.evaluator.can(user, "read", "invoice")

    core.profiles.switch_profile(user, "lawn_care_worker")
    assert core.evaluator.can(user, "read", "customer")
    assert not core.evaluator.can(user, "read", "invoice")


def test_grants_are_additive(core, user, tom) -> None:
    # an empty role next to a granting one never takes anything away
    empty = core.registry.create_role("client", tom, "Nothing", "nothing", [])
    full = core.registry.create_role("client", tom, "Full", "full", ["read:job"])
    core.memberships.assign_role(user, empty)
    core.memberships.assign_role(user, full)
    core.profiles.switch_profile(user, "client")

    assert core.evaluator.can(user, "read", "job", tom)


def test_decision_does_not_depend_on_assignment_order(core, tom, jack) -> None:
    from rolegate.features.memberships.entities import User

    roles = [
        core.registry.create_role("client", tom, "A", "a", ["read:invoice"]),
        core.registry.create_role("client", jack, "B", "b", ["read:invoice", "edit:invoice_line_item"]),
        core.registry.create_role("client", tom, "C", "c", []),
        core.registry.create_role("lawn_care_worker", jack, "D", "d", ["read:customer"]),
    ]
    checks = [
        (op, obj, org)
        for op, obj in [("read", "invoice"), ("edit", "invoice_line_item"), ("read", "customer")]
        for org in (None, tom, jack)
    ]

    outcomes = set()
    for index, order in enumerate(itertools.permutations(roles)):
        user = core.memberships.add_user(User(id=f"perm-{index}"))
        for role in order:
            core.memberships.assign_role(user, role)
        core.profiles.switch_profile(user, "client")
        outcomes.add(tuple(core.evaluator.can(user, *check) for check in checks))

    assert len(outcomes) == 1


def test_internal_failure_is_denied(core, acting_client, monkeypatch) -> None:
    def broken(*_args, **_kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(core.memberships, "roles_for", broken)

    assert not core.evaluator.can(acting_client, "read", "invoice")


def test_can_any(core, acting_client, tom) -> None:
    assert core.evaluator.can_any(acting_client, [("delete", "invoice"), ("read", "invoice")])
    assert not core.evaluator.can_any(acting_client, [("delete", "invoice"), ("edit", "job")])
    assert not core.evaluator.can_any(acting_client, [("edit", "invoice_line_item")], tom)
    assert not core.evaluator.can_any(acting_client, [])


def test_permissions_for(core, acting_client, tom, jack) -> None:
    keys = lambda perms: {p.key for p in perms}  # noqa: E731

    assert keys(core.evaluator.permissions_for(acting_client)) == {
        "read:invoice", "edit:invoice_line_item"
    }
    assert keys(core.evaluator.permissions_for(acting_client, tom)) == {"read:invoice"}
    assert keys(core.evaluator.permissions_for(acting_client, jack)) == {
        "read:invoice", "edit:invoice_line_item"
    }


def test_permission_update_is_seen_immediately(core, acting_client, tom, tom_role) -> None:
    core.registry.update_role_permissions(tom_role, ["read:invoice", "edit:invoice_line_item"])

    assert core.evaluator.can(acting_client, "edit", "invoice_line_item", tom)

    core.registry.update_role_permissions(tom_role, [])

    assert not core.evaluator.can(acting_client, "read", "invoice", tom)
