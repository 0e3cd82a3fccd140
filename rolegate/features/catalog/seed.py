"""
Default catalog seed.

Operations, objects, permissions and profiles are the system builder's
vocabulary. Everything administrators define at runtime (roles, role
assignments) is validated against it.
"""
from rolegate.features.catalog.catalog import Catalog
from rolegate.features.catalog.entities import ObjectType, Operation, Permission, Profile


DEFAULT_OPERATIONS = [
    ("read", "Read"),
    ("edit", "Edit"),
    ("create", "Create"),
    ("delete", "Delete"),
]

DEFAULT_OBJECTS = [
    ("invoice", "Invoice"),
    ("invoice_line_item", "Invoice line item"),
    ("customer", "Customer"),
    ("job", "Job"),
    ("role", "Role"),
    ("user_role", "Role assignment"),
]

# (operation, object, description)
DEFAULT_PERMISSIONS = [
    # Invoices
    ("read", "invoice", "View invoices"),
    ("create", "invoice", "Create invoices"),
    ("edit", "invoice", "Edit invoices"),
    ("delete", "invoice", "Delete invoices"),
    ("read", "invoice_line_item", "View invoice line items"),
    ("edit", "invoice_line_item", "Edit invoice line items"),

    # Customers
    ("read", "customer", "View customers"),
    ("create", "customer", "Create customers"),
    ("edit", "customer", "Edit customers"),

    # Jobs
    ("read", "job", "View scheduled jobs"),
    ("create", "job", "Schedule jobs"),
    ("edit", "job", "Reschedule jobs"),

    # Role administration
    ("read", "role", "View roles"),
    ("create", "role", "Create roles"),
    ("edit", "role", "Edit role permissions"),
    ("delete", "role", "Delete roles"),
    ("create", "user_role", "Assign roles to users"),
    ("delete", "user_role", "Revoke roles from users"),
]

DEFAULT_PROFILES = [
    ("client", "Client"),
    ("lawn_care_administrator", "Lawn Care Administrator"),
    ("lawn_care_worker", "Lawn Care Worker"),
]

# Which permissions each profile may grant through its roles
DEFAULT_PROFILE_PERMISSIONS = {
    "client": [
        "read:invoice",
        "read:invoice_line_item",
        "edit:invoice_line_item",
        "read:job",
        "create:job",
    ],
    "lawn_care_administrator": [
        "read:invoice", "create:invoice", "edit:invoice", "delete:invoice",
        "read:invoice_line_item", "edit:invoice_line_item",
        "read:customer", "create:customer", "edit:customer",
        "read:job", "create:job", "edit:job",
        "read:role", "create:role", "edit:role", "delete:role",
        "create:user_role", "delete:user_role",
    ],
    "lawn_care_worker": [
        "read:customer",
        "read:job",
        "edit:job",
    ],
}


def build_catalog(
    operations=DEFAULT_OPERATIONS,
    objects=DEFAULT_OBJECTS,
    permissions=DEFAULT_PERMISSIONS,
    profiles=DEFAULT_PROFILES,
    profile_permissions=DEFAULT_PROFILE_PERMISSIONS,
) -> Catalog:
    """
    Build a Catalog from seed tuples.

    Raises:
        NotFoundError: if a permission or mapping references an unknown entry
    """
    ops = {value: Operation(value, label) for value, label in operations}
    objs = {value: ObjectType(value, label) for value, label in objects}
    profs = {value: Profile(value, label) for value, label in profiles}

    perms = {}
    for op, obj, description in permissions:
        # Unknown entries fall through to Catalog validation
        permission = Permission(
            ops.get(op, Operation(op)),
            objs.get(obj, ObjectType(obj)),
            description,
        )
        perms[permission.key] = permission

    pairs = []
    for profile_value, keys in profile_permissions.items():
        profile = profs.get(profile_value, Profile(profile_value))
        for key in keys:
            op, _, obj = key.partition(":")
            pairs.append((profile, perms.get(key, Permission(Operation(op), ObjectType(obj)))))

    return Catalog(ops.values(), objs.values(), perms.values(), profs.values(), pairs)


def default_catalog() -> Catalog:
    return build_catalog()
