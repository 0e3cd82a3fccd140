"""
Catalog persistence: seeding and loading.
"""
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.features.catalog.catalog import Catalog
from rolegate.features.catalog.entities import ObjectType, Operation, Permission, Profile
from rolegate.features.catalog.models import (
    ObjectTypeRow,
    OperationRow,
    PermissionRow,
    ProfileRow,
)
from rolegate.utils import get_logger


log = get_logger(__name__)


async def seed_catalog(db: AsyncSession, catalog: Catalog) -> int:
    """
    Write catalog entries that are not stored yet.

    Existing rows are left untouched (the catalog is append-only).

    Returns:
        Number of rows created
    """
    created = 0

    existing_ops = set((await db.execute(select(OperationRow.value))).scalars().all())
    for operation in catalog.operations:
        if operation.value not in existing_ops:
            db.add(OperationRow(value=operation.value, label=operation.label))
            created += 1

    existing_objs = set((await db.execute(select(ObjectTypeRow.value))).scalars().all())
    for object_type in catalog.objects:
        if object_type.value not in existing_objs:
            db.add(ObjectTypeRow(value=object_type.value, label=object_type.label))
            created += 1

    await db.flush()

    permission_rows = {
        row.name: row for row in (await db.execute(select(PermissionRow))).scalars().all()
    }
    for permission in catalog.permissions:
        if permission.key in permission_rows:
            log.debug("Permission '%s' already exists, skipping", permission.key)
            continue
        row = PermissionRow(
            name=permission.key,
            operation=permission.operation.value,
            object_type=permission.object_type.value,
            description=permission.description or None,
            profiles=[],
        )
        db.add(row)
        permission_rows[permission.key] = row
        created += 1

    profile_rows = {
        row.value: row for row in (await db.execute(select(ProfileRow))).scalars().all()
    }
    for profile in catalog.profiles:
        if profile.value not in profile_rows:
            row = ProfileRow(value=profile.value, label=profile.label, permissions=[])
            db.add(row)
            profile_rows[profile.value] = row
            created += 1

    await db.flush()

    for profile, permission in catalog.profile_permissions():
        profile_row = profile_rows[profile.value]
        permission_row = permission_rows[permission.key]
        if permission_row not in profile_row.permissions:
            profile_row.permissions.append(permission_row)
            created += 1

    await db.flush()
    log.info("Catalog seeded: %d new rows", created)
    return created


async def load_catalog(db: AsyncSession) -> Optional[Catalog]:
    """
    Build the in-memory Catalog from the catalog tables.

    Returns:
        The Catalog, or None when no profile has been seeded yet
    """
    profile_rows = (await db.execute(select(ProfileRow))).scalars().all()
    if not profile_rows:
        return None

    operations = {
        row.value: Operation(row.value, row.label)
        for row in (await db.execute(select(OperationRow))).scalars().all()
    }
    objects = {
        row.value: ObjectType(row.value, row.label)
        for row in (await db.execute(select(ObjectTypeRow))).scalars().all()
    }
    permissions = {
        row.id: Permission(operations[row.operation], objects[row.object_type], row.description or "")
        for row in (await db.execute(select(PermissionRow))).scalars().all()
    }
    profiles = [Profile(row.value, row.label) for row in profile_rows]

    pairs = []
    for row, profile in zip(profile_rows, profiles):
        for permission_row in row.permissions:
            pairs.append((profile, permissions[permission_row.id]))

    catalog = Catalog(operations.values(), objects.values(), permissions.values(), profiles, pairs)
    log.info("Loaded %r", catalog)
    return catalog
