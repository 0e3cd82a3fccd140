"""
Role registry persistence.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.features.catalog.models import PermissionRow
from rolegate.features.roles.entities import Organization, Role
from rolegate.features.roles.models import OrganizationRow, RoleRow
from rolegate.features.roles.registry import RoleRegistry
from rolegate.utils import get_logger


log = get_logger(__name__)


async def save_organization(db: AsyncSession, organization: Organization) -> OrganizationRow:
    row = await db.get(OrganizationRow, organization.id)
    if row is None:
        row = OrganizationRow(id=organization.id, name=organization.name)
        db.add(row)
    else:
        row.name = organization.name
    await db.flush()
    return row


async def save_role(db: AsyncSession, role: Role) -> RoleRow:
    """Insert the role or bring the stored row (and its permission rows) in line."""
    permissions = role.permissions
    keys = [p.key for p in permissions]
    permission_rows = []
    if keys:
        result = await db.execute(select(PermissionRow).where(PermissionRow.name.in_(keys)))
        permission_rows = list(result.scalars().all())

    row = await db.get(RoleRow, role.id)
    if row is None:
        row = RoleRow(
            id=role.id,
            organization_id=role.organization.id,
            profile=role.profile.value,
            label=role.label,
            value=role.value,
            permissions=permission_rows,
        )
        db.add(row)
    else:
        row.label = role.label
        row.permissions = permission_rows
    await db.flush()
    return row


async def delete_role_row(db: AsyncSession, role_id: str) -> None:
    row = await db.get(RoleRow, role_id)
    if row is not None:
        await db.delete(row)
        await db.flush()


async def load_registry(db: AsyncSession, registry: RoleRegistry) -> RoleRegistry:
    """Fill an empty registry with the stored organizations and roles."""
    for row in (await db.execute(select(OrganizationRow))).scalars().all():
        registry.add_organization(Organization(row.id, row.name))

    count = 0
    for row in (await db.execute(select(RoleRow))).scalars().all():
        registry.create_role(
            row.profile,
            row.organization_id,
            row.label,
            row.value,
            [permission.name for permission in row.permissions],
            role_id=row.id,
        )
        count += 1
    log.info("Loaded %d organizations and %d roles", len(registry.organizations()), count)
    return registry
