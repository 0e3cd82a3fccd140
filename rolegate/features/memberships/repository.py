"""
Membership persistence.
"""
from typing import Optional
from sqlalchemy import and_, delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.errors import NotFoundError
from rolegate.features.memberships.entities import User
from rolegate.features.memberships.models import UserRow, user_roles
from rolegate.features.memberships.store import MembershipStore
from rolegate.utils import get_logger


log = get_logger(__name__)


async def save_user(db: AsyncSession, user: User) -> UserRow:
    row = await db.get(UserRow, user.id)
    if row is None:
        row = UserRow(
            id=user.id,
            name=user.name,
            is_admin=user.is_admin,
            active_profile=user.active_profile.value if user.active_profile else None,
        )
        db.add(row)
    else:
        row.name = user.name
        row.is_admin = user.is_admin
    await db.flush()
    return row


async def save_active_profile(db: AsyncSession, user: User) -> None:
    row = await db.get(UserRow, user.id)
    if row is None:
        row = await save_user(db, user)
    row.active_profile = user.active_profile.value if user.active_profile else None
    await db.flush()


async def save_user_role(
    db: AsyncSession, user_id: str, role_id: str, assigned_by_id: Optional[str] = None
) -> None:
    existing = await db.execute(
        select(user_roles).where(
            and_(user_roles.c.user_id == user_id, user_roles.c.role_id == role_id)
        )
    )
    if existing.first():
        return
    await db.execute(
        insert(user_roles).values(
            user_id=user_id, role_id=role_id, assigned_by_id=assigned_by_id
        )
    )


async def delete_user_role(db: AsyncSession, user_id: str, role_id: str) -> None:
    await db.execute(
        delete(user_roles).where(
            and_(user_roles.c.user_id == user_id, user_roles.c.role_id == role_id)
        )
    )


async def delete_user_roles_for_role(db: AsyncSession, role_id: str) -> None:
    await db.execute(delete(user_roles).where(user_roles.c.role_id == role_id))


async def load_memberships(db: AsyncSession, store: MembershipStore) -> list[tuple[User, Optional[str]]]:
    """
    Fill an empty store with the stored users and memberships.

    Returns:
        (user, stored active profile value) pairs; active profiles are not
        applied here but re-validated by the profile switch controller
    """
    registry = store.registry
    pending = []
    for row in (await db.execute(select(UserRow))).scalars().all():
        user = store.add_user(User(id=row.id, name=row.name, is_admin=row.is_admin))
        pending.append((user, row.active_profile))

    count = 0
    for user_id, role_id in (await db.execute(select(user_roles.c.user_id, user_roles.c.role_id))).all():
        try:
            role = registry.role(role_id)
            user = store.user(user_id)
        except NotFoundError:
            log.warning("Skipping dangling membership user=%s role=%s", user_id, role_id)
            continue
        store.assign_role(user, role)
        count += 1

    log.info("Loaded %d users and %d memberships", len(pending), count)
    return pending
