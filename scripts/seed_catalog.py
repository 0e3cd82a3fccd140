"""
Seed script to populate the default catalog and a first admin user.

Run this script after deployment to create:
- Default operations, objects and permissions
- Default profiles and the permissions each profile may grant
- Optionally a system admin user

Usage:
    python -m scripts.seed_catalog
    python -m scripts.seed_catalog --admin "Jane Operator"
"""
import argparse
import asyncio

from rolegate.core.database.base import generate_ulid
from rolegate.core.database.engine import AsyncSessionLocal, init_db
from rolegate.features.catalog.repository import seed_catalog
from rolegate.features.catalog.seed import DEFAULT_PROFILE_PERMISSIONS, default_catalog
from rolegate.features.memberships.entities import User
from rolegate.features.memberships.repository import save_user
from rolegate.utils import get_logger


log = get_logger(__name__)


async def main(admin_name=None):
    """Seed the catalog and optionally an admin."""
    log.info("Starting catalog seeding...")

    log.info("Initializing database tables...")
    await init_db()

    async with AsyncSessionLocal() as db:
        try:
            created = await seed_catalog(db, default_catalog())
            admin = None
            if admin_name:
                admin = User(id=generate_ulid(), name=admin_name, is_admin=True)
                await save_user(db, admin)
            await db.commit()
        except Exception as e:
            log.error("Error seeding catalog: %s", e, exc_info=True)
            await db.rollback()
            raise

    log.info("Catalog seeding completed: %d rows created", created)
    log.info("Profiles:")
    for profile, keys in DEFAULT_PROFILE_PERMISSIONS.items():
        log.info("  - %s: %d assignable permissions", profile, len(keys))
    if admin is not None:
        log.info("Admin user %r created with id %s", admin.name, admin.id)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--admin", help="Name of a system admin user to create")
    args = parser.parse_args()
    asyncio.run(main(args.admin))
