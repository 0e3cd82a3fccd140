"""
Wiring of the in-memory authorization core.

The core is built once per process, from the database at startup, and kept
on ``app.state.core``. Routes mutate it and then persist the change.
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Callable

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.core.errors import NoRoleInProfileError
from rolegate.features.catalog.catalog import Catalog
from rolegate.features.catalog.repository import load_catalog, seed_catalog
from rolegate.features.catalog.seed import default_catalog
from rolegate.features.evaluator.evaluator import PermissionEvaluator
from rolegate.features.memberships.repository import load_memberships, save_active_profile
from rolegate.features.memberships.store import MembershipStore
from rolegate.features.profiles.controller import ProfileSwitchController
from rolegate.features.roles.registry import RoleRegistry
from rolegate.features.roles.repository import load_registry
from rolegate.utils import get_logger


log = get_logger(__name__)


@dataclass
class AuthorizationCore:
    catalog: Catalog
    registry: RoleRegistry
    memberships: MembershipStore
    evaluator: PermissionEvaluator
    profiles: ProfileSwitchController


def build_core(catalog: Catalog) -> AuthorizationCore:
    registry = RoleRegistry(catalog)
    memberships = MembershipStore(registry)
    return AuthorizationCore(
        catalog=catalog,
        registry=registry,
        memberships=memberships,
        evaluator=PermissionEvaluator(catalog, memberships),
        profiles=ProfileSwitchController(memberships),
    )


async def load_core(db: AsyncSession, seed_default: bool = True) -> AuthorizationCore:
    """
    Rebuild the core from the database.

    Stored active profiles are replayed through the profile switch
    controller; one the user no longer holds a role in is cleared.
    """
    catalog = await load_catalog(db)
    if catalog is None:
        if not seed_default:
            raise RuntimeError("Catalog tables are empty and seeding is disabled")
        log.info("Catalog tables empty, seeding default catalog")
        await seed_catalog(db, default_catalog())
        catalog = await load_catalog(db)

    core = build_core(catalog)
    await load_registry(db, core.registry)
    pending = await load_memberships(db, core.memberships)

    for user, stored_profile in pending:
        if stored_profile is None:
            continue
        try:
            core.profiles.switch_profile(user, stored_profile)
        except NoRoleInProfileError:
            log.warning(
                "User %s stored active profile %s without a role in it, clearing",
                user.id, stored_profile
            )
            await save_active_profile(db, user)

    await db.commit()
    return core


def get_core(request: Request) -> AuthorizationCore:
    """FastAPI dependency returning the process-wide core."""
    return request.app.state.core


@asynccontextmanager
async def persist_or_revert(db: AsyncSession, revert: Callable[[], None]):
    """
    Persist an in-memory change, undoing it if the database write fails.

    The original failure is always the one propagated; a revert that fails
    in turn is only logged.

    Usage:
        role = core.registry.create_role(...)
        async with persist_or_revert(db, lambda: core.registry.discard_role(role)):
            await save_role(db, role)
    """
    try:
        yield
        await db.commit()
    except Exception:
        log.exception("Persisting change failed, reverting in-memory state")
        await db.rollback()
        try:
            revert()
        except Exception:
            log.exception("Reverting in-memory state failed")
        raise
