"""Shared pytest fixtures."""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path

# Configure before anything imports rolegate.core.config
_DATA_DIR = Path(tempfile.mkdtemp(prefix="rolegate-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DATA_DIR / 'rolegate.sqlite'}"
os.environ["BOOTSTRAP_ADMIN_ID"] = "01HADM1N000000000000000000"
os.environ["SEED_DEFAULT_CATALOG"] = "1"
os.environ["CHECK_RATE_LIMIT"] = "1000/minute"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from rolegate.core.database.engine import drop_db  # noqa: E402
from rolegate.features.catalog.seed import default_catalog  # noqa: E402
from rolegate.features.memberships.entities import User  # noqa: E402
from rolegate.features.roles.entities import Organization  # noqa: E402
from rolegate.state import AuthorizationCore, build_core  # noqa: E402


ADMIN_ID = os.environ["BOOTSTRAP_ADMIN_ID"]
ADMIN_HEADERS = {"X-User-Id": ADMIN_ID}


@pytest.fixture()
def catalog():
    return default_catalog()


@pytest.fixture()
def core(catalog) -> AuthorizationCore:
    return build_core(catalog)


@pytest.fixture()
def tom(core) -> Organization:
    return core.registry.add_organization(Organization("org-tom", "Tom's Lawn Care"))


@pytest.fixture()
def jack(core) -> Organization:
    return core.registry.add_organization(Organization("org-jack", "Jack's Lawn Care"))


@pytest.fixture()
def user(core) -> User:
    return core.memberships.add_user(User(id="user-u", name="U"))


@pytest.fixture()
def client():
    """API client on an empty database; startup seeds the catalog and the admin."""
    asyncio.run(drop_db())
    from rolegate.main import app

    with TestClient(app) as test_client:
        yield test_client
