"""
Shared pytest fixtures for the catalog tests.

- Settings pointing at a per-test SQLite file and media directory
- Database / store / lifecycle wired against that file
- A TestClient over a fresh app plus helpers to mint bearer tokens
"""

from pathlib import Path
from typing import Dict

import pytest
from fastapi.testclient import TestClient

from catalog.config import Settings
from catalog.database import Database
from catalog.main import create_app
from catalog.services.identity import Identity, Role, create_access_token
from catalog.services.lifecycle import EntryLifecycle
from catalog.services.store import EntryStore

OWNER = Identity(user_id=1, role=Role.USER)
OTHER = Identity(user_id=2, role=Role.USER)
ADMIN = Identity(user_id=99, role=Role.ADMIN)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}",
        MEDIA_DIR=str(tmp_path / "media"),
        SECRET_KEY="test-secret",
        ENVIRONMENT="test",
        MAX_UPLOAD_BYTES=1024,
    )


@pytest.fixture
async def database(test_settings: Settings):
    db = Database(test_settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database: Database):
    async with database.session_factory() as s:
        yield s


@pytest.fixture
def store(session) -> EntryStore:
    return EntryStore(session, timeout=5.0)


@pytest.fixture
def lifecycle(store: EntryStore) -> EntryLifecycle:
    return EntryLifecycle(store)


@pytest.fixture
def client(test_settings: Settings):
    app = create_app(test_settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def headers(test_settings: Settings):
    """Return a function building an Authorization header for an identity."""

    def _headers(identity: Identity) -> Dict[str, str]:
        token = create_access_token(test_settings, identity.user_id, identity.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers
