"""Service test fixtures — async SQLite DB, wired services and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database with the global sequence row
    - db_manager and the service registry are patched for routes, then restored
    - file_services runs on a file database for tests where sessions must overlap

Design Decisions:
    - SQLite in-memory: fast, no external dependency; FOR UPDATE is a no-op there,
      so these tests exercise the in-process sequence lock
    - In-memory SQLite shares one connection between sessions, so concurrent
      issue/delete tests use the file-backed fixture instead
    - Services built with build_services, the same wiring the lifespan uses
"""

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from httpx import ASGITransport, AsyncClient

from certnum.config import Settings
from certnum.db.base import Base
from certnum.infrastructure.database import DatabaseSessionManager
from certnum.infrastructure.record_store import SqlRecordStoreProvider
import certnum.infrastructure.database as db_module
import certnum.models  # noqa: F401
import certnum.services.registry as registry_module
from certnum.services.registry import build_services
from certnum.main import app


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def manager(test_engine):
    manager = DatabaseSessionManager.from_engine(test_engine)
    await manager.ensure_sequence("global")
    return manager


@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        sequence_key="global",
        sequence_lock_timeout_seconds=5,
    )


@pytest.fixture
def services(manager, test_settings):
    return build_services(manager, test_settings)


@pytest.fixture
def sql_provider(manager):
    return SqlRecordStoreProvider(manager, "global")


@pytest.fixture
async def client(manager, services):
    """FastAPI test client with db_manager and services patched in."""
    original_manager = db_module.db_manager
    original_services = registry_module.services
    db_module.db_manager = manager
    registry_module.services = services

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    db_module.db_manager = original_manager
    registry_module.services = original_services


@pytest.fixture
async def file_engine(tmp_path):
    """File-backed SQLite: one connection per session, so sessions really overlap."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'certnum.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def file_services(file_engine, test_settings):
    manager = DatabaseSessionManager.from_engine(file_engine)
    await manager.ensure_sequence("global")
    return build_services(manager, test_settings)
