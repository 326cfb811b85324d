import os
import tempfile

# Settings are read at import time; configure the test process first.
TEST_DB_URL = os.getenv("DATABASE_URL_TEST")
os.environ.setdefault("DATABASE_URL", TEST_DB_URL or "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TELEMETRY_ENABLED", "false")
os.environ.setdefault("JWT_SECRET", "test-secret-please-change-me-0123456789")
os.environ.setdefault("MEDIA_DIR", tempfile.mkdtemp(prefix="civic-media-"))
os.environ.setdefault("PUBLIC_BASE_URL", "http://test")

import pytest
import httpx

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool

# Import Base + all models so metadata is complete
from civic_market.models.base import Base
from civic_market.models.listing import Listing  # noqa: F401
from civic_market.models.comment import Comment  # noqa: F401
from civic_market.models.configuration_flag import ConfigurationFlag  # noqa: F401

from civic_market.main import app
from civic_market.core.db import get_db
from civic_market.api.deps import get_media_store
from civic_market.services.permissions import Role
from civic_market.services.storage import LocalMediaStore

from fixtures_seed import make_actor


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # a connection per session, so concurrent requests get separate transactions
        return {"poolclass": NullPool}
    return {"pool_pre_ping": True}


@pytest.fixture
async def async_engine(tmp_path):
    url = TEST_DB_URL or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(url, **_engine_kwargs(url))

    if url.startswith("sqlite"):
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(async_engine):
    return async_sessionmaker(bind=async_engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def media_store(tmp_path) -> LocalMediaStore:
    return LocalMediaStore(str(tmp_path / "images"), "http://test")


@pytest.fixture
async def client(session_factory, media_store):
    """
    HTTP client against the app with the test database and media directory.
    Each request gets its own session, as in production.
    """
    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_media_store] = lambda: media_store

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def municipal():
    return make_actor("usr-municipal", Role.MUNICIPAL)


@pytest.fixture
def producer():
    return make_actor("usr-producer", Role.PRODUCER)


@pytest.fixture
def resident():
    return make_actor("usr-resident", Role.RESIDENT)


@pytest.fixture
def other_resident():
    return make_actor("usr-resident-2", Role.RESIDENT)
