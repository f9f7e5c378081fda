import os

# must be set before app.core.config is imported
os.environ.setdefault("TELEMETRY_ENABLED", "false")
os.environ.setdefault("NOTIFICATION_DISPATCH", "inline")

import pytest
import httpx

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

# Import Base + all models so metadata is complete
from app.models import Base

from app.main import app
from app.core.db import get_db, get_session_factory

from fixtures_seed import make_listing, seed  # noqa: F401,E402


def _test_db_url(tmp_path) -> str:
    # a file, not :memory:, so after-commit work can open its own connection
    return os.getenv("DATABASE_URL_TEST") or f"sqlite+aiosqlite:///{tmp_path / 'engine.db'}"


@pytest.fixture
async def async_engine(tmp_path):
    engine = create_async_engine(_test_db_url(tmp_path), future=True)
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
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
async def client(session_factory):
    """
    HTTP client bound to the test database via dependency overrides.
    Each request gets its own session, the way it would in production.
    """
    async def _override_get_db():
        async with session_factory() as db:
            yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


class RecordingNotifier:
    """Collects notices instead of writing them."""

    def __init__(self):
        self.notices = []

    async def notify_many(self, notices):
        self.notices.extend(notices)


@pytest.fixture
def recording_notifier():
    return RecordingNotifier()
