"""
Centralized Test Configuration.
"""

import pytest
from datetime import datetime
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.ledger.main import app
from backend.ledger.db.session import get_db, Base
from backend.ledger.core.jwt import create_access_token
from backend.ledger.domain.accounting.chart_of_accounts import ensure_chart_of_accounts
from backend.ledger.models.business import Business
from backend.ledger.services.cache import StatementCache
import backend.ledger.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self.sets = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def sadd(self, key, *members):
        before = len(self.sets.get(key, set()))
        self.sets.setdefault(key, set()).update(members)
        return len(self.sets[key]) - before

    async def smembers(self, key):
        return set(self.sets.get(key, set()))

    async def expire(self, key, seconds):
        return key in self.store or key in self.sets

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            if self.sets.pop(key, None) is not None:
                removed += 1
        return removed

    async def flushdb(self):
        self.store = {}
        self.sets = {}

    async def aclose(self):
        self._closed = True
        self.store = {}
        self.sets = {}


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign key constraints for SQLite
    @event.listens_for(test_engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Shared session for fixture data creation and service calls."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture(autouse=True)
def patch_redis(monkeypatch, mock_redis):
    """Route the shared statement cache to the in-process Redis."""
    monkeypatch.setattr(redis_client_module, "redis_client", mock_redis)
    return mock_redis


@pytest.fixture
def cache(mock_redis):
    return StatementCache(client=mock_redis, ttl_seconds=300, prefix="test", enabled=True)


@pytest.fixture
async def client(session_factory):
    """Async client for testing."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides = {}


@pytest.fixture
def make_business(db_session):
    """Factory: persist a business and (by default) seed its chart of accounts."""
    async def _make(name="Corner Shop", opening_capital_pence=0, vat_enabled=True, seed=True):
        business = Business(
            name=name,
            opening_capital_pence=opening_capital_pence,
            vat_enabled=vat_enabled,
            created_at=datetime(2026, 1, 1),
        )
        db_session.add(business)
        await db_session.commit()
        if seed:
            await ensure_chart_of_accounts(db_session, business.id)
        return business
    return _make


@pytest.fixture
async def business(make_business):
    """Business with a seeded chart of accounts and no opening capital."""
    return await make_business()


@pytest.fixture
def auth_headers():
    """Factory: bearer header for a staff member of a business."""
    def _headers(business_id: int, role: str = "OWNER", user_id: int = 1, username: str = "ama") -> dict:
        token = create_access_token(data={
            "sub": username,
            "user_id": user_id,
            "role": role,
            "business_id": business_id,
        })
        return {"Authorization": f"Bearer {token}"}
    return _headers
