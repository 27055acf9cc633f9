"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from tracking_backend.app.main import app
from tracking_backend.app.db.session import get_db, Base, enable_sqlite_foreign_keys
from tracking_backend.app.core.redis_client import get_redis
from tracking_backend.app.core.security import get_password_hash
from tracking_backend.app.core.jwt import create_access_token
from tracking_backend.app.models.user import User
import tracking_backend.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Foreign keys on, so deleting a shipment cascades to its timeline
event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


# Redis Fixture (Session Scope)
@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Apply overrides once for the session."""

    # Patch the global redis client used by token revocation and /health
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return redis_client_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield

    # Restore and clear
    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
async def admin_user(db_session):
    user = User(
        email="admin@test.com",
        username="admin",
        hashed_password=get_password_hash("admin-pass-123"),
        is_active=True
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def admin_token(admin_user):
    return create_access_token(data={"sub": admin_user.username, "user_id": admin_user.id})


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def shipment_payload():
    """A complete create payload: Tokyo to Boston."""
    return {
        "sender_name": "Kenji Sato",
        "sender_phone": "+81 3 1234 5678",
        "sender_email": "kenji@example.jp",
        "sender_street": "1-2-3 Shibuya",
        "sender_city": "Tokyo",
        "sender_country": "Japan",
        "receiver_name": "Alice Walker",
        "receiver_phone": "+1 617 555 0100",
        "receiver_street": "5 Elm St",
        "receiver_city": "Boston",
        "receiver_country": "USA",
        "package_type": "Documents",
        "weight_kg": 1.5,
        "declared_value_usd": 120.0,
    }
