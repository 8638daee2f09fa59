"""
Centralized Test Configuration.
"""

from types import SimpleNamespace

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from tripledger.app.main import app
from tripledger.app.db.session import get_db, Base
from tripledger.app.core.jwt import create_access_token
from tripledger.app.services.blob_store import LocalBlobStore, get_blob_store
from tripledger.app.services.change_notifier import change_notifier
import tripledger.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.published = []
        self.fail = False

    async def ping(self):
        return not self.fail

    async def publish(self, channel, message):
        if self.fail:
            raise ConnectionError("redis unavailable")
        self.published.append((channel, message))
        return 1

    def channels(self):
        return [channel for channel, _ in self.published]


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(str(tmp_path / "blobs"))


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, mock_redis, blob_store):
    """Route the app at the test database, mocked Redis and a temporary blob root."""
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = mock_redis

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    yield

    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client
    change_notifier.clear()


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


def auth_headers(identity_id: str, is_admin: bool = False) -> dict:
    token = create_access_token(data={"sub": identity_id, "is_admin": is_admin})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return auth_headers("admin-identity", is_admin=True)


@pytest.fixture
async def trip(client, admin_headers):
    """
    Trip with Alice (treasurer), Bob and Carol, each claimed by their own identity.

    Returns a namespace with ``id``, ``ids`` (name -> participant id),
    ``headers`` (name -> auth headers) and ``admin`` headers.
    """
    response = await client.post(
        "/v1/admin/trips",
        json={"name": "Jeju", "participant_names": ["Alice", "Bob", "Carol"]},
        headers=admin_headers
    )
    assert response.status_code == 201
    trip_id = response.json()["id"]

    response = await client.get(f"/v1/trips/{trip_id}/participants", headers=admin_headers)
    ids = {p["name"]: p["id"] for p in response.json()}

    headers = {}
    for name, participant_id in ids.items():
        headers[name] = auth_headers(f"{name.lower()}-identity")
        response = await client.post(
            f"/v1/trips/{trip_id}/participants/{participant_id}/claim", headers=headers[name]
        )
        assert response.status_code == 200

    response = await client.put(
        f"/v1/admin/trips/{trip_id}/participants/{ids['Alice']}/treasurer",
        json={"is_treasurer": True},
        headers=admin_headers
    )
    assert response.status_code == 200

    return SimpleNamespace(id=trip_id, ids=ids, headers=headers, admin=admin_headers)


@pytest.fixture
def create_expense(client, trip):
    """Record an expense as the treasurer and return its JSON."""
    async def _create(amount=9000, payer="Alice", sharers=("Alice", "Bob", "Carol"), description="Dinner"):
        response = await client.post(
            f"/v1/trips/{trip.id}/expenses",
            json={
                "payer_id": trip.ids[payer],
                "amount": amount,
                "description": description,
                "participant_ids": [trip.ids[name] for name in sharers],
            },
            headers=trip.headers["Alice"]
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def headers_for():
    """Build bearer headers for an arbitrary identity."""
    return auth_headers
