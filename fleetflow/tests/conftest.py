"""
Centralized Test Configuration.

Every test gets its own SQLite file database, opened through the same
engine builder the application uses, so BEGIN IMMEDIATE locking is
exercised exactly as in the running service.
"""

import itertools
from datetime import date, timedelta

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession

from fleetflow.app.main import app
from fleetflow.app.db.session import build_engine, get_db, get_session_factory, Base
from fleetflow.app.core import token_revocation
from fleetflow.app.core.dependencies import get_coordinator, get_registry
from fleetflow.app.core.jwt import create_access_token, token_claims
from fleetflow.app.core.security import get_password_hash
from fleetflow.app.domain.fleet.coordinator import FleetCoordinator
from fleetflow.app.domain.fleet.registry import FleetRegistry
from fleetflow.app.models.user import User

# Fixed clock for license checks
TODAY = date(2026, 3, 1)

PASSWORD = "password123"
PASSWORD_HASH = get_password_hash(PASSWORD)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        self.store[key] = value
        return True

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'fleetflow.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
def coordinator(session_factory):
    return FleetCoordinator(session_factory, today=lambda: TODAY)


@pytest.fixture
def registry(session_factory):
    return FleetRegistry(session_factory, today=lambda: TODAY)


@pytest.fixture
def make_vehicle(registry):
    counter = itertools.count(1)

    async def _make(**overrides):
        n = next(counter)
        data = {
            "name": f"Van {n}",
            "license_plate": f"FF-{n:04d}",
            "max_capacity_kg": 1000,
            "odometer_km": 10000,
        }
        data.update(overrides)
        return await registry.create_vehicle(data)

    return _make


@pytest.fixture
def make_driver(registry):
    counter = itertools.count(1)

    async def _make(**overrides):
        n = next(counter)
        data = {
            "name": f"Driver {n}",
            "license_number": f"DL-{n:05d}",
            "license_category": "c",
            "license_expiry": TODAY + timedelta(days=365),
        }
        data.update(overrides)
        return await registry.create_driver(data)

    return _make


@pytest.fixture
async def redis_mock(mocker):
    redis = MockRedis()
    mocker.patch.object(token_revocation, "redis_client", redis)
    return redis


@pytest.fixture
async def client(session_factory, coordinator, registry, redis_mock):
    """Async client wired to the per-test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_coordinator] = lambda: coordinator
    app.dependency_overrides[get_registry] = lambda: registry

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


@pytest.fixture
def make_user(session_factory):
    counter = itertools.count(1)

    async def _make(role, driver_id=None, is_active=True, email=None):
        n = next(counter)
        async with session_factory() as session:
            user = User(
                email=email or f"{role.value.lower()}{n}@fleet.example.com",
                name=f"{role.value.title()} {n}",
                hashed_password=PASSWORD_HASH,
                role=role,
                driver_id=driver_id,
                is_active=is_active
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
        return user

    return _make


def bearer(user: User) -> dict:
    token = create_access_token(token_claims(user))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for(make_user):
    """Create a user with the given role and return its auth headers."""
    async def _headers(role, **kwargs):
        return bearer(await make_user(role, **kwargs))

    return _headers


@pytest.fixture
def bearer_for():
    """Auth headers for an existing user."""
    return bearer


@pytest.fixture
def today():
    return TODAY
