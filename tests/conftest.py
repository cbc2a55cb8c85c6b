import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from focusflow.clock import FrozenClock
from focusflow.config import Settings
from focusflow.database import get_db
from focusflow.dependencies import get_clock, get_current_user
from focusflow.events import EventBus, event_bus
from focusflow.main import app
from focusflow.models import Base
from focusflow.models.user import User
from focusflow.store import EngineStore

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Monday 2026-01-05 09:00 UTC
START = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


class FakeLock:
    def __init__(self, redis: "FakeRedis", name: str):
        self._redis = redis
        self.name = name

    async def __aenter__(self):
        self._redis.locks_taken.append(self.name)
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeRedis:
    """In-memory Redis mock for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}
        self.locks_taken: list[str] = []

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self._store[key] = str(value)

    def lock(self, name: str, timeout: float | None = None, blocking_timeout: float | None = None):
        return FakeLock(self, name)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


class RecordingBus(EventBus):
    def __init__(self):
        super().__init__()
        self.events = []
        self.subscribe(self.events.append)

    def types(self) -> list[str]:
        return [event.type for event in self.events]


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = User(
        id=uuid.uuid4(),
        email="test@example.com",
        display_name="Test User",
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def second_user(db_session: AsyncSession) -> User:
    user = User(
        id=uuid.uuid4(),
        email="friend@example.com",
        display_name="Friend User",
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def store(db_session: AsyncSession) -> EngineStore:
    return EngineStore(db_session)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest.fixture
def bus() -> RecordingBus:
    return RecordingBus()


@pytest.fixture
def config() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
async def client(db_engine, test_user: User, clock: FrozenClock) -> AsyncGenerator[AsyncClient, None]:
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_current_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_clock] = lambda: clock
    app.state.redis = FakeRedis()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def published_events():
    events = []
    unsubscribe = event_bus.subscribe(events.append)
    yield events
    unsubscribe()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
