import os
import tempfile
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Load environment variables from .env file
load_dotenv()

from app.config import settings
from app.core.clock import get_clock
from app.database import get_db
from app.dependencies import get_event_sink
from app.domain.events import DomainEvent
from app.main import app
from app.models import doctors, metadata, patients

# Test database URL - MUST be different from the application database.
# Defaults to a throwaway SQLite file; set TEST_DATABASE_URL to run against PostgreSQL.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

if not TEST_DATABASE_URL:
    _db_dir = tempfile.mkdtemp(prefix="clinic_scheduling_tests_")
    TEST_DATABASE_URL = f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'test.db')}"

if TEST_DATABASE_URL == settings.async_database_url:
    raise RuntimeError(
        "TEST_DATABASE_URL points at the application database; tests drop all tables."
    )

if TEST_DATABASE_URL.startswith("postgresql://"):
    TEST_DATABASE_URL = TEST_DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)

# NullPool avoids sharing connections across event loops
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)

TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Monday 2030-01-07 08:00 UTC
FIXED_NOW = datetime(2030, 1, 7, 8, 0, tzinfo=UTC)


class FixedClock:
    """Clock frozen at a known instant; tests move it explicitly."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current += delta


class RecordingSink:
    """Event sink that keeps every published event."""

    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    async def publish(self, event: DomainEvent) -> None:
        self.events.append(event)


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create the schema and hand out a session factory for it."""
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
        await conn.run_sync(metadata.create_all)

    yield TestSessionLocal

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def event_sink() -> RecordingSink:
    return RecordingSink()


@pytest_asyncio.fixture
async def patient_id(db_session: AsyncSession) -> UUID:
    """Insert a patient and return its ID."""
    new_id = uuid4()
    await db_session.execute(
        insert(patients).values(id=new_id, full_name="Test Patient", email="patient@example.com")
    )
    await db_session.commit()
    return new_id


@pytest_asyncio.fixture
async def doctor_id(db_session: AsyncSession) -> UUID:
    """Insert a doctor and return its ID."""
    new_id = uuid4()
    await db_session.execute(
        insert(doctors).values(id=new_id, full_name="Dr. Test", specialty="General")
    )
    await db_session.commit()
    return new_id


@pytest_asyncio.fixture
async def other_doctor_id(db_session: AsyncSession) -> UUID:
    """Insert a second doctor and return its ID."""
    new_id = uuid4()
    await db_session.execute(
        insert(doctors).values(id=new_id, full_name="Dr. Other", specialty="Cardiology")
    )
    await db_session.commit()
    return new_id


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    clock: FixedClock,
    event_sink: RecordingSink,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client bound to the test session and fixed clock."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_event_sink] = lambda: event_sink

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def at(days: int = 0, hours: int = 0, minutes: int = 0) -> datetime:
    """Instant relative to FIXED_NOW."""
    return FIXED_NOW + timedelta(days=days, hours=hours, minutes=minutes)
