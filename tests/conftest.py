"""
Pytest fixtures for test database, client, and authentication.

Each test gets a fresh database (in-memory SQLite by default, set
TEST_DATABASE_URL to run against PostgreSQL) with tables created from the
models. The email queue is replaced by a recorder.

The plain `client` shares the test session with the requests and never
commits or rolls back on their behalf. `committing_client` runs every
request in its own session with the same commit/rollback rules as
get_db, over a file database so separate sessions see each other's
commits.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from eventreg.main import app
from eventreg.db.base import Base
from eventreg.db.session import get_db, session_scope
from eventreg.core.security import create_access_token
from eventreg.models.event import Event, EventStatus
from eventreg.models.participant import Participant, ParticipantStatus

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

ORGANIZER_ID = 1
OTHER_USER_ID = 2
ADMIN_ID = 99


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    options = {"poolclass": StaticPool} if TEST_DATABASE_URL.startswith("sqlite") else {}
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, **options)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def committing_sessions(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Session factory over a database that outlives any single session."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        url = f"sqlite+aiosqlite:///{tmp_path / 'eventreg.db'}"
    else:
        url = TEST_DATABASE_URL
    engine = create_async_engine(url, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield session_factory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def committing_client(committing_sessions) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests commit on success and roll back on error."""

    async def override_get_db():
        async with session_scope(committing_sessions) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def email_jobs(monkeypatch) -> list:
    """Record queued confirmation emails instead of pushing them to Redis."""
    jobs = []

    async def fake_add_email_job(job):
        jobs.append(job)
        return True

    monkeypatch.setattr(
        "eventreg.services.participant_service.add_email_job", fake_add_email_job
    )
    return jobs


def _headers(user_id: int, role: str = "user") -> dict:
    token = create_access_token(data={"sub": str(user_id), "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def organizer_headers() -> dict:
    return _headers(ORGANIZER_ID, "organizer")


@pytest.fixture
def other_headers() -> dict:
    return _headers(OTHER_USER_ID)


@pytest.fixture
def admin_headers() -> dict:
    return _headers(ADMIN_ID, "admin")


async def make_event(db: AsyncSession, **overrides) -> Event:
    fields = dict(
        name="PyCon Meetup",
        description="Monthly meetup",
        date=datetime.now(timezone.utc) + timedelta(days=30),
        venue="Main Hall",
        status=EventStatus.PUBLISHED,
        capacity=100,
        total_registrations=0,
        total_attendees=0,
        organizer_id=ORGANIZER_ID,
        requires_approval=False,
    )
    fields.update(overrides)
    event = Event(**fields)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


async def make_participant(db: AsyncSession, event: Event, email: str, **overrides) -> Participant:
    fields = dict(
        event_id=event.id,
        first_name="Ada",
        last_name="Lovelace",
        email=email,
        ticket_number=f"TKT-{abs(hash((event.id, email))) % 0xFFFFFFFF:08X}",
        status=ParticipantStatus.CONFIRMED,
        checked_in=False,
    )
    fields.update(overrides)
    participant = Participant(**fields)
    db.add(participant)
    event.total_registrations += 1
    await db.commit()
    await db.refresh(participant)
    await db.refresh(event)
    return participant


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession) -> Event:
    """A published event with 100 places."""
    return await make_event(db_session)


@pytest_asyncio.fixture
async def draft_event(db_session: AsyncSession) -> Event:
    return await make_event(db_session, name="Not Yet Open", status=EventStatus.DRAFT)


@pytest_asyncio.fixture
async def approval_event(db_session: AsyncSession) -> Event:
    return await make_event(db_session, name="Invite Only", requires_approval=True)


@pytest_asyncio.fixture
async def participant(db_session: AsyncSession, test_event: Event) -> Participant:
    return await make_participant(db_session, test_event, "ada@example.com")
