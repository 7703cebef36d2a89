"""Pytest configuration and fixtures."""
import os
import uuid
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ.setdefault("LOG_FORMAT", "text")

from clubhub.main import app  # noqa: E402
from clubhub.database import Base, get_db  # noqa: E402
from clubhub.models.club import Club, ClubStatus  # noqa: E402
from clubhub.models.goal import Goal, Objective  # noqa: E402
from clubhub.models.task import Task, TaskPriority, TaskStatus  # noqa: E402
from clubhub.models.user import User  # noqa: E402
from clubhub.models.webhook import TaskEvent  # noqa: E402
from clubhub.services.event_service import event_dispatcher  # noqa: E402


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a fresh in-memory database per test."""
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
def session_factory(db_engine):
    """Session factory bound to the test database, for tests that need a second session."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    """Session on the per-test database."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession):
    """Async HTTP client with the database dependency overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession):
    """Create a test user."""
    user = User(
        id=uuid.uuid4(),
        email="member@example.com",
        full_name="Test Member",
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_club(db_session: AsyncSession, test_user: User):
    """Create an approved club with one member."""
    club = Club(
        id=uuid.uuid4(),
        name="Chess Club",
        description="Weekly chess practice",
        status=ClubStatus.APPROVED.value,
    )
    club.members = [test_user]
    db_session.add(club)
    await db_session.commit()
    await db_session.refresh(club)
    return club


@pytest_asyncio.fixture
async def test_objective(db_session: AsyncSession, test_club: Club):
    """Create a goal with one objective in the test club."""
    goal = Goal(id=uuid.uuid4(), club_id=test_club.id, title="Win the regional league")
    objective = Objective(
        id=uuid.uuid4(),
        goal_id=goal.id,
        club_id=test_club.id,
        title="Train twice a week",
    )
    db_session.add_all([goal, objective])
    await db_session.commit()
    await db_session.refresh(objective)
    return objective


@pytest.fixture
def make_task():
    """Factory for transient tasks used by the pure-function tests."""

    def _make(**overrides) -> Task:
        now = datetime.utcnow()
        values = dict(
            id=uuid.uuid4(),
            title="Prepare tournament",
            club_id=uuid.uuid4(),
            objective_id=uuid.uuid4(),
            status=TaskStatus.NOT_STARTED.value,
            priority=TaskPriority.MEDIUM.value,
            progress=0,
            start_date=now,
            due_date=now + timedelta(days=7),
            assignees=[],
            checklist=[],
            subtasks=[],
            dependencies=[],
            comments=[],
            tags=[],
            occurrence_number=1,
            created_by=uuid.uuid4(),
            created_at=now,
            updated_at=now,
        )
        values.update(overrides)
        return Task(**values)

    return _make


@pytest.fixture
def task_payload(test_club, test_objective):
    """Minimal valid task creation payload for the test club."""

    def _payload(**overrides):
        payload = {
            "title": "Book the hall",
            "club_id": test_club.id,
            "objective_id": test_objective.id,
            "due_date": datetime.utcnow() + timedelta(days=3),
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def captured_events():
    """Record every event the dispatcher publishes during a test."""
    received = []

    def listener(event, payload):
        received.append((event, payload))

    for event in TaskEvent:
        event_dispatcher.subscribe(event, listener)
    yield received
    for event in TaskEvent:
        event_dispatcher.unsubscribe(event, listener)
