"""
Shared fixtures: a throwaway SQLite database per test, seeded users and tasks,
a controllable clock and an HTTP client wired to the test database.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

import app.models  # noqa: F401  (populate metadata)
from app.api.v1.submissions import get_photo_storage
from app.core.auth import create_jwt
from app.core.config import Settings
from app.core.database import get_session
from app.core.storage import PhotoStorage
from app.main import app as fastapi_app
from app.models.task import Task, TaskChecklistItem, TaskQuestion
from app.models.user import User

# Bangkok site used throughout the scenarios
SITE_LAT = 13.7469
SITE_LNG = 100.5398


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'fieldcheck.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
async def service_session(session_factory):
    """Session handed to the service under test, separate from the seeding session."""
    async with session_factory() as s:
        yield s


@pytest.fixture
def reload(session):
    """Fresh read of a row, bypassing anything cached in the seeding session."""

    async def _reload(model, ident):
        return await session.get(model, ident, populate_existing=True)

    return _reload


@pytest.fixture
def clock():
    return FakeClock()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------


async def _add_user(session: AsyncSession, name: str, role: str, status: str = "active") -> User:
    user = User(name=name, email=f"{name.lower()}@example.com", role=role, status=status)
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
async def worker(session):
    return await _add_user(session, "Somchai", "field_worker")


@pytest.fixture
async def other_worker(session):
    return await _add_user(session, "Malee", "field_worker")


@pytest.fixture
async def reviewer(session):
    return await _add_user(session, "Niran", "team_leader")


@pytest.fixture
async def manager(session):
    return await _add_user(session, "Ploy", "manager")


@pytest.fixture
def make_task(session):
    """Factory: a task with two checklist items (first critical) and one required question."""

    async def _make(assigned_to: User, created_by: User | None = None, **overrides) -> Task:
        fields = dict(
            title="Inspect rooftop antenna",
            description="Check mounting and cabling",
            location_address="Silom Rd, Bangkok",
            location_latitude=SITE_LAT,
            location_longitude=SITE_LNG,
            geofence_radius=100,
            assigned_to=assigned_to.id,
            due_date=datetime(2026, 3, 5, tzinfo=timezone.utc),
            before_photos_count=1,
            after_photos_count=1,
            created_by=created_by.id if created_by else None,
        )
        fields.update(overrides)
        task = Task(**fields)
        session.add(task)
        await session.flush()
        session.add_all(
            [
                TaskChecklistItem(task_id=task.id, item="Mount secure", is_critical=True, position=0),
                TaskChecklistItem(task_id=task.id, item="Cables labelled", position=1),
                TaskQuestion(task_id=task.id, question_text="Signal strength (dBm)?", question_type="number", position=0),
            ]
        )
        await session.commit()
        return task

    return _make


@pytest.fixture
async def task(make_task, worker, reviewer):
    return await make_task(worker, reviewer)


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_jwt(user.id, user.role)}"}

    return _headers


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_redis():
    redis = AsyncMock()
    redis.publish = AsyncMock(return_value=1)
    redis.ping = AsyncMock(return_value=True)
    redis.pubsub = MagicMock(return_value=AsyncMock())
    with patch("app.core.events.get_redis", AsyncMock(return_value=redis)):
        yield redis


@pytest.fixture
async def client(session_factory, mock_redis, tmp_path):
    async def _session_override():
        async with session_factory() as s:
            try:
                yield s
            except Exception:
                await s.rollback()
                raise

    fastapi_app.dependency_overrides[get_session] = _session_override
    fastapi_app.dependency_overrides[get_photo_storage] = lambda: PhotoStorage(
        Settings(upload_dir=str(tmp_path / "uploads"))
    )
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()
