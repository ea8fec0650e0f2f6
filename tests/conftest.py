"""
Shared test fixtures.

Each test gets a fresh in-memory SQLite database. StaticPool keeps one
connection alive so every session (test, job runtime, repository) sees the
same database.
"""

import asyncio
import random
from datetime import datetime
from typing import Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

import weather_batch.models  # noqa: F401
from weather_batch.batch.runtime import JobLauncher
from weather_batch.database import Base
from weather_batch.models.observation import WeatherObservation
from weather_batch.services.notifier import NotificationHook

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed "now" used by job tests: 2024-07-15 14:00 local time
NOW = datetime(2024, 7, 15, 14, 0, 0)


def fixed_clock(moment: datetime = NOW):
    """Return a clock that always answers `moment`."""
    return lambda: moment


class FixedRandom(random.Random):
    """Random source whose random() always returns the same value."""

    def __init__(self, value: float):
        super().__init__()
        self.value = value

    def random(self) -> float:
        return self.value


class RecordingNotifier(NotificationHook):
    """Notification hook that remembers what it delivered."""

    def __init__(self):
        self.delivered = []

    async def notify(self, alert) -> None:
        self.delivered.append(alert.alert_title)


class FailingNotifier(NotificationHook):
    """Notification hook whose transport is always down."""

    async def notify(self, alert) -> None:
        raise ConnectionError("notification transport unavailable")


def make_observation(
    city_code: str = "Seoul",
    temperature: Optional[float] = 20.0,
    collected_at: datetime = NOW,
    weather_main: Optional[str] = "Clear",
    city_name: Optional[str] = None,
    humidity: Optional[int] = 50,
    pressure: Optional[int] = 1013,
    temperature_change: Optional[float] = None,
) -> WeatherObservation:
    """Build an unsaved observation obeying the abnormal-flag law."""
    return WeatherObservation(
        city_code=city_code,
        city_name=city_name or city_code,
        temperature=temperature,
        humidity=humidity,
        pressure=pressure,
        weather_main=weather_main,
        collected_at=collected_at,
        weather_time=collected_at,
        temperature_change=temperature_change,
        is_abnormal=temperature_change is not None and abs(temperature_change) >= 20.0,
    )


@pytest.fixture
async def engine():
    """Create a fresh in-memory database with every table."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Session for seeding and asserting. Commit before launching a job."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def launcher(session_factory):
    return JobLauncher(session_factory)


@pytest.fixture
def api_client(tmp_path):
    """
    TestClient bound to a file database under tmp_path.

    TestClient runs each request on its own event loop, so the engine uses
    NullPool and never shares a connection between loops. Rate limits are
    switched off for the duration of the test.
    """
    from fastapi.testclient import TestClient

    from weather_batch.database import get_db
    from weather_batch.dependencies.batch import get_job_launcher
    from weather_batch.main import app, limiter as app_limiter
    from weather_batch.routers.batch import limiter as batch_limiter
    from weather_batch.routers.results import limiter as results_limiter
    from weather_batch.routers.status import limiter as status_limiter
    from weather_batch.routers.weather import limiter as weather_limiter

    api_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", poolclass=NullPool)
    asyncio.run(_create_all(api_engine))
    factory = async_sessionmaker(api_engine, class_=AsyncSession, expire_on_commit=False)
    api_launcher = JobLauncher(factory)

    async def override_get_db():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    limiters = [app_limiter, batch_limiter, results_limiter, status_limiter, weather_limiter]
    for limiter in limiters:
        limiter.enabled = False
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_job_launcher] = lambda: api_launcher

    yield TestClient(app)

    app.dependency_overrides.clear()
    for limiter in limiters:
        limiter.enabled = True
    asyncio.run(api_engine.dispose())


async def _create_all(target_engine):
    async with target_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
