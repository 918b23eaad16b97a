"""Shared fixtures for ranking tests."""

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ironcore.config import Settings
from ironcore.db.models import Base, SleepStage
from ironcore.ranking.scoring import SleepInterval, WorkoutRecord
from ironcore.services.ranking import RankingService, UserLocks

# Monday
WEEK_START = date(2026, 10, 12)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    """UTC datetime on a given day."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def workout(day: date, hour: int, minutes: float, kcal: float | None = None) -> WorkoutRecord:
    start = at(day, hour)
    return WorkoutRecord(start=start, end=start + timedelta(minutes=minutes), active_energy_kcal=kcal)


def sleep(
    day: date, hour: int, hours: float, stage: SleepStage = SleepStage.ASLEEP_CORE
) -> SleepInterval:
    start = at(day, hour)
    return SleepInterval(start=start, end=start + timedelta(hours=hours), stage=stage)


def full_week(week_start: date = WEEK_START) -> tuple[list[WorkoutRecord], list[SleepInterval]]:
    """5 training days, 300 minutes, 1200 kcal and 5 nights of 7h sleep."""
    days = [week_start + timedelta(days=i) for i in range(5)]
    workouts = [workout(day, 7, 60, 240) for day in days]
    nights = [sleep(day, 22, 7) for day in days]
    return workouts, nights


class FakeActivitySource:
    """In-memory activity source with switchable failure modes."""

    def __init__(
        self,
        workouts: list[WorkoutRecord] | None = None,
        sleep: list[SleepInterval] | None = None,
        available: bool = True,
        error: Exception | None = None,
    ) -> None:
        self.workouts = workouts or []
        self.sleep = sleep or []
        self.available = available
        self.error = error
        self.calls = 0

    async def fetch_workouts(self, start: datetime, end: datetime):
        self.calls += 1
        if self.error:
            raise self.error
        if not self.available:
            return None
        return [w for w in self.workouts if start <= w.start < end]

    async def fetch_sleep(self, start: datetime, end: datetime):
        if self.error:
            raise self.error
        if not self.available:
            return None
        return [s for s in self.sleep if start <= s.start < end]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        default_timezone="UTC",
        _env_file=None,
    )


@pytest.fixture
async def async_engine():
    """Create async SQLite in-memory engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(async_engine):
    """Create async session for testing with automatic rollback."""
    async_session_factory = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def activity() -> FakeActivitySource:
    workouts, nights = full_week()
    return FakeActivitySource(workouts=workouts, sleep=nights)


@pytest.fixture
def service(db_session: AsyncSession, activity: FakeActivitySource, settings: Settings) -> RankingService:
    return RankingService(db_session, activity, settings=settings, locks=UserLocks())
