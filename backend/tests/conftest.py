"""Pytest configuration and fixtures for analytics tests."""

import itertools
from datetime import datetime, timedelta
from typing import AsyncGenerator, Callable, Dict, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import fittrack.models  # noqa: F401  registers tables on Base.metadata
from fittrack.api.analytics import get_record_store
from fittrack.core.database import Base
from fittrack.main import app as main_app
from fittrack.models.exercise import ExerciseType
from fittrack.services.analytics import (
    AnalyticsEngine,
    ExerciseData,
    InMemoryRecordStore,
    ProgramData,
    SetData,
    TTLCache,
    WeekData,
    WorkoutData,
)

USER_ID = "user-1"
OTHER_USER_ID = "user-2"

# Saturday
NOW = datetime(2025, 3, 15, 12, 0)


# -------------------------------------------------------------------------
# Clock
# -------------------------------------------------------------------------


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


# -------------------------------------------------------------------------
# Record store fixtures
# -------------------------------------------------------------------------


class RecordBuilder:
    """Adds a consistent program -> week -> workout -> exercise -> set tree to a store."""

    def __init__(self, store: InMemoryRecordStore, user_id: str = USER_ID):
        self.store = store
        self.user_id = user_id
        self._ids = itertools.count(1)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids)}"

    def program(self, created_at: datetime = NOW, name: str = "Program") -> ProgramData:
        return self.store.add_program(ProgramData(
            id=self._next_id("p"),
            user_id=self.user_id,
            name=name,
            created_at=created_at,
        ))

    def week(self, program: ProgramData, created_at: Optional[datetime] = None) -> WeekData:
        return self.store.add_week(WeekData(
            id=self._next_id("w"),
            user_id=self.user_id,
            program_id=program.id,
            created_at=created_at or program.created_at,
        ))

    def workout(self, week: WeekData, created_at: datetime) -> WorkoutData:
        return self.store.add_workout(WorkoutData(
            id=self._next_id("wo"),
            user_id=self.user_id,
            program_id=week.program_id,
            week_id=week.id,
            created_at=created_at,
        ))

    def exercise(
        self,
        workout: WorkoutData,
        name: str,
        exercise_type: ExerciseType = ExerciseType.STRENGTH,
    ) -> ExerciseData:
        return self.store.add_exercise(ExerciseData(
            id=self._next_id("e"),
            user_id=self.user_id,
            program_id=workout.program_id,
            week_id=workout.week_id,
            workout_id=workout.id,
            name=name,
            exercise_type=exercise_type,
            created_at=workout.created_at,
        ))

    def set(
        self,
        exercise: ExerciseData,
        created_at: datetime,
        checked: bool = True,
        **fields,
    ) -> SetData:
        return self.store.add_set(SetData(
            id=self._next_id("s"),
            user_id=self.user_id,
            program_id=exercise.program_id,
            week_id=exercise.week_id,
            workout_id=exercise.workout_id,
            exercise_id=exercise.id,
            created_at=created_at,
            checked=checked,
            **fields,
        ))


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def builder(store: InMemoryRecordStore) -> RecordBuilder:
    return RecordBuilder(store)


@pytest.fixture
def seeded(builder: RecordBuilder) -> Dict[str, object]:
    """
    Two programs of history around NOW.

    March 2025 (program "main"):
      workout 03-10: bench 100x5, 100x5, 110x5 (last one unchecked); run 1800s / 5000m
      workout 03-12: push-ups 20 reps, then 25 reps logged on 03-13
    February 2025 (program "old"):
      workout 02-20: squat 120x3
    """
    main = builder.program(datetime(2025, 3, 1), name="main")
    main_week = builder.week(main)

    monday = builder.workout(main_week, datetime(2025, 3, 10, 9, 0))
    bench = builder.exercise(monday, "Bench Press", ExerciseType.STRENGTH)
    bench_sets = [
        builder.set(bench, datetime(2025, 3, 10, 9, 5), weight=100.0, reps=5),
        builder.set(bench, datetime(2025, 3, 10, 9, 10), weight=100.0, reps=5),
        builder.set(bench, datetime(2025, 3, 10, 9, 15), checked=False, weight=110.0, reps=5),
    ]
    run = builder.exercise(monday, "Run", ExerciseType.CARDIO)
    builder.set(run, datetime(2025, 3, 10, 9, 30), duration=1800, distance=5000.0)

    wednesday = builder.workout(main_week, datetime(2025, 3, 12, 18, 0))
    pushups = builder.exercise(wednesday, "Push-ups", ExerciseType.BODYWEIGHT)
    builder.set(pushups, datetime(2025, 3, 12, 18, 5), reps=20)
    builder.set(pushups, datetime(2025, 3, 13, 7, 0), reps=25)

    old = builder.program(datetime(2025, 2, 1), name="old")
    old_week = builder.week(old)
    february = builder.workout(old_week, datetime(2025, 2, 20, 17, 0))
    squat = builder.exercise(february, "Squat", ExerciseType.STRENGTH)
    builder.set(squat, datetime(2025, 2, 20, 17, 10), weight=120.0, reps=3)

    return {
        "main": main,
        "old": old,
        "monday": monday,
        "wednesday": wednesday,
        "february": february,
        "bench": bench,
        "bench_sets": bench_sets,
        "run": run,
        "pushups": pushups,
        "squat": squat,
    }


@pytest.fixture
def make_set() -> Callable[..., SetData]:
    """Factory for standalone sets in unit tests."""
    counter = itertools.count(1)

    def _make(created_at: datetime = NOW, checked: bool = True, **fields) -> SetData:
        set_id = fields.pop("id", None) or f"s{next(counter)}"
        fields.setdefault("program_id", "p1")
        fields.setdefault("exercise_id", "e1")
        return SetData(
            id=set_id,
            user_id=USER_ID,
            week_id="w1",
            workout_id="wo1",
            created_at=created_at,
            checked=checked,
            **fields,
        )

    return _make


# -------------------------------------------------------------------------
# Engine fixtures
# -------------------------------------------------------------------------


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(validity=timedelta(minutes=5), clock=clock)


@pytest.fixture
def engine(store: InMemoryRecordStore, cache: TTLCache, clock: FakeClock) -> AnalyticsEngine:
    return AnalyticsEngine(
        store,
        cache=cache,
        clock=clock,
        max_concurrency=4,
        pr_history_days=365,
    )


# -------------------------------------------------------------------------
# Database fixtures
# -------------------------------------------------------------------------


@pytest.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """File-backed SQLite so concurrent store calls get their own connections."""
    db_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'records.db'}")
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    await db_engine.dispose()


# -------------------------------------------------------------------------
# HTTP client fixtures
# -------------------------------------------------------------------------


@pytest.fixture
async def client(store: InMemoryRecordStore, cache: TTLCache) -> AsyncGenerator[AsyncClient, None]:
    """Client against the app with the in-memory store and the test cache."""
    main_app.dependency_overrides[get_record_store] = lambda: store
    main_app.state.analytics_cache = cache

    transport = ASGITransport(app=main_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    main_app.dependency_overrides.clear()


@pytest.fixture
async def auth_client(client: AsyncClient) -> AsyncClient:
    """Client that sends the X-User-Id header."""
    client.headers["X-User-Id"] = USER_ID
    return client
