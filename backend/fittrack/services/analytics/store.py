"""
SQL Record Store - RecordStoreAdapter backed by SQLAlchemy.
"""
from typing import Any, List

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fittrack.core.logging import get_logger
from fittrack.models import Exercise, ExerciseSet, ExerciseType, Program, Week, Workout
from fittrack.services.analytics.adapter import (
    ExerciseData,
    ProgramData,
    RecordStoreAdapter,
    SetData,
    WeekData,
    WorkoutData,
)

logger = get_logger(__name__)


class SqlRecordStore(RecordStoreAdapter):
    """
    Read-only record store over the training hierarchy tables.

    Children are returned ordered by creation time. Every query is scoped
    to the owning user as well as the parent id.

    Each call opens its own short-lived session: the analytics engine issues
    sibling calls concurrently and an AsyncSession must not be shared
    between concurrent operations.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _fetch_all(self, query: Select) -> List[Any]:
        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def list_programs(self, user_id: str) -> List[ProgramData]:
        rows = await self._fetch_all(
            select(Program)
            .where(Program.user_id == user_id)
            .order_by(Program.created_at)
        )
        return [
            ProgramData(
                id=row.id,
                user_id=row.user_id,
                name=row.name,
                created_at=row.created_at,
            )
            for row in rows
        ]

    async def list_weeks(self, user_id: str, program_id: str) -> List[WeekData]:
        rows = await self._fetch_all(
            select(Week)
            .where(Week.user_id == user_id, Week.program_id == program_id)
            .order_by(Week.order_index, Week.created_at)
        )
        return [
            WeekData(
                id=row.id,
                user_id=row.user_id,
                program_id=row.program_id,
                created_at=row.created_at,
                name=row.name,
            )
            for row in rows
        ]

    async def list_workouts(
        self,
        user_id: str,
        program_id: str,
        week_id: str
    ) -> List[WorkoutData]:
        rows = await self._fetch_all(
            select(Workout)
            .where(
                Workout.user_id == user_id,
                Workout.program_id == program_id,
                Workout.week_id == week_id,
            )
            .order_by(Workout.created_at)
        )
        return [
            WorkoutData(
                id=row.id,
                user_id=row.user_id,
                program_id=row.program_id,
                week_id=row.week_id,
                created_at=row.created_at,
                name=row.name,
            )
            for row in rows
        ]

    async def list_exercises(
        self,
        user_id: str,
        program_id: str,
        week_id: str,
        workout_id: str
    ) -> List[ExerciseData]:
        rows = await self._fetch_all(
            select(Exercise)
            .where(Exercise.user_id == user_id, Exercise.workout_id == workout_id)
            .order_by(Exercise.order_index, Exercise.created_at)
        )
        return [
            ExerciseData(
                id=row.id,
                user_id=row.user_id,
                program_id=program_id,
                week_id=week_id,
                workout_id=row.workout_id,
                name=row.name,
                exercise_type=ExerciseType.from_string(row.exercise_type),
                created_at=row.created_at,
            )
            for row in rows
        ]

    async def list_sets(
        self,
        user_id: str,
        program_id: str,
        week_id: str,
        workout_id: str,
        exercise_id: str
    ) -> List[SetData]:
        rows = await self._fetch_all(
            select(ExerciseSet)
            .where(
                ExerciseSet.user_id == user_id,
                ExerciseSet.exercise_id == exercise_id,
            )
            .order_by(ExerciseSet.created_at)
        )

        logger.debug(
            "Loaded sets",
            exercise_id=exercise_id,
            count=len(rows)
        )

        return [
            SetData(
                id=row.id,
                user_id=row.user_id,
                program_id=program_id,
                week_id=week_id,
                workout_id=workout_id,
                exercise_id=row.exercise_id,
                created_at=row.created_at,
                set_number=row.set_number,
                reps=row.reps,
                weight=row.weight,
                duration=row.duration,
                distance=row.distance,
                rest_time=row.rest_time,
                checked=bool(row.checked),
            )
            for row in rows
        ]
