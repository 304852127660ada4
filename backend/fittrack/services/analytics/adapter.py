"""
Record Store Adapter - Read-only access to a user's training hierarchy.

The analytics engine never talks to the database directly. It walks
Programs -> Weeks -> Workouts -> Exercises -> Sets through this interface,
so any backend (SQL, document store, in-memory fixtures) can feed it.

Implementations:
- InMemoryRecordStore (this module), used for tests and local tooling
- SqlRecordStore (store.py), backed by SQLAlchemy
"""
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from fittrack.models.exercise import ExerciseType


@dataclass(frozen=True)
class ProgramData:
    """Training program."""
    id: str
    user_id: str
    name: str
    created_at: datetime


@dataclass(frozen=True)
class WeekData:
    """Week inside a program."""
    id: str
    user_id: str
    program_id: str
    created_at: datetime
    name: str = ""


@dataclass(frozen=True)
class WorkoutData:
    """Workout inside a week."""
    id: str
    user_id: str
    program_id: str
    week_id: str
    created_at: datetime
    name: str = ""


@dataclass(frozen=True)
class ExerciseData:
    """Exercise inside a workout."""
    id: str
    user_id: str
    program_id: str
    week_id: str
    workout_id: str
    name: str
    exercise_type: ExerciseType
    created_at: datetime


@dataclass(frozen=True)
class SetData:
    """
    Single logged set.

    Every numeric field is optional; which ones are filled depends on the
    exercise type (weight/reps for strength, duration/distance for cardio).
    """
    id: str
    user_id: str
    program_id: str
    week_id: str
    workout_id: str
    exercise_id: str
    created_at: datetime
    set_number: int = 1
    reps: Optional[int] = None
    weight: Optional[float] = None  # kg
    duration: Optional[int] = None  # seconds
    distance: Optional[float] = None  # meters
    rest_time: Optional[int] = None  # seconds
    checked: bool = False

    @property
    def volume(self) -> Optional[float]:
        """weight * reps, or None unless both are recorded."""
        if self.weight is None or self.reps is None:
            return None
        return self.weight * self.reps


class RecordStoreAdapter(ABC):
    """
    Abstract read-only view of one user's training hierarchy.

    Every call is a round trip to the backing store and may fail
    independently of its siblings.
    """

    @abstractmethod
    async def list_programs(self, user_id: str) -> List[ProgramData]:
        pass

    @abstractmethod
    async def list_weeks(self, user_id: str, program_id: str) -> List[WeekData]:
        pass

    @abstractmethod
    async def list_workouts(
        self,
        user_id: str,
        program_id: str,
        week_id: str
    ) -> List[WorkoutData]:
        pass

    @abstractmethod
    async def list_exercises(
        self,
        user_id: str,
        program_id: str,
        week_id: str,
        workout_id: str
    ) -> List[ExerciseData]:
        pass

    @abstractmethod
    async def list_sets(
        self,
        user_id: str,
        program_id: str,
        week_id: str,
        workout_id: str,
        exercise_id: str
    ) -> List[SetData]:
        pass


class StoreBranchError(RuntimeError):
    """A branch of the hierarchy could not be read."""
    pass


class InMemoryRecordStore(RecordStoreAdapter):
    """
    Dict-backed record store.

    Parent ids listed in ``fail_on`` raise StoreBranchError when their
    children are requested, which simulates a corrupted or unreachable
    collection.
    """

    def __init__(self, fail_on: Optional[Iterable[str]] = None):
        self._programs: Dict[str, List[ProgramData]] = defaultdict(list)
        self._weeks: Dict[str, List[WeekData]] = defaultdict(list)
        self._workouts: Dict[str, List[WorkoutData]] = defaultdict(list)
        self._exercises: Dict[str, List[ExerciseData]] = defaultdict(list)
        self._sets: Dict[str, List[SetData]] = defaultdict(list)
        self.fail_on: Set[str] = set(fail_on or ())
        self.calls = 0

    # ========================================
    # Writers
    # ========================================

    def add_program(self, program: ProgramData) -> ProgramData:
        self._programs[program.user_id].append(program)
        return program

    def add_week(self, week: WeekData) -> WeekData:
        self._weeks[week.program_id].append(week)
        return week

    def add_workout(self, workout: WorkoutData) -> WorkoutData:
        self._workouts[workout.week_id].append(workout)
        return workout

    def add_exercise(self, exercise: ExerciseData) -> ExerciseData:
        self._exercises[exercise.workout_id].append(exercise)
        return exercise

    def add_set(self, exercise_set: SetData) -> SetData:
        self._sets[exercise_set.exercise_id].append(exercise_set)
        return exercise_set

    # ========================================
    # RecordStoreAdapter
    # ========================================

    def _check(self, parent_id: str) -> None:
        self.calls += 1
        if parent_id in self.fail_on:
            raise StoreBranchError(f"Failed to read children of {parent_id}")

    async def list_programs(self, user_id: str) -> List[ProgramData]:
        self._check(user_id)
        return list(self._programs.get(user_id, []))

    async def list_weeks(self, user_id: str, program_id: str) -> List[WeekData]:
        self._check(program_id)
        return [w for w in self._weeks.get(program_id, []) if w.user_id == user_id]

    async def list_workouts(
        self,
        user_id: str,
        program_id: str,
        week_id: str
    ) -> List[WorkoutData]:
        self._check(week_id)
        return [w for w in self._workouts.get(week_id, []) if w.user_id == user_id]

    async def list_exercises(
        self,
        user_id: str,
        program_id: str,
        week_id: str,
        workout_id: str
    ) -> List[ExerciseData]:
        self._check(workout_id)
        return [e for e in self._exercises.get(workout_id, []) if e.user_id == user_id]

    async def list_sets(
        self,
        user_id: str,
        program_id: str,
        week_id: str,
        workout_id: str,
        exercise_id: str
    ) -> List[SetData]:
        self._check(exercise_id)
        return [s for s in self._sets.get(exercise_id, []) if s.user_id == user_id]
