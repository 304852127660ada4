"""
Workout summary snapshot for a date range.
"""
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from fittrack.models.exercise import ExerciseType
from fittrack.services.analytics.adapter import ExerciseData, SetData, WorkoutData
from fittrack.services.analytics.date_range import DateRange


@dataclass(frozen=True)
class WorkoutAnalytics:
    """Totals over the workouts created inside a date range."""
    user_id: str
    start_date: datetime
    end_date: datetime
    total_workouts: int
    total_sets: int
    total_volume: float  # sum of weight * reps
    total_duration_seconds: int
    exercise_type_breakdown: Mapping[ExerciseType, int]
    completed_workout_ids: Tuple[str, ...]

    def __post_init__(self):
        # read-only: cached instances are handed to every caller
        object.__setattr__(
            self, "exercise_type_breakdown", MappingProxyType(dict(self.exercise_type_breakdown))
        )
        object.__setattr__(self, "completed_workout_ids", tuple(self.completed_workout_ids))

    @classmethod
    def from_workout_data(
        cls,
        user_id: str,
        date_range: DateRange,
        workouts: Iterable[WorkoutData],
        exercises: Iterable[ExerciseData],
        sets: Iterable[SetData]
    ) -> "WorkoutAnalytics":
        """
        Compute totals.

        Workouts are filtered by their creation time. Exercises and sets are
        taken as given: the caller supplies the children of the in-range
        workouts.
        """
        in_range = [w for w in workouts if date_range.contains(w.created_at)]

        breakdown: Dict[ExerciseType, int] = {}
        for exercise in exercises:
            breakdown[exercise.exercise_type] = breakdown.get(exercise.exercise_type, 0) + 1

        volume = 0.0
        duration = 0
        set_count = 0
        for exercise_set in sets:
            set_count += 1
            if exercise_set.volume is not None:
                volume += exercise_set.volume
            if exercise_set.duration is not None:
                duration += exercise_set.duration

        return cls(
            user_id=user_id,
            start_date=date_range.start,
            end_date=date_range.end,
            total_workouts=len(in_range),
            total_sets=set_count,
            total_volume=volume,
            total_duration_seconds=duration,
            exercise_type_breakdown=breakdown,
            completed_workout_ids=tuple(w.id for w in in_range),
        )

    @property
    def average_workout_duration(self) -> float:
        """Average duration per workout in minutes."""
        if self.total_workouts == 0:
            return 0.0
        return self.total_duration_seconds / self.total_workouts / 60.0

    @property
    def average_sets_per_workout(self) -> float:
        if self.total_workouts == 0:
            return 0.0
        return self.total_sets / self.total_workouts

    @property
    def most_used_exercise_type(self) -> Optional[ExerciseType]:
        """Type with the most exercises; ties resolve to whichever max() sees first."""
        if not self.exercise_type_breakdown:
            return None
        return max(self.exercise_type_breakdown.items(), key=lambda item: item[1])[0]

    def to_dict(self) -> Dict[str, Any]:
        most_used = self.most_used_exercise_type
        return {
            "userId": self.user_id,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "totalWorkouts": self.total_workouts,
            "totalSets": self.total_sets,
            "totalVolume": self.total_volume,
            "totalDuration": self.total_duration_seconds,
            "averageWorkoutDuration": round(self.average_workout_duration, 2),
            "averageSetsPerWorkout": round(self.average_sets_per_workout, 2),
            "exerciseTypeBreakdown": {
                exercise_type.value: count
                for exercise_type, count in self.exercise_type_breakdown.items()
            },
            "mostUsedExerciseType": most_used.value if most_used else None,
            "completedWorkoutIds": list(self.completed_workout_ids),
        }
