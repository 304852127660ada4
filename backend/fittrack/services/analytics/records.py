"""
Personal record types and formatting.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from fittrack.models.exercise import ExerciseType
from fittrack.services.analytics.adapter import ExerciseData, SetData


class PRType(str, Enum):
    """Metric a personal record was set on."""
    ONE_REP_MAX = "one_rep_max"
    MAX_WEIGHT = "max_weight"
    MAX_REPS = "max_reps"
    MAX_VOLUME = "max_volume"
    MAX_DURATION = "max_duration"
    MAX_DISTANCE = "max_distance"

    @property
    def display_name(self) -> str:
        return {
            PRType.ONE_REP_MAX: "1RM",
            PRType.MAX_WEIGHT: "Max Weight",
            PRType.MAX_REPS: "Max Reps",
            PRType.MAX_VOLUME: "Volume PR",
            PRType.MAX_DURATION: "Max Duration",
            PRType.MAX_DISTANCE: "Max Distance",
        }[self]

    @property
    def wire_value(self) -> str:
        """Stored form, e.g. ``maxweight``."""
        return self.value.replace("_", "")

    @property
    def id_suffix(self) -> str:
        return {
            PRType.ONE_REP_MAX: "1rm",
            PRType.MAX_WEIGHT: "weight",
            PRType.MAX_REPS: "reps",
            PRType.MAX_VOLUME: "volume",
            PRType.MAX_DURATION: "duration",
            PRType.MAX_DISTANCE: "distance",
        }[self]

    @classmethod
    def from_string(cls, value: Optional[str]) -> "PRType":
        """Accepts ``maxweight`` or ``max_weight`` forms; unknown -> MAX_WEIGHT."""
        normalized = (value or "").strip().lower().replace("_", "")
        for member in cls:
            if member.wire_value == normalized:
                return member
        return cls.MAX_WEIGHT


def metric_value(exercise_set: SetData, pr_type: PRType) -> Optional[float]:
    """Value of ``pr_type`` recorded on a set, or None if the set lacks it."""
    if pr_type is PRType.MAX_WEIGHT:
        return exercise_set.weight
    if pr_type is PRType.MAX_REPS:
        return None if exercise_set.reps is None else float(exercise_set.reps)
    if pr_type is PRType.MAX_VOLUME:
        return exercise_set.volume
    if pr_type is PRType.MAX_DURATION:
        return None if exercise_set.duration is None else float(exercise_set.duration)
    if pr_type is PRType.MAX_DISTANCE:
        return exercise_set.distance
    # 1RM is never derived from a single set
    return None


def _trim_number(value: float) -> str:
    """'100' for whole numbers, one decimal otherwise."""
    if value == round(value):
        return f"{value:.0f}"
    return f"{value:.1f}"


@dataclass(frozen=True)
class PersonalRecord:
    """A set that beat every earlier value of one metric on one exercise."""
    id: str
    user_id: str
    exercise_id: str
    exercise_name: str
    exercise_type: ExerciseType
    pr_type: PRType
    value: float
    previous_value: Optional[float]
    achieved_at: datetime
    workout_id: str
    set_id: str

    @classmethod
    def from_set(
        cls,
        exercise: ExerciseData,
        exercise_set: SetData,
        pr_type: PRType,
        value: float,
        previous_value: Optional[float]
    ) -> "PersonalRecord":
        return cls(
            id=f"{exercise_set.id}_{pr_type.id_suffix}",
            user_id=exercise_set.user_id,
            exercise_id=exercise.id,
            exercise_name=exercise.name,
            exercise_type=exercise.exercise_type,
            pr_type=pr_type,
            value=value,
            previous_value=previous_value,
            achieved_at=exercise_set.created_at,
            workout_id=exercise_set.workout_id,
            set_id=exercise_set.id,
        )

    @property
    def improvement(self) -> float:
        if self.previous_value is None:
            return self.value
        return self.value - self.previous_value

    @property
    def improvement_string(self) -> str:
        if self.previous_value is None:
            return "New PR!"
        diff = self.improvement
        prefix = "+" if diff > 0 else ""
        return f"{prefix}{_trim_number(diff)}"

    @property
    def display_value(self) -> str:
        value = self.value

        if self.pr_type is PRType.MAX_WEIGHT:
            return f"{_trim_number(value)}kg"
        if self.pr_type is PRType.MAX_REPS:
            return f"{int(value)} reps"
        if self.pr_type is PRType.MAX_DURATION:
            # Under two minutes read better as plain seconds
            if value < 120:
                return f"{int(value)}s"
            minutes = int(value // 60)
            seconds = int(value % 60)
            if seconds == 0:
                return f"{minutes}m"
            return f"{minutes}m {seconds}s"
        if self.pr_type is PRType.MAX_DISTANCE:
            if value >= 1000:
                return f"{value / 1000:.2f}km"
            return f"{value:.0f}m"
        if self.pr_type is PRType.MAX_VOLUME:
            return f"{value:.0f} vol"
        return f"{value:.0f}kg (1RM)"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "exerciseId": self.exercise_id,
            "exerciseName": self.exercise_name,
            "exerciseType": self.exercise_type.value,
            "prType": self.pr_type.wire_value,
            "value": self.value,
            "previousValue": self.previous_value,
            "improvement": self.improvement,
            "displayValue": self.display_value,
            "achievedAt": self.achieved_at.isoformat(),
            "workoutId": self.workout_id,
            "setId": self.set_id,
        }
