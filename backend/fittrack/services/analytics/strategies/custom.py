"""
Custom Strategy - Free-form exercises check whichever metric was logged.
"""
from typing import Optional

from fittrack.models.exercise import ExerciseType
from fittrack.services.analytics.adapter import SetData
from fittrack.services.analytics.records import PRType
from fittrack.services.analytics.strategies.base import PRStrategy


class CustomStrategy(PRStrategy):
    """
    Strategy for custom exercises.

    Volume wins when both weight and reps are present; otherwise the
    first recorded field in the order weight, reps, duration, distance.
    """

    exercise_types = (ExerciseType.CUSTOM,)

    def select_metric(self, new_set: SetData) -> Optional[PRType]:
        if new_set.weight is not None and new_set.reps is not None:
            return PRType.MAX_VOLUME
        if new_set.weight is not None:
            return PRType.MAX_WEIGHT
        if new_set.reps is not None:
            return PRType.MAX_REPS
        if new_set.duration is not None:
            return PRType.MAX_DURATION
        if new_set.distance is not None:
            return PRType.MAX_DISTANCE
        return None
