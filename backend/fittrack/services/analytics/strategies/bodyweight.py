"""
Bodyweight Strategy - Load is fixed, so reps are what improve.
"""
from typing import Optional

from fittrack.models.exercise import ExerciseType
from fittrack.services.analytics.adapter import SetData
from fittrack.services.analytics.records import PRType
from fittrack.services.analytics.strategies.base import PRStrategy


class BodyweightStrategy(PRStrategy):
    """Rep PRs for bodyweight exercises."""

    exercise_types = (ExerciseType.BODYWEIGHT,)

    def select_metric(self, new_set: SetData) -> Optional[PRType]:
        if new_set.reps is None:
            return None
        return PRType.MAX_REPS
