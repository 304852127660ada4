"""
Strength Strategy - Heaviest weight is the headline number.
"""
from typing import Optional

from fittrack.models.exercise import ExerciseType
from fittrack.services.analytics.adapter import SetData
from fittrack.services.analytics.records import PRType
from fittrack.services.analytics.strategies.base import PRStrategy


class StrengthStrategy(PRStrategy):
    """Weight PRs for strength exercises."""

    exercise_types = (ExerciseType.STRENGTH,)

    def select_metric(self, new_set: SetData) -> Optional[PRType]:
        if new_set.weight is None:
            return None
        return PRType.MAX_WEIGHT
