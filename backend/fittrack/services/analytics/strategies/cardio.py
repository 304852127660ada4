"""
Cardio Strategy - Duration PRs for cardio and time-based exercises.
"""
from typing import Optional

from fittrack.models.exercise import ExerciseType
from fittrack.services.analytics.adapter import SetData
from fittrack.services.analytics.records import PRType
from fittrack.services.analytics.strategies.base import PRStrategy


class CardioStrategy(PRStrategy):
    """Duration PRs; distance is optional on these sets and not checked here."""

    exercise_types = (ExerciseType.CARDIO, ExerciseType.TIME_BASED)

    def select_metric(self, new_set: SetData) -> Optional[PRType]:
        if new_set.duration is None:
            return None
        return PRType.MAX_DURATION
