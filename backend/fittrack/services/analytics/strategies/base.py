"""
Base Strategy - Per-exercise-type rule for spotting a new personal record.

When a single set is logged we only check the metric that matters most
for the exercise type (weight for strength, reps for bodyweight, ...)
instead of re-scanning every metric. The full multi-metric scan lives in
PersonalRecordDetector.detect_prs.
"""
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Tuple

from fittrack.models.exercise import ExerciseType
from fittrack.services.analytics.adapter import ExerciseData, SetData
from fittrack.services.analytics.records import PersonalRecord, PRType, metric_value


class PRStrategy(ABC):
    """
    Abstract base class for incremental PR checks.

    Subclasses choose which metric of the new set is compared against
    the best value among prior sets.
    """

    exercise_types: Tuple[ExerciseType, ...] = ()

    @abstractmethod
    def select_metric(self, new_set: SetData) -> Optional[PRType]:
        """
        Pick the metric to check for this set.

        Args:
            new_set: The set that was just logged

        Returns:
            PRType to compare on, or None if the set has nothing to check
        """
        pass

    def check(
        self,
        new_set: SetData,
        exercise: ExerciseData,
        prior_sets: Iterable[SetData]
    ) -> Optional[PersonalRecord]:
        """
        Compare the new set against the best prior value of the chosen metric.

        Args:
            new_set: The set that was just logged
            exercise: Exercise the set belongs to
            prior_sets: Earlier sets of the same exercise, excluding new_set

        Returns:
            PersonalRecord if the new value is strictly greater, else None
        """
        pr_type = self.select_metric(new_set)
        if pr_type is None:
            return None

        value = metric_value(new_set, pr_type)
        if value is None:
            return None

        previous_best = self._best_prior_value(prior_sets, pr_type, exclude_id=new_set.id)

        if previous_best is not None and value <= previous_best:
            return None

        return PersonalRecord.from_set(
            exercise=exercise,
            exercise_set=new_set,
            pr_type=pr_type,
            value=value,
            previous_value=previous_best,
        )

    # ========================================
    # Shared Helper Methods
    # ========================================

    def _best_prior_value(
        self,
        prior_sets: Iterable[SetData],
        pr_type: PRType,
        exclude_id: Optional[str] = None
    ) -> Optional[float]:
        """Maximum of ``pr_type`` over prior sets, or None when none recorded it."""
        values = [
            v for v in (
                metric_value(s, pr_type)
                for s in prior_sets
                if s.id != exclude_id
            )
            if v is not None
        ]
        return max(values) if values else None
