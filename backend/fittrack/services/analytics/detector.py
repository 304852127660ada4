"""
Personal Record Detector - Finds PRs in a user's logged sets.

Two entry points:
- detect_prs: full scan of an exercise's history, every metric; this is
  the source of truth for PR listings
- check_for_new_pr: cheap check of one freshly logged set on the metric
  that matters for its exercise type
"""
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from fittrack.core.logging import get_logger
from fittrack.services.analytics.adapter import ExerciseData, SetData
from fittrack.services.analytics.records import PersonalRecord, PRType, metric_value
from fittrack.services.analytics.strategies import get_strategy

logger = get_logger(__name__)

# Metrics tracked by the full scan, in the order records are emitted per set
SCANNED_METRICS = (
    PRType.MAX_WEIGHT,
    PRType.MAX_REPS,
    PRType.MAX_VOLUME,
    PRType.MAX_DURATION,
    PRType.MAX_DISTANCE,
)


class PersonalRecordDetector:
    """
    Stateless PR detection.

    Usage:
        detector = PersonalRecordDetector()
        prs = detector.detect_prs(exercise, sets)
        pr = detector.check_for_new_pr(new_set, exercise, prior_sets)
    """

    def detect_prs(
        self,
        exercise: ExerciseData,
        sets: Iterable[SetData]
    ) -> List[PersonalRecord]:
        """
        Scan an exercise's sets in time order and emit every PR.

        A running maximum is kept per metric. A set produces a record for a
        metric when its value is strictly greater than that maximum (or no
        maximum exists yet). Ties never produce a record.

        Args:
            exercise: Exercise the sets belong to
            sets: Sets of that exercise, any order

        Returns:
            PersonalRecords in the order they were achieved
        """
        records: List[PersonalRecord] = []
        best: Dict[PRType, Optional[float]] = {pr_type: None for pr_type in SCANNED_METRICS}

        for exercise_set in sorted(sets, key=lambda s: s.created_at):
            for pr_type in SCANNED_METRICS:
                value = metric_value(exercise_set, pr_type)
                if value is None:
                    continue

                previous = best[pr_type]
                if previous is not None and value <= previous:
                    continue

                records.append(PersonalRecord.from_set(
                    exercise=exercise,
                    exercise_set=exercise_set,
                    pr_type=pr_type,
                    value=value,
                    previous_value=previous,
                ))
                best[pr_type] = value

        return records

    def detect_all(
        self,
        exercises: Iterable[ExerciseData],
        sets: Iterable[SetData]
    ) -> List[PersonalRecord]:
        """Run detect_prs for every exercise that has sets."""
        sets_by_exercise: Dict[str, List[SetData]] = defaultdict(list)
        for exercise_set in sets:
            sets_by_exercise[exercise_set.exercise_id].append(exercise_set)

        records: List[PersonalRecord] = []
        for exercise in exercises:
            exercise_sets = sets_by_exercise.get(exercise.id)
            if not exercise_sets:
                continue
            records.extend(self.detect_prs(exercise, exercise_sets))

        logger.debug(
            "Detected personal records",
            exercises=len(sets_by_exercise),
            records=len(records)
        )

        return records

    def check_for_new_pr(
        self,
        new_set: SetData,
        exercise: ExerciseData,
        prior_sets: Iterable[SetData]
    ) -> Optional[PersonalRecord]:
        """
        Check whether a just-logged set is a PR on its exercise type's metric.

        Args:
            new_set: The set that was just logged
            exercise: Exercise the set belongs to
            prior_sets: Other sets of the exercise; new_set is skipped if present

        Returns:
            At most one PersonalRecord
        """
        strategy = get_strategy(exercise.exercise_type)
        return strategy.check(new_set, exercise, prior_sets)
