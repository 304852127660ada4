"""
Exercise-type-specific PR strategies.

Each strategy decides which metric an incremental PR check compares for
one or more ExerciseType values. Every ExerciseType must be covered.
"""
from typing import Dict

from fittrack.models.exercise import ExerciseType
from fittrack.services.analytics.strategies.base import PRStrategy
from fittrack.services.analytics.strategies.bodyweight import BodyweightStrategy
from fittrack.services.analytics.strategies.cardio import CardioStrategy
from fittrack.services.analytics.strategies.custom import CustomStrategy
from fittrack.services.analytics.strategies.strength import StrengthStrategy


def _build_registry(*strategies: PRStrategy) -> Dict[ExerciseType, PRStrategy]:
    registry: Dict[ExerciseType, PRStrategy] = {}
    for strategy in strategies:
        for exercise_type in strategy.exercise_types:
            if exercise_type in registry:
                raise RuntimeError(f"Duplicate PR strategy for {exercise_type.value}")
            registry[exercise_type] = strategy

    missing = set(ExerciseType) - set(registry)
    if missing:
        names = ", ".join(sorted(t.value for t in missing))
        raise RuntimeError(f"No PR strategy for exercise types: {names}")

    return registry


STRATEGIES = _build_registry(
    StrengthStrategy(),
    BodyweightStrategy(),
    CardioStrategy(),
    CustomStrategy(),
)


def get_strategy(exercise_type: ExerciseType) -> PRStrategy:
    """Strategy responsible for ``exercise_type``."""
    return STRATEGIES[exercise_type]


__all__ = [
    "PRStrategy",
    "StrengthStrategy",
    "BodyweightStrategy",
    "CardioStrategy",
    "CustomStrategy",
    "STRATEGIES",
    "get_strategy",
]
