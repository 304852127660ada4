from fittrack.models.program import Program, Week
from fittrack.models.workout import Workout
from fittrack.models.exercise import Exercise, ExerciseSet, ExerciseType

__all__ = [
    "Program",
    "Week",
    "Workout",
    "Exercise",
    "ExerciseSet",
    "ExerciseType",
]
