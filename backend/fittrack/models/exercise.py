"""
Exercise and ExerciseSet database models.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import String, DateTime, Float, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from fittrack.core.database import Base


class ExerciseType(str, Enum):
    """Kinds of exercise. Decides which set fields matter."""
    STRENGTH = "strength"
    CARDIO = "cardio"
    BODYWEIGHT = "bodyweight"
    CUSTOM = "custom"
    TIME_BASED = "time-based"

    @property
    def display_name(self) -> str:
        return {
            ExerciseType.STRENGTH: "Strength",
            ExerciseType.CARDIO: "Cardio",
            ExerciseType.BODYWEIGHT: "Bodyweight",
            ExerciseType.CUSTOM: "Custom",
            ExerciseType.TIME_BASED: "Time-based",
        }[self]

    @classmethod
    def from_string(cls, value: Optional[str]) -> "ExerciseType":
        """Parse a stored value. Unknown values fall back to CUSTOM."""
        normalized = (value or "").strip().lower()
        if normalized in ("time-based", "timebased", "time_based"):
            return cls.TIME_BASED
        for member in cls:
            if member.value == normalized:
                return member
        return cls.CUSTOM


class Exercise(Base):
    """An exercise inside a workout."""

    __tablename__ = "exercises"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        index=True
    )
    program_id: Mapped[str] = mapped_column(String(64), nullable=False)
    week_id: Mapped[str] = mapped_column(String(64), nullable=False)
    workout_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("workouts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    exercise_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ExerciseType.CUSTOM.value
    )
    order_index: Mapped[int] = mapped_column(nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.now
    )


class ExerciseSet(Base):
    """A logged set. All numeric fields are optional."""

    __tablename__ = "exercise_sets"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        index=True
    )
    program_id: Mapped[str] = mapped_column(String(64), nullable=False)
    week_id: Mapped[str] = mapped_column(String(64), nullable=False)
    workout_id: Mapped[str] = mapped_column(String(64), nullable=False)
    exercise_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("exercises.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    set_number: Mapped[int] = mapped_column(nullable=False, default=1)
    reps: Mapped[Optional[int]] = mapped_column(nullable=True)
    weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # kg
    duration: Mapped[Optional[int]] = mapped_column(nullable=True)  # seconds
    distance: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # meters
    rest_time: Mapped[Optional[int]] = mapped_column(nullable=True)  # seconds
    checked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.now,
        index=True
    )
