"""
Workout database model.
"""
import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from fittrack.core.database import Base


class Workout(Base):
    """A workout inside a week. Analytics date-filter on created_at."""

    __tablename__ = "workouts"

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
    program_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("programs.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    week_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("weeks.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.now,
        index=True
    )
