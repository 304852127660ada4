"""
Heatmap snapshots - Calendar-bucketed activity derived from checked sets.

- ActivityHeatmapData: daily counts over an arbitrary range plus streaks
- MonthHeatmapData: day-of-month counts for one calendar month, used by
  the swipeable month view and stamped with the time it was fetched
"""
import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional

from fittrack.services.analytics.adapter import SetData
from fittrack.services.analytics.cache import DEFAULT_VALIDITY
from fittrack.services.analytics.date_range import DateRange
from fittrack.services.analytics.streaks import compute_streaks


class HeatmapIntensity(str, Enum):
    """Colour bucket for a day's set count."""
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @classmethod
    def from_set_count(cls, count: int) -> "HeatmapIntensity":
        """0 -> none, 1-5 -> low, 6-15 -> medium, 16-25 -> high, 26+ -> very high."""
        if count <= 0:
            return cls.NONE
        if count <= 5:
            return cls.LOW
        if count <= 15:
            return cls.MEDIUM
        if count <= 25:
            return cls.HIGH
        return cls.VERY_HIGH

    @property
    def display_name(self) -> str:
        return {
            HeatmapIntensity.NONE: "No activity",
            HeatmapIntensity.LOW: "Light activity",
            HeatmapIntensity.MEDIUM: "Moderate activity",
            HeatmapIntensity.HIGH: "High activity",
            HeatmapIntensity.VERY_HIGH: "Very high activity",
        }[self]


@dataclass(frozen=True)
class HeatmapDay:
    """One cell of the heatmap grid."""
    date: date
    set_count: int
    intensity: HeatmapIntensity


def count_checked_sets_by_day(
    sets: Iterable[SetData],
    date_range: Optional[DateRange] = None
) -> Dict[date, int]:
    """
    Group checked sets by the calendar day they were logged.

    Unchecked sets and sets outside ``date_range`` are ignored. Only days
    with at least one set appear in the result.
    """
    counts: Dict[date, int] = {}
    for exercise_set in sets:
        if not exercise_set.checked:
            continue
        if date_range is not None and not date_range.contains(exercise_set.created_at):
            continue
        day = exercise_set.created_at.date()
        counts[day] = counts.get(day, 0) + 1
    return counts


@dataclass(frozen=True)
class ActivityHeatmapData:
    """GitHub-style activity snapshot over a date range."""
    user_id: str
    range_start: date
    range_end: date
    daily_counts: Mapping[date, int]
    current_streak: int
    longest_streak: int
    program_filter: Optional[str] = None

    def __post_init__(self):
        # snapshots are shared through the cache
        object.__setattr__(self, "daily_counts", MappingProxyType(dict(self.daily_counts)))

    @classmethod
    def from_sets(
        cls,
        user_id: str,
        date_range: DateRange,
        sets: Iterable[SetData],
        reference_today: date,
        program_filter: Optional[str] = None
    ) -> "ActivityHeatmapData":
        """Bucket checked sets by day and compute streaks as of ``reference_today``."""
        daily_counts = count_checked_sets_by_day(
            (s for s in sets if program_filter is None or s.program_id == program_filter),
            date_range,
        )
        streaks = compute_streaks(daily_counts, reference_today)

        return cls(
            user_id=user_id,
            range_start=date_range.start.date(),
            range_end=date_range.end.date(),
            daily_counts=daily_counts,
            current_streak=streaks.current,
            longest_streak=streaks.longest,
            program_filter=program_filter,
        )

    @property
    def year(self) -> int:
        return self.range_start.year

    @property
    def total_sets(self) -> int:
        return sum(self.daily_counts.values())

    def get_set_count_for_date(self, day: date) -> int:
        return self.daily_counts.get(day, 0)

    def get_intensity_for_date(self, day: date) -> HeatmapIntensity:
        return HeatmapIntensity.from_set_count(self.get_set_count_for_date(day))

    def get_heatmap_days(self) -> List[HeatmapDay]:
        """Every day of the range, including empty ones."""
        days = []
        for day in DateRange.for_days(self.range_start, self.range_end).days():
            count = self.get_set_count_for_date(day)
            days.append(HeatmapDay(
                date=day,
                set_count=count,
                intensity=HeatmapIntensity.from_set_count(count),
            ))
        return days

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "year": self.year,
            "rangeStart": self.range_start.isoformat(),
            "rangeEnd": self.range_end.isoformat(),
            "dailyCounts": {
                day.isoformat(): count
                for day, count in sorted(self.daily_counts.items())
            },
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "totalSets": self.total_sets,
            "programFilter": self.program_filter,
        }


@dataclass(frozen=True)
class MonthHeatmapData:
    """Day-of-month activity for a single calendar month."""
    year: int
    month: int
    daily_counts: Mapping[int, int]
    fetched_at: datetime = field(default_factory=datetime.now)
    validity: timedelta = DEFAULT_VALIDITY

    def __post_init__(self):
        object.__setattr__(self, "daily_counts", MappingProxyType(dict(self.daily_counts)))

    @classmethod
    def from_sets(
        cls,
        year: int,
        month: int,
        sets: Iterable[SetData],
        fetched_at: datetime,
        validity: timedelta = DEFAULT_VALIDITY
    ) -> "MonthHeatmapData":
        """Count checked sets per day of the month; sets outside the month are ignored."""
        month_range = DateRange.month(year, month)
        by_date = count_checked_sets_by_day(sets, month_range)

        return cls(
            year=year,
            month=month,
            daily_counts={day.day: count for day, count in by_date.items()},
            fetched_at=fetched_at,
            validity=validity,
        )

    @property
    def total_sets(self) -> int:
        return sum(self.daily_counts.values())

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def is_valid_at(self, now: datetime) -> bool:
        """True while ``now`` is inside the validity window after fetched_at."""
        return now - self.fetched_at < self.validity

    @property
    def is_cache_valid(self) -> bool:
        return self.is_valid_at(datetime.now())

    def get_set_count_for_day(self, day: int) -> int:
        return self.daily_counts.get(day, 0)

    def get_intensity_for_day(self, day: int) -> HeatmapIntensity:
        return HeatmapIntensity.from_set_count(self.get_set_count_for_day(day))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "daysInMonth": self.days_in_month,
            "dailyCounts": {str(day): count for day, count in sorted(self.daily_counts.items())},
            "totalSets": self.total_sets,
            "fetchedAt": self.fetched_at.isoformat(),
        }
