"""
Date ranges used to scope analytics queries.

All user-facing ranges are inclusive on both ends and normalized to
whole days (00:00:00 through 23:59:59.999999).
"""
import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Tuple


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def add_months(year: int, month: int, offset: int) -> Tuple[int, int]:
    """
    Shift (year, month) by ``offset`` months.

    Works on an absolute month count so December + 1 is January of the
    next year and January - 1 is December of the previous one. Callers
    navigating a calendar should always offset from a fixed anchor month
    rather than chaining results, which keeps repeated navigation exact.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in 1..12, got {month}")

    total = year * 12 + (month - 1) + offset
    return total // 12, total % 12 + 1


@dataclass(frozen=True)
class DateRange:
    """Inclusive time interval."""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(
                f"DateRange start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    # ========================================
    # Factories
    # ========================================

    @classmethod
    def for_days(cls, first: date, last: date) -> "DateRange":
        """Whole-day range from ``first`` through ``last``."""
        return cls(start=start_of_day(first), end=end_of_day(last))

    @classmethod
    def this_week(cls, today: Optional[date] = None) -> "DateRange":
        """Monday through Sunday of the current week."""
        today = today or date.today()
        monday = today - timedelta(days=today.weekday())
        return cls.for_days(monday, monday + timedelta(days=6))

    @classmethod
    def month(cls, year: int, month: int) -> "DateRange":
        """First through last day of a calendar month."""
        if not 1 <= month <= 12:
            raise ValueError(f"month must be in 1..12, got {month}")
        last_day = calendar.monthrange(year, month)[1]
        return cls.for_days(date(year, month, 1), date(year, month, last_day))

    @classmethod
    def this_month(cls, today: Optional[date] = None) -> "DateRange":
        today = today or date.today()
        return cls.month(today.year, today.month)

    @classmethod
    def year(cls, year: int) -> "DateRange":
        return cls.for_days(date(year, 1, 1), date(year, 12, 31))

    @classmethod
    def this_year(cls, today: Optional[date] = None) -> "DateRange":
        today = today or date.today()
        return cls.year(today.year)

    @classmethod
    def last_30_days(cls, today: Optional[date] = None) -> "DateRange":
        """Rolling window of 30 days ending today."""
        today = today or date.today()
        return cls.for_days(today - timedelta(days=29), today)

    # ========================================
    # Queries
    # ========================================

    def contains(self, instant: datetime) -> bool:
        """Inclusive containment test."""
        return self.start <= instant <= self.end

    @property
    def duration_in_days(self) -> int:
        """Number of calendar days touched by the range."""
        return (self.end.date() - self.start.date()).days + 1

    def days(self):
        """Iterate every calendar day in the range."""
        day = self.start.date()
        last = self.end.date()
        while day <= last:
            yield day
            day += timedelta(days=1)

    def cache_fragment(self) -> str:
        return f"{self.start.isoformat()}_{self.end.isoformat()}"


class HeatmapTimeframe(str, Enum):
    """Preset ranges offered by the activity heatmap."""
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    LAST_30_DAYS = "last_30_days"
    THIS_YEAR = "this_year"

    @property
    def display_name(self) -> str:
        return {
            HeatmapTimeframe.THIS_WEEK: "This Week",
            HeatmapTimeframe.THIS_MONTH: "This Month",
            HeatmapTimeframe.LAST_30_DAYS: "Last 30 Days",
            HeatmapTimeframe.THIS_YEAR: "This Year",
        }[self]

    def date_range(self, today: Optional[date] = None) -> DateRange:
        if self is HeatmapTimeframe.THIS_WEEK:
            return DateRange.this_week(today)
        if self is HeatmapTimeframe.THIS_MONTH:
            return DateRange.this_month(today)
        if self is HeatmapTimeframe.LAST_30_DAYS:
            return DateRange.last_30_days(today)
        return DateRange.this_year(today)
