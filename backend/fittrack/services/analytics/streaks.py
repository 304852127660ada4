"""
Streak calculation over sparse per-day activity counts.
"""
from datetime import date, timedelta
from typing import Mapping, NamedTuple


class Streaks(NamedTuple):
    current: int
    longest: int


def compute_streaks(daily_counts: Mapping[date, int], reference_today: date) -> Streaks:
    """
    Compute current and longest runs of consecutive active days.

    A day is active when its count is above zero; missing days count as
    zero. The longest streak is the longest run anywhere in the map. The
    current streak counts back from ``reference_today`` and is 0 when
    today itself has no activity.

    Args:
        daily_counts: Calendar date -> activity count
        reference_today: The day treated as "today"

    Returns:
        Streaks(current, longest)
    """
    active_days = sorted(day for day, count in daily_counts.items() if count > 0)

    if not active_days:
        return Streaks(current=0, longest=0)

    longest = 0
    running = 0
    previous = None

    for day in active_days:
        if previous is not None and day - previous == timedelta(days=1):
            running += 1
        else:
            running = 1
        longest = max(longest, running)
        previous = day

    current = 0
    check_day = reference_today
    while daily_counts.get(check_day, 0) > 0:
        current += 1
        check_day -= timedelta(days=1)

    return Streaks(current=current, longest=longest)
