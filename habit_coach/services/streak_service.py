"""Streak computation over a habit's completion dates."""

from collections.abc import Iterable
from datetime import date, timedelta

from habit_coach.core.errors import HabitValidationError


ONE_DAY = timedelta(days=1)


def to_date(value: date | str) -> date:
    """Coerce an ISO calendar date string to a date."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise HabitValidationError(f"Invalid completion date: {value!r}") from e


def compute_streak(completed_dates: Iterable[date | str], today: date) -> int:
    """Count consecutive completed days ending today, or yesterday if today is still pending.

    The grace window is one calendar day regardless of habit category.

    Args:
        completed_dates: Completion dates (date objects or YYYY-MM-DD strings)
        today: Reference day, injected by the caller

    Returns:
        Current streak length, 0 when neither today nor yesterday was completed
    """
    days = {to_date(d) for d in completed_dates}

    if today in days:
        anchor = today
    elif today - ONE_DAY in days:
        anchor = today - ONE_DAY
    else:
        return 0

    streak = 1
    cursor = anchor - ONE_DAY
    while cursor in days:
        streak += 1
        cursor -= ONE_DAY
    return streak
