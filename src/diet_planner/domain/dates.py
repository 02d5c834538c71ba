"""Calendar helpers shared by the planners."""

from datetime import date, timedelta

from diet_planner.domain.errors import InvalidInputError

DAYS_PER_WEEK = 7


def validate_range(start: date, end: date) -> None:
    """Raise when a date range is reversed."""
    if start > end:
        raise InvalidInputError(f"Invalid date range: {start} is after {end}")


def days_between(start: date, end: date) -> list[date]:
    """Return every date from ``start`` to ``end`` inclusive."""
    validate_range(start, end)
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def week_bounds(day: date) -> tuple[date, date]:
    """Return the Monday and Sunday of the week containing ``day``."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=DAYS_PER_WEEK - 1)
