from __future__ import annotations

from datetime import date, datetime, timedelta

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def parse_month(value: str) -> date:
    """Parse YYYY-MM (or a full date) into the first day of that month."""
    v = (value or "").strip()
    try:
        if len(v) == 7:
            return datetime.strptime(v, "%Y-%m").date()
        return first_of_month(datetime.strptime(v, "%Y-%m-%d").date())
    except ValueError:
        raise ValidationError(f"Invalid month (expected YYYY-MM): {value!r}")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def first_of_month(day: date) -> date:
    return day.replace(day=1)


def first_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def month_bounds(month: date) -> tuple[date, date]:
    """Inclusive first and last day of the month containing `month`."""
    start = first_of_month(month)
    return start, first_of_next_month(start) - timedelta(days=1)
