from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator

from ..core.constants import DATE_FORMAT, DURATION_DECIMALS, MIN_ATTENDANCE_YEAR
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date.

    Longer ISO strings (e.g. ``2024-03-01T00:00:00Z``) are truncated to the day.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = (value or "").strip()
    try:
        return datetime.strptime(raw[:10], DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def parse_iso_datetime(value: str) -> datetime:
    if isinstance(value, datetime):
        return value
    raw = (value or "").strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value!r}")
    # Stored timestamps are naive local time.
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def is_weekend(value: date) -> bool:
    # A calendar date carries no offset, so the weekday is unambiguous.
    return value.weekday() >= 5


def each_day(start: date, end: date) -> Iterator[date]:
    """Yield every calendar date in [start, end], ascending."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_bounds(month: int, year: int) -> tuple[date, date]:
    if not 1 <= int(month) <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if int(year) < MIN_ATTENDANCE_YEAR:
        raise ValidationError(f"Year must be >= {MIN_ATTENDANCE_YEAR}")
    if int(year) > date.max.year:
        raise ValidationError(f"Year must be <= {date.max.year}")
    last_day = calendar.monthrange(int(year), int(month))[1]
    return date(int(year), int(month), 1), date(int(year), int(month), last_day)


def hours_between(end: datetime, start: datetime) -> float:
    """Elapsed hours from start to end, rounded half-up to two decimals."""
    seconds = Decimal(str((end - start).total_seconds()))
    hours = seconds / Decimal(3600)
    quantum = Decimal(1).scaleb(-DURATION_DECIMALS)
    return float(hours.quantize(quantum, rounding=ROUND_HALF_UP))
