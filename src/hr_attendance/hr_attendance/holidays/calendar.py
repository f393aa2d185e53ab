from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, Iterable, Protocol

from ..common.datetime_utils import format_date, is_weekend, parse_iso_date
from ..core.constants import DEFAULT_HOLIDAYS


class HolidayCalendar(Protocol):
    """Holiday lookup used by reconciliation and the write paths.

    Note (DIP): services depend on this interface, so a per-organization
    calendar can replace the static one without touching them.
    """

    def is_holiday(self, day: date) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class StaticHolidayCalendar:
    """Immutable set of ``yyyy-MM-dd`` strings loaded once at startup."""

    dates: FrozenSet[str] = field(default_factory=lambda: frozenset(DEFAULT_HOLIDAYS))

    @classmethod
    def from_strings(cls, values: Iterable[str]) -> "StaticHolidayCalendar":
        # Normalize through the parser so malformed entries fail at startup.
        return cls(frozenset(format_date(parse_iso_date(v)) for v in values if v and v.strip()))

    def is_holiday(self, day: date) -> bool:
        return format_date(day) in self.dates


def is_working_day(day: date, holidays: HolidayCalendar) -> bool:
    return not is_weekend(day) and not holidays.is_holiday(day)
