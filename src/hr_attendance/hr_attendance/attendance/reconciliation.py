"""Reconcile stored attendance facts against the computed calendar.

``resolve_range`` is pure: it reads an immutable holiday calendar and a
snapshot of stored records and returns fresh ``DailyAttendanceView`` values,
one per day in ascending order. Nothing stored is modified.

Per-day resolution, highest priority first:

1. A stored record that disagrees with the weekend signal (weekend but not
   WEEKEND, or WEEKEND on a weekday) is overridden with the calendar status
   (WEEKEND, HOLIDAY, unknown for future days, else ABSENT). Its id is kept.
2. Any other stored record is emitted as stored; a missing duration is
   derived from start/end.
3. With no record: unknown for future days, else HOLIDAY, WEEKEND, ABSENT.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional

from ..common.datetime_utils import each_day, hours_between, is_weekend
from ..core.enums import AttendanceStatus
from ..holidays.calendar import HolidayCalendar
from .model import AttendanceRecord, DailyAttendanceView


@dataclass(frozen=True)
class DaySignals:
    is_weekend: bool
    is_holiday: bool
    is_future: bool


def day_signals(day: date, *, today: date, holidays: HolidayCalendar) -> DaySignals:
    return DaySignals(
        is_weekend=is_weekend(day),
        is_holiday=holidays.is_holiday(day),
        # Calendar-date comparison: today itself is never "future".
        is_future=day > today,
    )


def index_by_date(records: Iterable[AttendanceRecord]) -> dict[date, AttendanceRecord]:
    return {r.work_date: r for r in records}


def conflicts_with_calendar(record: AttendanceRecord, signals: DaySignals) -> bool:
    if signals.is_weekend:
        return record.status != AttendanceStatus.WEEKEND
    return record.status == AttendanceStatus.WEEKEND


def derived_duration(record: AttendanceRecord) -> Optional[float]:
    if record.duration:
        return record.duration
    if record.start_time and record.end_time:
        return hours_between(record.end_time, record.start_time)
    return None


def _override_status(signals: DaySignals) -> Optional[AttendanceStatus]:
    if signals.is_weekend:
        return AttendanceStatus.WEEKEND
    if signals.is_holiday:
        return AttendanceStatus.HOLIDAY
    if signals.is_future:
        return None
    return AttendanceStatus.ABSENT


def _default_status(signals: DaySignals) -> Optional[AttendanceStatus]:
    if signals.is_future:
        return None
    if signals.is_holiday:
        return AttendanceStatus.HOLIDAY
    if signals.is_weekend:
        return AttendanceStatus.WEEKEND
    return AttendanceStatus.ABSENT


def resolve_day(
    day: date,
    record: Optional[AttendanceRecord],
    *,
    today: date,
    holidays: HolidayCalendar,
) -> DailyAttendanceView:
    signals = day_signals(day, today=today, holidays=holidays)

    if record is None:
        return DailyAttendanceView(date=day, status=_default_status(signals))

    if conflicts_with_calendar(record, signals):
        return DailyAttendanceView(date=day, id=record.attendance_id, status=_override_status(signals))

    return DailyAttendanceView(
        date=day,
        id=record.attendance_id,
        status=record.status,
        start_time=record.start_time,
        end_time=record.end_time,
        reason=record.reason,
        leave_type=record.leave_type,
        duration=derived_duration(record),
    )


def resolve_range(
    start_date: date,
    end_date: date,
    *,
    today: date,
    holidays: HolidayCalendar,
    records: Mapping[date, AttendanceRecord],
) -> list[DailyAttendanceView]:
    """One view per calendar day in [start_date, end_date], ascending."""
    return [
        resolve_day(day, records.get(day), today=today, holidays=holidays)
        for day in each_day(start_date, end_date)
    ]
