from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from datetime import date, datetime
from typing import Optional, Sequence, Union

from ..common.datetime_utils import (
    hours_between,
    is_weekend,
    month_bounds,
    now_local,
    parse_iso_date,
    parse_iso_datetime,
)
from ..common.validators import optional_text, parse_enum, require_end_after_start
from ..core.constants import MAX_VIEW_RANGE_DAYS
from ..core.enums import AttendanceStatus, LeaveType
from ..core.exceptions import (
    ConflictError,
    DuplicateRecordError,
    NotFoundError,
    PolicyViolationError,
    ValidationError,
)
from ..holidays.calendar import HolidayCalendar
from ..leaves.service import LeaveService
from ..users.repository import UserRepository
from .model import AttendanceRecord, DailyAttendanceView, NewAttendanceRecord
from .reconciliation import index_by_date, resolve_range
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewAttendance:
    """Create payload: a leave request when ``leave_type`` is set, else one regular record."""

    user_id: int
    start_date: Union[date, str]
    end_date: Optional[Union[date, str]] = None
    start_time: Optional[Union[datetime, str]] = None
    end_time: Optional[Union[datetime, str]] = None
    leave_type: Optional[Union[LeaveType, str]] = None
    status: Optional[Union[AttendanceStatus, str]] = None
    reason: Optional[str] = None
    is_half_day: bool = False


@dataclass(frozen=True)
class AttendanceUpdate:
    """Administrative force-edit. ``None`` means "leave unchanged"."""

    status: Optional[AttendanceStatus] = None
    reason: Optional[str] = None
    leave_type: Optional[LeaveType] = None
    rejection_reason: Optional[str] = None
    approver_id: Optional[int] = None

    def changes(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


_LEAVE_STATUSES = frozenset(
    {AttendanceStatus.LEAVE_PENDING, AttendanceStatus.LEAVE_APPROVED, AttendanceStatus.LEAVE_REJECTED}
)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        holidays: HolidayCalendar,
        leaves: LeaveService | None = None,
    ):
        self._attendance = attendance
        self._users = users
        self._holidays = holidays
        self._leaves = leaves or LeaveService(attendance, users, holidays)

    # Read views

    def _resolve(self, user_id: int, start: date, end: date, today: date) -> list[DailyAttendanceView]:
        records = self._attendance.list_for_user_between(int(user_id), start, end)
        return resolve_range(start, end, today=today, holidays=self._holidays, records=index_by_date(records))

    def get_monthly_attendance(
        self, user_id: int, month: int, year: int, *, now: datetime | None = None
    ) -> list[DailyAttendanceView]:
        start, end = month_bounds(month, year)
        return self._resolve(user_id, start, end, (now or now_local()).date())

    def get_yearly_attendance(
        self, user_id: int, start_date: date | str, end_date: date | str, *, now: datetime | None = None
    ) -> list[DailyAttendanceView]:
        start = parse_iso_date(start_date)
        end = parse_iso_date(end_date)
        if end < start:
            raise ValidationError("End date must be on or after start date")
        if (end - start).days + 1 > MAX_VIEW_RANGE_DAYS:
            raise ValidationError(f"Date range must not exceed {MAX_VIEW_RANGE_DAYS} days")
        return self._resolve(user_id, start, end, (now or now_local()).date())

    # Check-in / check-out

    def check_in(
        self,
        user_id: int,
        *,
        now: datetime | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")

        if is_weekend(today) or self._holidays.is_holiday(today):
            logger.warning("Check-in refused for user %s on non-working day %s", user.user_id, today)
            raise PolicyViolationError("Cannot check in on holidays or weekends")

        if self._attendance.get_for_user_and_date(user.user_id, today):
            raise ConflictError("Already checked in for today")

        try:
            record = self._attendance.create(
                NewAttendanceRecord(
                    user_id=user.user_id,
                    work_date=today,
                    start_time=now,
                    duration=0,
                    status=AttendanceStatus.PRESENT,
                    latitude=latitude,
                    longitude=longitude,
                )
            )
        except DuplicateRecordError:
            raise ConflictError("Already checked in for today")

        logger.info("Check-in: user=%s at %s", user.user_id, now.isoformat())
        return record

    def check_out(self, user_id: int, *, now: datetime | None = None) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        record = self._attendance.get_open_for_user_and_date(int(user_id), today)
        if not record:
            raise ConflictError("No active check-in found for today")
        if now <= record.start_time:
            raise ValidationError("Check-out time must be after check-in time")

        duration = hours_between(now, record.start_time)
        if not self._attendance.update_checkout(attendance_id=record.attendance_id, end_time=now, duration=duration):
            # Someone else closed the day between our read and write.
            raise ConflictError("No active check-in found for today")

        logger.info("Check-out: user=%s at %s (%.2fh)", record.user_id, now.isoformat(), duration)
        return self._attendance.get_by_id(record.attendance_id)

    # Create (leave or regular)

    def create(
        self, payload: NewAttendance, *, now: datetime | None = None
    ) -> AttendanceRecord | list[AttendanceRecord]:
        if payload.leave_type:
            return self._leaves.request_leave(
                user_id=payload.user_id,
                start_date=payload.start_date,
                end_date=payload.end_date,
                leave_type=payload.leave_type,
                reason=payload.reason,
                is_half_day=payload.is_half_day,
                now=now,
            )
        return self._create_regular(payload)

    def _create_regular(self, payload: NewAttendance) -> AttendanceRecord:
        user = self._users.get_by_id(int(payload.user_id))
        if not user:
            raise NotFoundError("User not found")

        work_date = parse_iso_date(payload.start_date)
        start_time = parse_iso_datetime(payload.start_time) if payload.start_time else None
        end_time = parse_iso_datetime(payload.end_time) if payload.end_time else None
        require_end_after_start(start_time, end_time)

        status = parse_enum(AttendanceStatus, payload.status, "status") if payload.status else None
        if status in _LEAVE_STATUSES:
            raise PolicyViolationError("Leave records must be requested with a leave type")

        duration = hours_between(end_time, start_time) if start_time and end_time else None

        try:
            record = self._attendance.create(
                NewAttendanceRecord(
                    user_id=user.user_id,
                    work_date=work_date,
                    start_time=start_time,
                    end_time=end_time,
                    duration=duration,
                    status=status,
                    reason=optional_text(payload.reason),
                )
            )
        except DuplicateRecordError:
            raise ConflictError("Attendance already recorded for this date")

        logger.info("Attendance created: user=%s date=%s status=%s", user.user_id, work_date, status)
        return record

    # Leave approval

    def update_leave_status(
        self,
        attendance_id: int,
        status: AttendanceStatus | str,
        *,
        rejection_reason: Optional[str] = None,
        approver_id: Optional[int] = None,
    ) -> AttendanceRecord:
        return self._leaves.update_leave_status(
            attendance_id, status, rejection_reason=rejection_reason, approver_id=approver_id
        )

    def get_pending_leave_requests(self) -> Sequence[AttendanceRecord]:
        return self._leaves.get_pending_leave_requests()

    # Lookup / admin

    def find_all(self) -> Sequence[AttendanceRecord]:
        return self._attendance.list_all()

    def find_by_user(self, user_id: int) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_user(int(user_id))

    def find_one(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def update(self, attendance_id: int, update: AttendanceUpdate) -> AttendanceRecord:
        """Admin override: edits fields directly, outside the leave approval flow."""
        record = self.find_one(attendance_id)

        if update.approver_id is not None and not self._users.get_by_id(int(update.approver_id)):
            raise NotFoundError("Approver not found")

        changes = update.changes()
        if changes:
            self._attendance.update_fields(record.attendance_id, changes)
            logger.info("Attendance %s updated by admin: %s", record.attendance_id, sorted(changes))
        return self.find_one(record.attendance_id)

    def remove(self, attendance_id: int) -> AttendanceRecord:
        record = self.find_one(attendance_id)
        self._attendance.delete(record.attendance_id)
        logger.info("Attendance %s removed (user=%s date=%s)", record.attendance_id, record.user_id, record.work_date)
        return record
