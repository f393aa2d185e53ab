from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord, NewAttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import each_day, is_weekend, now_local, parse_iso_date
from ..common.validators import optional_text, parse_enum
from ..core.enums import ACTIVE_LEAVE_STATUSES, LEAVE_DECISION_STATUSES, AttendanceStatus, LeaveType
from ..core.exceptions import (
    AuthorizationError,
    DuplicateRecordError,
    NotFoundError,
    PolicyViolationError,
    ValidationError,
)
from ..holidays.calendar import HolidayCalendar, is_working_day
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)


def _coerce_status(value) -> AttendanceStatus:
    if isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus(str(value).strip().upper())
    except ValueError:
        raise PolicyViolationError("Invalid leave status")


class LeaveService:
    """Leave requests and their per-day approval.

    One request materializes into one LEAVE_PENDING record per working day.
    Each record is then approved or rejected on its own; there is no
    request-level grouping.
    """

    def __init__(self, attendance: AttendanceRepository, users: UserRepository, holidays: HolidayCalendar):
        self._attendance = attendance
        self._users = users
        self._holidays = holidays

    def _validate_leave_request(self, *, user_id: int, start_date: date, end_date: date, today: date) -> None:
        existing = self._attendance.list_for_user_between(user_id, start_date, end_date)
        if any(r.status in ACTIVE_LEAVE_STATUSES for r in existing):
            raise PolicyViolationError("Leave request overlaps with existing leave")

        if start_date < today:
            raise PolicyViolationError("Cannot apply leave for past dates")

        # Only the first day is checked; non-working days later in the range
        # are skipped during materialization.
        if is_weekend(start_date) or self._holidays.is_holiday(start_date):
            raise PolicyViolationError("Cannot apply leave for holidays or weekends")

    def request_leave(
        self,
        *,
        user_id: int,
        start_date: date | str,
        end_date: date | str | None,
        leave_type: LeaveType | str,
        reason: Optional[str] = None,
        is_half_day: bool = False,
        now: datetime | None = None,
    ) -> list[AttendanceRecord]:
        today = (now or now_local()).date()

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")

        start = parse_iso_date(start_date)
        end = parse_iso_date(end_date) if end_date else start
        if end < start:
            raise ValidationError("End date must be on or after start date")
        leave_type = parse_enum(LeaveType, leave_type, "leave type")
        half_day = bool(is_half_day) or leave_type == LeaveType.HALF_DAY

        try:
            self._validate_leave_request(user_id=user.user_id, start_date=start, end_date=end, today=today)
        except PolicyViolationError as e:
            logger.warning("Leave request rejected for user %s (%s..%s): %s", user.user_id, start, end, e)
            raise

        pending = [
            NewAttendanceRecord(
                user_id=user.user_id,
                work_date=day,
                status=AttendanceStatus.LEAVE_PENDING,
                reason=optional_text(reason),
                leave_type=leave_type,
                is_half_day=half_day,
            )
            for day in each_day(start, end)
            if is_working_day(day, self._holidays)
        ]
        if not pending:
            raise PolicyViolationError(
                "No valid dates found in the selected range (excluding weekends and holidays)"
            )

        try:
            created = list(self._attendance.create_many(pending))
        except DuplicateRecordError:
            # Lost a race with a concurrent writer for one of the days.
            raise PolicyViolationError("Leave request overlaps with existing attendance")

        logger.info(
            "Leave requested: user=%s type=%s days=%d (%s..%s)",
            user.user_id,
            leave_type.value,
            len(created),
            start,
            end,
        )
        return created

    def update_leave_status(
        self,
        attendance_id: int,
        status: AttendanceStatus | str,
        *,
        rejection_reason: Optional[str] = None,
        approver_id: Optional[int] = None,
    ) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        if not record.is_leave:
            raise PolicyViolationError("This is not a leave request")

        new_status = _coerce_status(status)
        if new_status not in LEAVE_DECISION_STATUSES:
            raise PolicyViolationError("Invalid leave status")
        if record.status != AttendanceStatus.LEAVE_PENDING:
            raise PolicyViolationError("Leave request has already been decided")

        changes: dict = {"status": new_status}

        if approver_id is not None:
            approver = self._users.get_by_id(int(approver_id))
            if not approver:
                raise NotFoundError("Approver not found")
            if not approver.can_approve_leave:
                raise AuthorizationError("Approver is not allowed to decide leave requests")
            changes["approver_id"] = approver.user_id

        rejection_reason = optional_text(rejection_reason)
        if new_status == AttendanceStatus.LEAVE_REJECTED and rejection_reason:
            changes["rejection_reason"] = rejection_reason

        if not self._attendance.update_fields(record.attendance_id, changes):
            raise NotFoundError("Attendance record not found")

        logger.info(
            "Leave %s: record=%s user=%s date=%s approver=%s",
            new_status.value,
            record.attendance_id,
            record.user_id,
            record.work_date,
            changes.get("approver_id"),
        )
        return self._attendance.get_by_id(record.attendance_id)

    def get_pending_leave_requests(self) -> Sequence[AttendanceRecord]:
        return self._attendance.list_by_status(AttendanceStatus.LEAVE_PENDING)
