from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import format_date
from ..core.enums import AttendanceStatus, LeaveType


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one persisted attendance fact per (user, day)."""

    attendance_id: int
    user_id: int
    work_date: date
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[float] = None
    status: Optional[AttendanceStatus] = None
    reason: Optional[str] = None
    leave_type: Optional[LeaveType] = None
    rejection_reason: Optional[str] = None
    approver_id: Optional[int] = None
    is_half_day: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: Optional[datetime] = None

    @property
    def is_leave(self) -> bool:
        return self.leave_type is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.attendance_id,
            "userId": self.user_id,
            "date": format_date(self.work_date),
            "startTime": _iso(self.start_time),
            "endTime": _iso(self.end_time),
            "duration": self.duration,
            "status": self.status.value if self.status else None,
            "reason": self.reason,
            "leaveType": self.leave_type.value if self.leave_type else None,
            "rejectionReason": self.rejection_reason,
            "approverId": self.approver_id,
            "isHalfDay": self.is_half_day,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass(frozen=True)
class NewAttendanceRecord:
    """Write-model for inserts; the store assigns ``attendance_id``."""

    user_id: int
    work_date: date
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[float] = None
    status: Optional[AttendanceStatus] = None
    reason: Optional[str] = None
    leave_type: Optional[LeaveType] = None
    is_half_day: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class DailyAttendanceView:
    """Read-model: one computed row per calendar day. Never persisted."""

    date: date
    id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    reason: Optional[str] = None
    leave_type: Optional[LeaveType] = None
    duration: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": format_date(self.date),
            "id": self.id,
            "status": self.status.value if self.status else None,
            "startTime": _iso(self.start_time),
            "endTime": _iso(self.end_time),
            "reason": self.reason,
            "leaveType": self.leave_type.value if self.leave_type else None,
            "duration": self.duration,
        }


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
