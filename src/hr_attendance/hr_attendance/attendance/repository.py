from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, NewAttendanceRecord


class AttendanceRepository(Protocol):
    """Attendance record store.

    Implementations must enforce one record per (user_id, work_date) and raise
    ``DuplicateRecordError`` instead of overwriting.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_open_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        """Record for the day whose end_time is still unset."""

        raise NotImplementedError

    def list_for_user_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_all(self) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_status(self, status: AttendanceStatus) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create(self, record: NewAttendanceRecord) -> AttendanceRecord:
        raise NotImplementedError

    def create_many(self, records: Sequence[NewAttendanceRecord]) -> Sequence[AttendanceRecord]:
        """Insert all records in one transaction (all or nothing)."""

        raise NotImplementedError

    def update_checkout(self, *, attendance_id: int, end_time: datetime, duration: float) -> bool:
        raise NotImplementedError

    def update_fields(self, attendance_id: int, changes: dict[str, Any]) -> bool:
        """Apply a partial update; keys are AttendanceRecord field names."""

        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError
