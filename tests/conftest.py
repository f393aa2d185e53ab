from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

import pytest

from hr_attendance.attendance.model import AttendanceRecord, NewAttendanceRecord
from hr_attendance.attendance.service import AttendanceService
from hr_attendance.core.enums import AttendanceStatus, Role
from hr_attendance.core.exceptions import DuplicateRecordError
from hr_attendance.holidays.calendar import StaticHolidayCalendar
from hr_attendance.leaves.service import LeaveService
from hr_attendance.users.model import User


@dataclass
class InMemoryUsers:
    users_by_id: dict[int, User]

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users_by_id.get(user_id)


class InMemoryAttendance:
    """Dict-backed store with the same (user_id, work_date) uniqueness as MySQL."""

    def __init__(self):
        self._by_id: dict[int, AttendanceRecord] = {}
        self._id = 0
        self.writes = 0

    def _key_taken(self, user_id: int, work_date: date) -> bool:
        return any(r.user_id == user_id and r.work_date == work_date for r in self._by_id.values())

    def _build(self, rec: NewAttendanceRecord, **extra) -> AttendanceRecord:
        self._id += 1
        return AttendanceRecord(
            attendance_id=self._id,
            user_id=rec.user_id,
            work_date=rec.work_date,
            start_time=rec.start_time,
            end_time=rec.end_time,
            duration=rec.duration,
            status=rec.status,
            reason=rec.reason,
            leave_type=rec.leave_type,
            is_half_day=rec.is_half_day,
            latitude=rec.latitude,
            longitude=rec.longitude,
            **extra,
        )

    def add(self, *, approver_id=None, **kwargs) -> AttendanceRecord:
        """Seed a stored record directly, bypassing uniqueness."""
        rec = self._build(NewAttendanceRecord(**kwargs), approver_id=approver_id)
        self._by_id[rec.attendance_id] = rec
        return rec

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._by_id.get(int(attendance_id))

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        for r in self._by_id.values():
            if r.user_id == user_id and r.work_date == work_date:
                return r
        return None

    def get_open_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        r = self.get_for_user_and_date(user_id, work_date)
        return r if r and r.start_time is not None and r.end_time is None else None

    def list_for_user_between(self, user_id: int, start_date: date, end_date: date):
        items = [r for r in self._by_id.values() if r.user_id == user_id and start_date <= r.work_date <= end_date]
        return sorted(items, key=lambda r: r.work_date)

    def list_all(self):
        return sorted(self._by_id.values(), key=lambda r: r.attendance_id, reverse=True)

    def list_for_user(self, user_id: int):
        return [r for r in self.list_all() if r.user_id == user_id]

    def list_by_status(self, status: AttendanceStatus):
        return [r for r in self.list_all() if r.status == status]

    def create(self, record: NewAttendanceRecord) -> AttendanceRecord:
        if self._key_taken(record.user_id, record.work_date):
            raise DuplicateRecordError("Duplicate entry for key 'uq_attendance_user_date'")
        rec = self._build(record)
        self._by_id[rec.attendance_id] = rec
        self.writes += 1
        return rec

    def create_many(self, records):
        keys = [(r.user_id, r.work_date) for r in records]
        if len(set(keys)) != len(keys) or any(self._key_taken(*k) for k in keys):
            raise DuplicateRecordError("Duplicate entry for key 'uq_attendance_user_date'")
        return [self.create(r) for r in records]

    def update_checkout(self, *, attendance_id: int, end_time: datetime, duration: float) -> bool:
        rec = self._by_id.get(attendance_id)
        if not rec or rec.end_time is not None:
            return False
        self._by_id[attendance_id] = replace(rec, end_time=end_time, duration=duration)
        self.writes += 1
        return True

    def update_fields(self, attendance_id: int, changes: dict) -> bool:
        rec = self._by_id.get(attendance_id)
        if not rec:
            return False
        self._by_id[attendance_id] = replace(rec, **changes)
        self.writes += 1
        return True

    def delete(self, attendance_id: int) -> bool:
        self.writes += 1
        return self._by_id.pop(attendance_id, None) is not None


EMPLOYEE_ID = 1
MANAGER_ID = 2
OTHER_EMPLOYEE_ID = 3


@pytest.fixture
def users() -> InMemoryUsers:
    return InMemoryUsers(
        {
            EMPLOYEE_ID: User(user_id=EMPLOYEE_ID, full_name="Asha Rao", email="asha@example.com", role=Role.EMPLOYEE),
            MANAGER_ID: User(user_id=MANAGER_ID, full_name="Ravi Menon", email="ravi@example.com", role=Role.MANAGER),
            OTHER_EMPLOYEE_ID: User(
                user_id=OTHER_EMPLOYEE_ID, full_name="Li Wei", email="li@example.com", role=Role.EMPLOYEE
            ),
        }
    )


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def holidays() -> StaticHolidayCalendar:
    # Reference list plus Tuesday 2024-03-05.
    return StaticHolidayCalendar.from_strings(["2024-01-01", "2024-01-26", "2024-08-15", "2024-10-02", "2024-03-05"])


@pytest.fixture
def leave_service(attendance_repo, users, holidays) -> LeaveService:
    return LeaveService(attendance_repo, users, holidays)


@pytest.fixture
def service(attendance_repo, users, holidays, leave_service) -> AttendanceService:
    return AttendanceService(attendance_repo, users, holidays, leave_service)
