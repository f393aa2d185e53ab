from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Sequence

from ..core.enums import AttendanceStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord, NewAttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, user_id, work_date, start_time, end_time, duration, status, reason,
    leave_type, rejection_reason, approver_id, is_half_day, latitude, longitude, created_at
"""

_UPDATABLE = frozenset(
    {
        "start_time",
        "end_time",
        "duration",
        "status",
        "reason",
        "leave_type",
        "rejection_reason",
        "approver_id",
        "is_half_day",
    }
)

_INSERT = """
    INSERT INTO attendance_records(
        user_id, work_date, start_time, end_time, duration, status, reason,
        leave_type, is_half_day, latitude, longitude
    )
    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
"""


def _float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        start_time=r.get("start_time"),
        end_time=r.get("end_time"),
        duration=_float(r.get("duration")),
        status=AttendanceStatus(r["status"]) if r.get("status") else None,
        reason=r.get("reason"),
        leave_type=LeaveType(r["leave_type"]) if r.get("leave_type") else None,
        rejection_reason=r.get("rejection_reason"),
        approver_id=int(r["approver_id"]) if r.get("approver_id") is not None else None,
        is_half_day=bool(r.get("is_half_day")),
        latitude=_float(r.get("latitude")),
        longitude=_float(r.get("longitude")),
        created_at=r.get("created_at"),
    )


def _insert_params(rec: NewAttendanceRecord) -> tuple:
    return (
        rec.user_id,
        rec.work_date,
        rec.start_time,
        rec.end_time,
        rec.duration,
        rec.status.value if rec.status else None,
        rec.reason,
        rec.leave_type.value if rec.leave_type else None,
        int(rec.is_half_day),
        rec.latitude,
        rec.longitude,
    )


def _db_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select_one(self, where: str, params: tuple) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE {where}", params)
            r = fetchone(cur)
            return _to_record(r) if r else None

    def _select_many(self, where: str, params: tuple, order_by: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE {where} ORDER BY {order_by}", params)
            return [_to_record(r) for r in fetchall(cur)]

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._select_one("attendance_id=%s", (int(attendance_id),))

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return self._select_one("user_id=%s AND work_date=%s", (int(user_id), work_date))

    def get_open_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return self._select_one(
            "user_id=%s AND work_date=%s AND start_time IS NOT NULL AND end_time IS NULL",
            (int(user_id), work_date),
        )

    def list_for_user_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        return self._select_many(
            "user_id=%s AND work_date BETWEEN %s AND %s",
            (int(user_id), start_date, end_date),
            "work_date ASC",
        )

    def list_all(self) -> Sequence[AttendanceRecord]:
        return self._select_many("1=1", (), "created_at DESC, attendance_id DESC")

    def list_for_user(self, user_id: int) -> Sequence[AttendanceRecord]:
        return self._select_many("user_id=%s", (int(user_id),), "created_at DESC, attendance_id DESC")

    def list_by_status(self, status: AttendanceStatus) -> Sequence[AttendanceRecord]:
        return self._select_many("status=%s", (status.value,), "created_at DESC, attendance_id DESC")

    def create(self, record: NewAttendanceRecord) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_INSERT, _insert_params(record))
            new_id = int(cur.lastrowid)
        return self.get_by_id(new_id)

    def create_many(self, records: Sequence[NewAttendanceRecord]) -> Sequence[AttendanceRecord]:
        ids: list[int] = []
        with db_cursor(self._conn_factory) as (_, cur):
            for record in records:
                cur.execute(_INSERT, _insert_params(record))
                ids.append(int(cur.lastrowid))
        return [self.get_by_id(i) for i in ids]

    def update_checkout(self, *, attendance_id: int, end_time: datetime, duration: float) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET end_time=%s, duration=%s
                WHERE attendance_id=%s AND end_time IS NULL
                """,
                (end_time, duration, int(attendance_id)),
            )
            return cur.rowcount > 0

    def update_fields(self, attendance_id: int, changes: dict[str, Any]) -> bool:
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unsupported attendance fields: {sorted(unknown)}")
        if not changes:
            return self.get_by_id(attendance_id) is not None

        columns = sorted(changes)
        assignments = ", ".join(f"{c}=%s" for c in columns)
        params = tuple(_db_value(changes[c]) for c in columns) + (int(attendance_id),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE attendance_records SET {assignments} WHERE attendance_id=%s", params)
            # MySQL reports 0 affected rows when values are unchanged.
            cur.execute("SELECT 1 FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return fetchone(cur) is not None

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0
