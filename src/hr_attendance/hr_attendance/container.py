from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_DB_TIMEOUT_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .holidays.calendar import StaticHolidayCalendar
from .leaves.service import LeaveService
from .users.mysql_user_repository import MySQLUserRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    attendance_repo: MySQLAttendanceRepository
    holidays: StaticHolidayCalendar

    leave_service: LeaveService
    attendance_service: AttendanceService


def build_container(
    *,
    db_config: dict,
    holidays: Optional[Iterable[str]] = None,
    timeout_seconds: int = DEFAULT_DB_TIMEOUT_SECONDS,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        timeout_seconds=int(timeout_seconds),
    )
    conn = DatabaseConnection.get_instance(config)

    users_repo = MySQLUserRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    calendar = StaticHolidayCalendar.from_strings(holidays) if holidays is not None else StaticHolidayCalendar()

    leave_service = LeaveService(attendance_repo, users_repo, calendar)
    attendance_service = AttendanceService(attendance_repo, users_repo, calendar, leave_service)

    return Container(
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        holidays=calendar,
        leave_service=leave_service,
        attendance_service=attendance_service,
    )
