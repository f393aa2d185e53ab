from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Directory roles used for authorization."""

    CEO = "CEO"
    CTO = "CTO"
    HR = "HR"
    MANAGER = "Manager"
    EMPLOYEE = "Employee"


APPROVER_ROLES = frozenset({Role.CEO, Role.CTO, Role.HR, Role.MANAGER})
ADMIN_ROLES = frozenset({Role.CEO, Role.CTO, Role.HR})


class AttendanceStatus(str, Enum):
    """Day status stored on an attendance record (or computed for a view)."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    WEEKEND = "WEEKEND"
    HOLIDAY = "HOLIDAY"
    LEAVE_PENDING = "LEAVE_PENDING"
    LEAVE_APPROVED = "LEAVE_APPROVED"
    LEAVE_REJECTED = "LEAVE_REJECTED"
    REGULARIZATION_PENDING = "REGULARIZATION_PENDING"


ACTIVE_LEAVE_STATUSES = frozenset({AttendanceStatus.LEAVE_PENDING, AttendanceStatus.LEAVE_APPROVED})
LEAVE_DECISION_STATUSES = frozenset({AttendanceStatus.LEAVE_APPROVED, AttendanceStatus.LEAVE_REJECTED})


class LeaveType(str, Enum):
    CASUAL = "CASUAL"
    SICK = "SICK"
    HALF_DAY = "HALF_DAY"
