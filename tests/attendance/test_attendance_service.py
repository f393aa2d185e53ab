from __future__ import annotations

from datetime import date, datetime

import pytest

from hr_attendance.attendance.service import AttendanceUpdate, NewAttendance
from hr_attendance.core.enums import AttendanceStatus, LeaveType
from hr_attendance.core.exceptions import (
    ConflictError,
    NotFoundError,
    PolicyViolationError,
    ValidationError,
)


# Check-in / check-out


def test_check_in_then_check_out_scenario(service, attendance_repo):
    rec = service.check_in(1, now=datetime(2024, 3, 6, 9, 15))
    assert rec.status == AttendanceStatus.PRESENT
    assert rec.start_time == datetime(2024, 3, 6, 9, 15)
    assert rec.duration == 0
    assert rec.end_time is None

    out = service.check_out(1, now=datetime(2024, 3, 6, 18, 0))
    assert out.attendance_id == rec.attendance_id
    assert out.end_time == datetime(2024, 3, 6, 18, 0)
    assert out.duration == 8.75


def test_check_in_stores_geolocation(service):
    rec = service.check_in(1, now=datetime(2024, 3, 6, 9, 0), latitude=12.97, longitude=77.59)
    assert (rec.latitude, rec.longitude) == (12.97, 77.59)


def test_check_in_refused_on_weekend(service, attendance_repo):
    with pytest.raises(PolicyViolationError):
        service.check_in(1, now=datetime(2024, 3, 9, 9, 0))
    assert attendance_repo.writes == 0


def test_check_in_refused_on_holiday(service):
    with pytest.raises(PolicyViolationError):
        service.check_in(1, now=datetime(2024, 3, 5, 9, 0))


def test_check_in_unknown_user(service):
    with pytest.raises(NotFoundError):
        service.check_in(42, now=datetime(2024, 3, 6, 9, 0))


def test_second_check_in_same_day_conflicts(service):
    service.check_in(1, now=datetime(2024, 3, 6, 9, 0))
    with pytest.raises(ConflictError):
        service.check_in(1, now=datetime(2024, 3, 6, 9, 5))


def test_check_in_race_lost_at_unique_key_is_a_conflict(service, attendance_repo, monkeypatch):
    service.check_in(1, now=datetime(2024, 3, 6, 9, 0))
    # Second writer passed the pre-check before the first committed.
    monkeypatch.setattr(attendance_repo, "get_for_user_and_date", lambda user_id, work_date: None)

    with pytest.raises(ConflictError, match="Already checked in"):
        service.check_in(1, now=datetime(2024, 3, 6, 9, 0, 1))
    assert len(attendance_repo.list_for_user(1)) == 1


def test_check_out_without_check_in_conflicts_and_writes_nothing(service, attendance_repo):
    with pytest.raises(ConflictError):
        service.check_out(1, now=datetime(2024, 3, 6, 18, 0))
    assert attendance_repo.writes == 0


def test_check_out_is_terminal_for_the_day(service):
    service.check_in(1, now=datetime(2024, 3, 6, 9, 0))
    service.check_out(1, now=datetime(2024, 3, 6, 17, 0))

    with pytest.raises(ConflictError):
        service.check_out(1, now=datetime(2024, 3, 6, 18, 0))
    with pytest.raises(ConflictError):
        service.check_in(1, now=datetime(2024, 3, 6, 19, 0))


def test_sub_hour_shift_reports_fractional_duration(service):
    service.check_in(1, now=datetime(2024, 3, 6, 9, 0))
    out = service.check_out(1, now=datetime(2024, 3, 6, 9, 40))
    assert out.duration == 0.67


def test_check_out_on_a_later_day_does_not_close_old_record(service):
    service.check_in(1, now=datetime(2024, 3, 6, 9, 0))
    with pytest.raises(ConflictError):
        service.check_out(1, now=datetime(2024, 3, 7, 9, 0))


# Read views


def test_monthly_view_mid_month(service, attendance_repo):
    attendance_repo.add(user_id=1, work_date=date(2024, 1, 6), status=AttendanceStatus.PRESENT)
    attendance_repo.add(
        user_id=1,
        work_date=date(2024, 1, 10),
        status=AttendanceStatus.PRESENT,
        start_time=datetime(2024, 1, 10, 9, 0),
        end_time=datetime(2024, 1, 10, 17, 30),
    )
    attendance_repo.add(user_id=2, work_date=date(2024, 1, 11), status=AttendanceStatus.PRESENT)

    views = service.get_monthly_attendance(1, 1, 2024, now=datetime(2024, 1, 15, 12, 0))
    by_day = {v.date.day: v for v in views}

    assert len(views) == 31
    assert by_day[6].status == AttendanceStatus.WEEKEND
    assert by_day[10].duration == 8.5
    assert by_day[11].status == AttendanceStatus.ABSENT  # other user's record is not visible
    assert all(by_day[d].status is None for d in range(16, 32))
    assert all(by_day[d].status == AttendanceStatus.WEEKEND for d in (7, 13, 14))


def test_monthly_view_is_idempotent(service, attendance_repo):
    attendance_repo.add(user_id=1, work_date=date(2024, 1, 6), status=AttendanceStatus.PRESENT)
    now = datetime(2024, 1, 15, 12, 0)

    first = [v.to_dict() for v in service.get_monthly_attendance(1, 1, 2024, now=now)]
    second = [v.to_dict() for v in service.get_monthly_attendance(1, 1, 2024, now=now)]
    assert first == second
    assert attendance_repo.get_by_id(1).status == AttendanceStatus.PRESENT


def test_monthly_view_rejects_bad_month(service):
    with pytest.raises(ValidationError):
        service.get_monthly_attendance(1, 13, 2024)


def test_yearly_view_applies_the_same_weekend_override(service, attendance_repo):
    attendance_repo.add(user_id=1, work_date=date(2024, 3, 9), status=AttendanceStatus.PRESENT)

    views = service.get_yearly_attendance(1, "2024-03-01", "2024-03-10", now=datetime(2024, 6, 1))

    assert [v.date for v in views][0] == date(2024, 3, 1)
    assert len(views) == 10
    assert views[8].status == AttendanceStatus.WEEKEND
    assert views[4].status == AttendanceStatus.HOLIDAY  # 2024-03-05


def test_yearly_view_rejects_reversed_range(service):
    with pytest.raises(ValidationError):
        service.get_yearly_attendance(1, "2024-03-10", "2024-03-01")


def test_yearly_view_rejects_unbounded_range(service):
    with pytest.raises(ValidationError):
        service.get_yearly_attendance(1, "2000-01-01", "9999-12-31")



# Regular (manual) attendance


def test_create_regular_attendance_derives_duration(service):
    rec = service.create(
        NewAttendance(
            user_id=1,
            start_date="2024-03-04",
            start_time="2024-03-04T09:00:00",
            end_time="2024-03-04T17:30:00",
            status="regularization_pending",
            reason="forgot to check in",
        )
    )
    assert rec.work_date == date(2024, 3, 4)
    assert rec.duration == 8.5
    assert rec.status == AttendanceStatus.REGULARIZATION_PENDING
    assert rec.leave_type is None and rec.is_half_day is False


def test_create_regular_rejects_end_before_start(service, attendance_repo):
    with pytest.raises(ValidationError):
        service.create(
            NewAttendance(
                user_id=1,
                start_date="2024-03-04",
                start_time="2024-03-04T17:00:00",
                end_time="2024-03-04T09:00:00",
            )
        )
    assert attendance_repo.writes == 0


def test_create_regular_duplicate_day_conflicts(service):
    service.create(NewAttendance(user_id=1, start_date="2024-03-04"))
    with pytest.raises(ConflictError):
        service.create(NewAttendance(user_id=1, start_date="2024-03-04"))


def test_create_regular_cannot_smuggle_leave_status(service):
    with pytest.raises(PolicyViolationError):
        service.create(NewAttendance(user_id=1, start_date="2024-03-04", status=AttendanceStatus.LEAVE_APPROVED))


def test_create_regular_unknown_user(service):
    with pytest.raises(NotFoundError):
        service.create(NewAttendance(user_id=42, start_date="2024-03-04"))


def test_create_with_leave_type_materializes_leave(service):
    created = service.create(
        NewAttendance(user_id=1, start_date="2024-03-04", end_date="2024-03-06", leave_type="casual"),
        now=datetime(2024, 3, 1, 10, 0),
    )
    assert isinstance(created, list)
    assert [r.work_date for r in created] == [date(2024, 3, 4), date(2024, 3, 6)]


# Lookup / admin


def test_find_one_missing(service):
    with pytest.raises(NotFoundError):
        service.find_one(404)


def test_find_by_user_newest_first(service, attendance_repo):
    attendance_repo.add(user_id=1, work_date=date(2024, 3, 4))
    attendance_repo.add(user_id=1, work_date=date(2024, 3, 5))
    attendance_repo.add(user_id=3, work_date=date(2024, 3, 5))

    records = service.find_by_user(1)
    assert [r.work_date for r in records] == [date(2024, 3, 5), date(2024, 3, 4)]
    assert len(service.find_all()) == 3


def test_admin_update_bypasses_approval_state_machine(service, attendance_repo):
    rec = attendance_repo.add(
        user_id=1, work_date=date(2024, 3, 4), status=AttendanceStatus.LEAVE_APPROVED, leave_type=LeaveType.SICK
    )

    updated = service.update(
        rec.attendance_id, AttendanceUpdate(status=AttendanceStatus.LEAVE_PENDING, reason="re-review", approver_id=2)
    )
    assert updated.status == AttendanceStatus.LEAVE_PENDING
    assert updated.reason == "re-review"
    assert updated.approver_id == 2
    assert updated.leave_type == LeaveType.SICK


def test_admin_update_with_unknown_approver(service, attendance_repo):
    rec = attendance_repo.add(user_id=1, work_date=date(2024, 3, 4))
    with pytest.raises(NotFoundError):
        service.update(rec.attendance_id, AttendanceUpdate(approver_id=99))


def test_remove(service, attendance_repo):
    rec = attendance_repo.add(user_id=1, work_date=date(2024, 3, 4))
    removed = service.remove(rec.attendance_id)
    assert removed.attendance_id == rec.attendance_id
    assert attendance_repo.get_by_id(rec.attendance_id) is None
    with pytest.raises(NotFoundError):
        service.remove(rec.attendance_id)
