from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, request, session

from ..common.validators import parse_enum
from ..core.enums import ADMIN_ROLES, APPROVER_ROLES, AttendanceStatus, LeaveType, Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    PolicyViolationError,
    StorageError,
    ValidationError,
)
from ..container import Container
from .service import AttendanceUpdate, NewAttendance

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (PolicyViolationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StorageError, 503),
)


def _status_for(exc: DomainError) -> int:
    for exc_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, exc_type):
            return code
    return 400


def _dump(result):
    if isinstance(result, (list, tuple)):
        return [r.to_dict() for r in result]
    return result.to_dict()


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def _current_role() -> Role | None:
        try:
            return Role(session.get("role"))
        except ValueError:
            return None

    def api_view(view):
        """Session check plus DomainError -> JSON error mapping."""

        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "Authentication required"}), 401
            try:
                return view(*args, **kwargs)
            except StorageError:
                logger.exception("Storage failure in %s", request.path)
                return jsonify({"success": False, "message": "Storage unavailable"}), 503
            except DomainError as e:
                return jsonify({"success": False, "message": str(e)}), _status_for(e)

        return wrapper

    def require_roles(roles):
        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                if _current_role() not in roles:
                    raise AuthorizationError("You do not have permission for this action")
                return view(*args, **kwargs)

            return wrapper

        return decorator

    def _body() -> dict:
        return request.get_json(silent=True) or {}

    def _to_int(raw, label: str) -> int:
        if isinstance(raw, bool):
            raise ValidationError(f"{label} must be an integer")
        try:
            return int(raw)
        except (TypeError, ValueError):
            raise ValidationError(f"{label} must be an integer")

    def _int_arg(name: str) -> int:
        return _to_int(request.args.get(name, ""), f"Query parameter '{name}'")

    def _bool_field(data: dict, name: str) -> bool:
        value = data.get(name, False)
        if value is None:
            return False
        if not isinstance(value, bool):
            raise ValidationError(f"{name} must be true or false")
        return value

    @app.route("/api/attendance/monthly", methods=["GET"], endpoint="attendance_monthly")
    @api_view
    def monthly():
        views = service.get_monthly_attendance(int(session["user_id"]), _int_arg("month"), _int_arg("year"))
        return jsonify(_dump(views))

    @app.route("/api/attendance/yearly", methods=["GET"], endpoint="attendance_yearly")
    @api_view
    def yearly():
        views = service.get_yearly_attendance(
            int(session["user_id"]),
            request.args.get("startDate", ""),
            request.args.get("endDate", ""),
        )
        return jsonify(_dump(views))

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @api_view
    def check_in():
        data = _body()
        record = service.check_in(
            int(session["user_id"]),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
        )
        return jsonify(record.to_dict()), 201

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    @api_view
    def check_out():
        return jsonify(service.check_out(int(session["user_id"])).to_dict())

    @app.route("/api/attendance", methods=["POST"], endpoint="attendance_create")
    @api_view
    def create():
        data = _body()
        acting_user = int(session["user_id"])
        target_user = _to_int(data["userId"], "userId") if data.get("userId") is not None else acting_user
        if target_user != acting_user and _current_role() not in ADMIN_ROLES:
            raise AuthorizationError("You can only record attendance for yourself")
        if not data.get("startDate"):
            raise ValidationError("startDate is required")

        result = service.create(
            NewAttendance(
                user_id=target_user,
                start_date=data["startDate"],
                end_date=data.get("endDate"),
                start_time=data.get("startTime"),
                end_time=data.get("endTime"),
                leave_type=data.get("leaveType"),
                status=data.get("status"),
                reason=data.get("reason"),
                is_half_day=_bool_field(data, "isHalfDay"),
            )
        )
        return jsonify(_dump(result)), 201

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @api_view
    @require_roles(ADMIN_ROLES)
    def find_all():
        return jsonify(_dump(service.find_all()))

    @app.route("/api/attendance/pending", methods=["GET"], endpoint="attendance_pending")
    @api_view
    @require_roles(APPROVER_ROLES)
    def pending():
        return jsonify(_dump(service.get_pending_leave_requests()))

    @app.route("/api/attendance/user/<int:user_id>", methods=["GET"], endpoint="attendance_by_user")
    @api_view
    def find_by_user(user_id: int):
        if user_id != int(session["user_id"]) and _current_role() not in APPROVER_ROLES:
            raise AuthorizationError("You do not have permission for this action")
        return jsonify(_dump(service.find_by_user(user_id)))

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="attendance_detail")
    @api_view
    def find_one(attendance_id: int):
        record = service.find_one(attendance_id)
        if record.user_id != int(session["user_id"]) and _current_role() not in APPROVER_ROLES:
            raise AuthorizationError("You do not have permission for this action")
        return jsonify(record.to_dict())

    @app.route("/api/attendance/<int:attendance_id>", methods=["PATCH"], endpoint="attendance_update")
    @api_view
    @require_roles(ADMIN_ROLES)
    def update(attendance_id: int):
        data = _body()
        record = service.update(
            attendance_id,
            AttendanceUpdate(
                status=parse_enum(AttendanceStatus, data["status"], "status") if data.get("status") else None,
                reason=data.get("reason"),
                leave_type=parse_enum(LeaveType, data["leaveType"], "leave type") if data.get("leaveType") else None,
                rejection_reason=data.get("rejectionReason"),
                approver_id=_to_int(data["approverId"], "approverId") if data.get("approverId") is not None else None,
            ),
        )
        return jsonify(record.to_dict())

    @app.route("/api/attendance/<int:attendance_id>/leave-status", methods=["PATCH"], endpoint="attendance_leave_status")
    @api_view
    @require_roles(APPROVER_ROLES)
    def update_leave_status(attendance_id: int):
        data = _body()
        if not data.get("status"):
            raise ValidationError("status is required")
        record = service.update_leave_status(
            attendance_id,
            data["status"],
            rejection_reason=data.get("rejectionReason"),
            approver_id=int(session["user_id"]),
        )
        return jsonify(record.to_dict())

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    @api_view
    @require_roles(ADMIN_ROLES)
    def remove(attendance_id: int):
        return jsonify(service.remove(attendance_id).to_dict())
