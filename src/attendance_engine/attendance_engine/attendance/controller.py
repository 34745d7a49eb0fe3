from __future__ import annotations

import logging
import uuid
from functools import wraps

from flask import Flask, jsonify, request, session

from ..common.authorization import Caller, ensure_admin
from ..core.enums import AttendanceMethod, ErrorKind, Role
from ..core.exceptions import DomainError, ForbiddenError, NotRecognizedError, ValidationError
from ..container import Container
from .payloads import parse_days, parse_entry, parse_exit, parse_report_query

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.SERVER_ERROR: 500,
}


def _failure(message: str, kind: ErrorKind, **extra):
    body = {"success": False, "message": message, "error": kind.value}
    body.update(extra)
    return jsonify(body), STATUS_BY_KIND[kind]


def _success(message: str, data: dict, status: int = 200):
    return jsonify({"success": True, "message": message, "data": data}), status


def _server_error(exc: Exception):
    correlation_id = uuid.uuid4().hex[:12]
    logger.error("Unexpected error correlationId=%s path=%s", correlation_id, request.path, exc_info=exc)
    return _failure("Server error", ErrorKind.SERVER_ERROR, correlationId=correlation_id)


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service
    reports = container.report_service

    def current_caller() -> Caller:
        try:
            role = Role(session.get("role"))
        except ValueError:
            role = Role.EMPLOYEE
        return Caller(user_id=str(session["user_id"]), role=role)

    def api_errors(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except NotRecognizedError as e:
                return _failure(str(e), e.kind, confidence=e.confidence)
            except ValidationError as e:
                extra = {"errors": e.errors} if e.errors else {}
                return _failure(str(e), e.kind, **extra)
            except DomainError as e:
                if e.kind == ErrorKind.SERVER_ERROR:
                    return _server_error(e)
                return _failure(str(e), e.kind)
            except Exception as e:
                return _server_error(e)

        return wrapper

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "Authentication required"}), 401
            return view(*args, **kwargs)

        return wrapper

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "Authentication required"}), 401

            try:
                ensure_admin(current_caller())
            except ForbiddenError as e:
                return _failure(str(e), e.kind)

            return view(*args, **kwargs)

        return wrapper

    def record_entry(method=None):
        command, proof = parse_entry(_json_body(), method=method)
        outcome = attendance.record_entry(command, proof, current_caller())
        data = {"attendance": outcome.record.to_dict(), "late": outcome.late}
        if outcome.verification.confidence is not None:
            data["confidence"] = outcome.verification.confidence
        return _success("Attendance recorded successfully", data, 201)

    @app.route("/api/attendance", methods=["POST"], endpoint="record_attendance")
    @login_required
    @api_errors
    def record_attendance():
        return record_entry()

    @app.route("/api/attendance/scan-qr", methods=["POST"], endpoint="scan_qr_attendance")
    @login_required
    @api_errors
    def scan_qr_attendance():
        return record_entry(AttendanceMethod.QR)

    @app.route("/api/attendance/facial", methods=["POST"], endpoint="facial_attendance")
    @login_required
    @api_errors
    def facial_attendance():
        return record_entry(AttendanceMethod.FACIAL)

    @app.route("/api/attendance/exit", methods=["POST"], endpoint="record_exit")
    @login_required
    @api_errors
    def record_exit():
        command = parse_exit(_json_body())
        record = attendance.record_exit(command, current_caller())
        return _success("Exit time recorded successfully", {"attendance": record.to_dict()})

    @app.route("/api/attendance/employee/<employee_id>", methods=["GET"], endpoint="employee_attendance")
    @login_required
    @api_errors
    def employee_attendance(employee_id: str):
        history = attendance.get_history(employee_id, current_caller())
        return _success("Attendance history retrieved successfully", {"attendance": history})

    @app.route("/api/attendance/qr/<employee_id>", methods=["GET"], endpoint="generate_qr")
    @login_required
    @api_errors
    def generate_qr(employee_id: str):
        issued = attendance.issue_qr(employee_id, current_caller())
        return _success(
            "QR code generated successfully",
            {
                "qrCode": issued.image_data_url,
                "qrData": issued.payload,
                "expiresAt": issued.challenge.expires_at.isoformat(),
            },
        )

    @app.route("/api/attendance/report/<employee_id>", methods=["GET"], endpoint="presence_report")
    @admin_required
    @api_errors
    def presence_report(employee_id: str):
        query = parse_report_query(request.args)
        report = reports.presence_report(employee_id, **query)
        return _success("Presence report generated successfully", {"report": report.to_dict()})

    @app.route("/api/attendance/reports", methods=["GET"], endpoint="all_presence_reports")
    @admin_required
    @api_errors
    def all_presence_reports():
        query = parse_report_query(request.args)
        all_reports = reports.build_all_reports(**query)
        return _success(
            "All presence reports generated successfully",
            {"reports": [r.to_dict() for r in all_reports]},
        )

    @app.route("/api/attendance/daily-stats", methods=["GET"], endpoint="daily_stats")
    @admin_required
    @api_errors
    def daily_stats():
        stats = reports.daily_stats(parse_days(request.args.get("days")))
        return _success("Daily statistics retrieved successfully", {"stats": [s.to_dict() for s in stats]})

    @app.route("/api/attendance/total-count", methods=["GET"], endpoint="total_count")
    @admin_required
    @api_errors
    def total_count():
        return _success("Total attendance count retrieved successfully", {"count": reports.total_count()})
