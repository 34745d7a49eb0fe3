from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller roles used for authorization."""

    ADMIN = "admin"
    EMPLOYEE = "employee"
    INTERN = "stagiaire"


class AttendanceMethod(str, Enum):
    """How an entry was verified."""

    MANUAL = "manual"
    QR = "qr"
    FACIAL = "facial"


class NotificationKind(str, Enum):
    LATE_ARRIVAL = "late_arrival"
    LOCATION_VIOLATION = "location_issue"
    EXPIRED_CREDENTIAL = "expired_qr"
    EXIT_RECORDED = "exit_recorded"


class ReportPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ErrorKind(str, Enum):
    """Logical response codes; the HTTP layer maps them to status codes."""

    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    SERVER_ERROR = "server_error"
