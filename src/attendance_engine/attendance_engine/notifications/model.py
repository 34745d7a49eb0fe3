from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.enums import NotificationKind
from ..employees.model import Employee


def _fmt(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")


@dataclass(frozen=True)
class NotificationEvent:
    """Domain event handed to the dispatcher after (or instead of) a write."""

    kind: NotificationKind
    employee_id: str
    recipient: str
    subject: str
    body: str

    @property
    def metadata(self) -> dict:
        return {"userId": self.employee_id, "type": self.kind.value}

    @classmethod
    def late_arrival(cls, employee: Employee, entry_time: datetime, *, late_hour: int) -> "NotificationEvent":
        return cls(
            kind=NotificationKind.LATE_ARRIVAL,
            employee_id=employee.employee_id,
            recipient=employee.email,
            subject="Late Attendance Notification",
            body=f"You recorded attendance at {_fmt(entry_time)}, which is after {late_hour}:00.",
        )

    @classmethod
    def location_violation(cls, employee: Employee, at: datetime, *, attempt: str) -> "NotificationEvent":
        return cls(
            kind=NotificationKind.LOCATION_VIOLATION,
            employee_id=employee.employee_id,
            recipient=employee.email,
            subject="Unauthorized Location Attempt",
            body=f"Your {attempt} at {_fmt(at)} was outside the allowed area.",
        )

    @classmethod
    def expired_credential(cls, employee: Employee, at: datetime) -> "NotificationEvent":
        return cls(
            kind=NotificationKind.EXPIRED_CREDENTIAL,
            employee_id=employee.employee_id,
            recipient=employee.email,
            subject="Expired QR Code Attempt",
            body=f"Your QR code scan at {_fmt(at)} was invalid or expired.",
        )

    @classmethod
    def exit_recorded(cls, employee: Employee, exit_time: datetime) -> "NotificationEvent":
        return cls(
            kind=NotificationKind.EXIT_RECORDED,
            employee_id=employee.employee_id,
            recipient=employee.email,
            subject="Exit Recorded",
            body=f"Your exit time has been recorded: {_fmt(exit_time)}",
        )
