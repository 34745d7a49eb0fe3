from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceMethod
from ..geofence.model import GeoPoint


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one physical presence interval.

    An open session is a record whose `exit_time` is still unset.
    """

    record_id: str
    employee_id: str
    entry_time: Optional[datetime]
    method: AttendanceMethod
    entry_location: Optional[GeoPoint] = None
    exit_time: Optional[datetime] = None
    exit_location: Optional[GeoPoint] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.exit_time is None

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "employeeId": self.employee_id,
            "entryTime": _iso(self.entry_time),
            "exitTime": _iso(self.exit_time),
            "location": self.entry_location.to_document() if self.entry_location else None,
            "exitLocation": self.exit_location.to_document() if self.exit_location else None,
            "method": self.method.value,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass(frozen=True)
class EntryCommand:
    """Validated check-in request."""

    employee_id: Optional[str]
    method: AttendanceMethod
    location: GeoPoint
    entry_time: datetime


@dataclass(frozen=True)
class ExitCommand:
    """Validated check-out request."""

    employee_id: str
    location: GeoPoint
    exit_time: datetime
