from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceMethod
from ..geofence.model import GeoPoint
from .model import AttendanceRecord


class SessionStore(Protocol):
    """Persistence port for attendance records.

    Window queries degrade to a per-employee scan when the store lacks the
    composite index, so IndexUnavailableError never crosses this interface.
    """

    def create(
        self,
        *,
        employee_id: str,
        entry_time: datetime,
        method: AttendanceMethod,
        location: GeoPoint,
    ) -> AttendanceRecord:
        raise NotImplementedError

    def get(self, record_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def has_open_session(self, employee_id: str) -> bool:
        raise NotImplementedError

    def find_latest_open(self, employee_id: str, *, start: datetime, end: datetime) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def record_exit(self, record_id: str, *, exit_time: datetime, location: GeoPoint) -> AttendanceRecord:
        raise NotImplementedError

    def records_in_window(self, employee_id: str, *, start: datetime, end: datetime) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def all_for_employee(self, employee_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def recent_for_employee(self, employee_id: str, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def entries_since(self, start: datetime) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError
