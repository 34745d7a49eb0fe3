from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from attendance_engine.attendance.document_session_store import DocumentSessionStore
from attendance_engine.attendance.service import AttendanceService
from attendance_engine.common.authorization import Caller
from attendance_engine.core.constants import ATTENDANCE, EMPLOYEES
from attendance_engine.core.enums import Role
from attendance_engine.credentials.factory import CredentialVerifierFactory
from attendance_engine.credentials.qr_codec import QrChallengeCodec
from attendance_engine.employees.document_directory import DocumentEmployeeDirectory
from attendance_engine.geofence.model import GeofenceConfig, GeoPoint
from attendance_engine.geofence.validator import GeofenceValidator
from attendance_engine.reports.service import ReportAggregator
from attendance_engine.store.memory_store import InMemoryDocumentStore

NOW = datetime(2025, 3, 3, 8, 0, 0)
OFFICE = GeoPoint(longitude=8.8362755, latitude=33.1245286)


class RecordingEvents:
    """Stands in for the dispatcher: keeps events instead of delivering them."""

    def __init__(self):
        self.events = []

    def dispatch(self, event) -> None:
        self.events.append(event)

    def kinds(self):
        return [e.kind for e in self.events]


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return Clock(NOW)


@pytest.fixture
def store(clock):
    s = InMemoryDocumentStore(
        indexes=[(ATTENDANCE, ("employeeId", "entryTime")), (ATTENDANCE, ("employeeId", "createdAt"))],
        clock=clock,
    )
    s.put(EMPLOYEES, "E1", {"email": "e1@example.com", "name": "Employee One", "role": "employee"})
    s.put(EMPLOYEES, "E2", {"email": "e2@example.com", "name": "Employee Two", "role": "employee"})
    s.put(EMPLOYEES, "ADM", {"email": "admin@example.com", "name": "Admin", "role": "admin"})
    return s


@pytest.fixture
def events():
    return RecordingEvents()


@pytest.fixture
def codec():
    return QrChallengeCodec()


@pytest.fixture
def service(store, events, codec, clock):
    return AttendanceService(
        DocumentSessionStore(store),
        DocumentEmployeeDirectory(store),
        CredentialVerifierFactory.default(codec=codec),
        GeofenceValidator(GeofenceConfig(center=OFFICE, radius_meters=500)),
        events,
        qr_codec=codec,
        clock=clock,
    )


@pytest.fixture
def aggregator(store, clock):
    return ReportAggregator(DocumentSessionStore(store), DocumentEmployeeDirectory(store), clock=clock)


@pytest.fixture
def e1():
    return Caller(user_id="E1", role=Role.EMPLOYEE)


@pytest.fixture
def admin():
    return Caller(user_id="ADM", role=Role.ADMIN)
