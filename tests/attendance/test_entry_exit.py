from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from attendance_engine.attendance.document_session_store import DocumentSessionStore
from attendance_engine.attendance.model import EntryCommand, ExitCommand
from attendance_engine.attendance.service import AttendanceService
from attendance_engine.common.authorization import Caller
from attendance_engine.core.constants import ATTENDANCE
from attendance_engine.core.enums import AttendanceMethod, NotificationKind, Role
from attendance_engine.core.exceptions import (
    DuplicateOpenSessionError,
    ExpiredCredentialError,
    ForbiddenError,
    InvalidChronologyError,
    NoOpenSessionError,
    NotFoundError,
    OutOfBoundsError,
    StoreError,
)
from attendance_engine.credentials.base import CredentialProof
from attendance_engine.credentials.factory import CredentialVerifierFactory
from attendance_engine.employees.document_directory import DocumentEmployeeDirectory
from attendance_engine.geofence.model import GeofenceConfig, GeoPoint
from attendance_engine.geofence.validator import GeofenceValidator

OFFICE = GeoPoint(longitude=8.8362755, latitude=33.1245286)


def entry(employee_id="E1", at=datetime(2025, 3, 3, 9, 0), location=OFFICE, method=AttendanceMethod.MANUAL):
    return EntryCommand(employee_id=employee_id, method=method, location=location, entry_time=at)


def exit_(employee_id="E1", at=datetime(2025, 3, 3, 17, 0), location=OFFICE):
    return ExitCommand(employee_id=employee_id, location=location, exit_time=at)


def test_entry_at_nine_opens_session_and_notifies_late(service, store, events, e1):
    outcome = service.record_entry(entry(), CredentialProof(), e1)

    assert outcome.late is True
    assert outcome.record.is_open
    assert outcome.record.employee_id == "E1"
    assert store.count(ATTENDANCE) == 1
    assert events.kinds() == [NotificationKind.LATE_ARRIVAL]
    assert events.events[0].recipient == "e1@example.com"


def test_entry_before_late_hour_sends_nothing(service, events, e1):
    outcome = service.record_entry(entry(at=datetime(2025, 3, 3, 8, 59)), CredentialProof(), e1)

    assert outcome.late is False
    assert events.events == []


def test_second_entry_while_open_is_rejected(service, store, e1):
    service.record_entry(entry(), CredentialProof(), e1)

    with pytest.raises(DuplicateOpenSessionError):
        service.record_entry(entry(at=datetime(2025, 3, 3, 9, 5)), CredentialProof(), e1)

    assert store.count(ATTENDANCE) == 1


def test_exit_before_entry_is_rejected_then_valid_exit_closes(service, e1):
    service.record_entry(entry(), CredentialProof(), e1)

    with pytest.raises(InvalidChronologyError):
        service.record_exit(exit_(at=datetime(2025, 3, 3, 8, 30)), e1)

    with pytest.raises(InvalidChronologyError):
        service.record_exit(exit_(at=datetime(2025, 3, 3, 9, 0)), e1)

    closed = service.record_exit(exit_(), e1)
    assert closed.exit_time == datetime(2025, 3, 3, 17, 0)
    assert closed.exit_location == OFFICE
    assert not closed.is_open


def test_exit_without_open_session_fails(service, e1):
    with pytest.raises(NoOpenSessionError):
        service.record_exit(exit_(), e1)


def test_exit_after_close_fails_and_new_entry_allowed(service, e1):
    service.record_entry(entry(), CredentialProof(), e1)
    service.record_exit(exit_(), e1)

    with pytest.raises(NoOpenSessionError):
        service.record_exit(exit_(at=datetime(2025, 3, 3, 18, 0)), e1)

    again = service.record_entry(entry(at=datetime(2025, 3, 4, 8, 0)), CredentialProof(), e1)
    assert again.record.is_open


def test_exit_publishes_exit_recorded_to_email(service, events, e1):
    service.record_entry(entry(at=datetime(2025, 3, 3, 8, 0)), CredentialProof(), e1)
    service.record_exit(exit_(), e1)

    assert events.kinds() == [NotificationKind.EXIT_RECORDED]
    assert events.events[0].recipient == "e1@example.com"
    assert events.events[0].metadata == {"userId": "E1", "type": "exit_recorded"}


def test_entry_outside_geofence_is_rejected_with_notification(service, store, events, e1):
    far = GeoPoint(longitude=OFFICE.longitude + 0.01, latitude=OFFICE.latitude)

    with pytest.raises(OutOfBoundsError) as exc:
        service.record_entry(entry(at=datetime(2025, 3, 3, 8, 0), location=far), CredentialProof(), e1)

    assert exc.value.distance_meters == pytest.approx(1110, rel=1e-3)
    assert store.count(ATTENDANCE) == 0
    assert events.kinds() == [NotificationKind.LOCATION_VIOLATION]


def test_unknown_employee_is_not_found(service, admin):
    with pytest.raises(NotFoundError):
        service.record_entry(entry(employee_id="NOPE"), CredentialProof(), admin)


def test_employee_cannot_check_in_for_someone_else(service, store, e1):
    with pytest.raises(ForbiddenError):
        service.record_entry(entry(employee_id="E2"), CredentialProof(), e1)

    assert store.count(ATTENDANCE) == 0


def test_admin_may_check_in_for_anyone(service, admin):
    outcome = service.record_entry(entry(employee_id="E2"), CredentialProof(), admin)

    assert outcome.record.employee_id == "E2"


def test_qr_entry_resolves_employee_from_payload(service, codec, clock, e1):
    payload = codec.encode(codec.issue("E1", now=clock()))

    outcome = service.record_entry(
        entry(employee_id=None, method=AttendanceMethod.QR),
        CredentialProof(qr_data=payload),
        e1,
    )

    assert outcome.record.employee_id == "E1"
    assert outcome.record.method == AttendanceMethod.QR


def test_stale_qr_is_rejected_and_notified(service, codec, clock, store, events, e1):
    payload = codec.encode(codec.issue("E1", now=clock()))
    clock.advance(minutes=10)

    with pytest.raises(ExpiredCredentialError):
        service.record_entry(entry(method=AttendanceMethod.QR), CredentialProof(qr_data=payload), e1)

    assert events.kinds() == [NotificationKind.EXPIRED_CREDENTIAL]
    assert store.count(ATTENDANCE) == 0


def test_failed_open_session_check_does_not_block_entry(service, store, e1, monkeypatch):
    def broken(*args, **kwargs):
        raise StoreError("read timeout")

    monkeypatch.setattr(store, "query_eq", broken)

    outcome = service.record_entry(entry(at=datetime(2025, 3, 3, 8, 0)), CredentialProof(), e1)

    assert outcome.record.is_open


def test_notification_failure_never_reaches_caller(store, codec, clock, e1):
    class ExplodingEvents:
        def dispatch(self, event):
            raise RuntimeError("broker down")

    svc = AttendanceService(
        DocumentSessionStore(store),
        DocumentEmployeeDirectory(store),
        CredentialVerifierFactory.default(codec=codec),
        GeofenceValidator(GeofenceConfig(center=OFFICE, radius_meters=500)),
        ExplodingEvents(),
        clock=clock,
    )

    outcome = svc.record_entry(entry(), CredentialProof(), e1)

    assert outcome.late is True


def test_history_lists_recent_records_with_employee(service, clock, e1):
    for day in (3, 4, 5):
        clock.now = datetime(2025, 3, day, 8, 0)
        service.record_entry(entry(at=datetime(2025, 3, day, 8, 0)), CredentialProof(), e1)
        service.record_exit(exit_(at=datetime(2025, 3, day, 16, 0)), e1)

    history = service.get_history("E1", e1)

    assert [h["entryTime"] for h in history] == [
        "2025-03-05T08:00:00",
        "2025-03-04T08:00:00",
        "2025-03-03T08:00:00",
    ]
    assert history[0]["employee"] == {"id": "E1", "name": "Employee One", "email": "e1@example.com"}


def test_history_of_other_employee_is_forbidden(service):
    with pytest.raises(ForbiddenError):
        service.get_history("E1", Caller(user_id="E2", role=Role.EMPLOYEE))


def test_issue_qr_returns_png_and_payload(service, codec, clock, e1):
    issued = service.issue_qr("E1", e1)

    assert issued.image_data_url.startswith("data:image/png;base64,")
    decoded = codec.decode(issued.payload)
    assert decoded.employee_id == "E1"
    assert decoded.issued_at == clock()
    assert decoded.expires_at - decoded.issued_at == timedelta(hours=12)
