from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol

from ..common.authorization import Caller, ensure_can_act_for
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_LATE_HOUR, DEFAULT_OPEN_SESSION_LOOKBACK_DAYS
from ..core.enums import AttendanceMethod
from ..core.exceptions import (
    ConcurrentUpdateError,
    DuplicateOpenSessionError,
    ExpiredCredentialError,
    InvalidChronologyError,
    NoOpenSessionError,
    NotEnrolledError,
    NotFoundError,
    NotRecognizedError,
    OutOfBoundsError,
    StoreError,
)
from ..credentials.base import CredentialProof, VerificationResult
from ..credentials.factory import CredentialVerifierFactory
from ..credentials.qr_codec import QrChallenge, QrChallengeCodec, render_png_data_url
from ..employees.model import Employee
from ..employees.repository import EmployeeDirectory
from ..geofence.validator import GeofenceValidator
from ..notifications.model import NotificationEvent
from .model import AttendanceRecord, EntryCommand, ExitCommand
from .repository import SessionStore

logger = logging.getLogger(__name__)

_ATTEMPT_LABEL = {
    AttendanceMethod.MANUAL: "attendance attempt",
    AttendanceMethod.QR: "QR scan",
    AttendanceMethod.FACIAL: "facial scan",
}


class EventSink(Protocol):
    def dispatch(self, event: NotificationEvent) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class EntryOutcome:
    record: AttendanceRecord
    verification: VerificationResult
    late: bool


@dataclass(frozen=True)
class QrIssue:
    challenge: QrChallenge
    payload: str
    image_data_url: str


class AttendanceService:
    """Per-employee session state machine: NoOpenSession <-> OpenSession.

    The state is derived from the store (an open record or none). The
    duplicate-open-session check is a read followed by a write, not an atomic
    conditional insert, so two simultaneous entries for one employee can both
    succeed.
    """

    def __init__(
        self,
        sessions: SessionStore,
        employees: EmployeeDirectory,
        verifiers: CredentialVerifierFactory,
        geofence: GeofenceValidator,
        events: EventSink,
        *,
        qr_codec: Optional[QrChallengeCodec] = None,
        late_hour: int = DEFAULT_LATE_HOUR,
        lookback: timedelta = timedelta(days=DEFAULT_OPEN_SESSION_LOOKBACK_DAYS),
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], datetime] = now_local,
    ):
        self._sessions = sessions
        self._employees = employees
        self._verifiers = verifiers
        self._geofence = geofence
        self._events = events
        self._qr_codec = qr_codec or QrChallengeCodec()
        self._late_hour = int(late_hour)
        self._lookback = lookback
        self._history_limit = int(history_limit)
        self._clock = clock

    def _require_employee(self, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            logger.warning("Employee not found employee=%s", employee_id)
            raise NotFoundError("Employee not found")
        return employee

    def _publish(self, event: NotificationEvent) -> None:
        try:
            self._events.dispatch(event)
        except Exception:
            logger.error("Failed to dispatch %s notification employee=%s", event.kind.value, event.employee_id, exc_info=True)

    def is_late(self, entry_time: datetime) -> bool:
        return entry_time.hour >= self._late_hour

    def record_entry(self, command: EntryCommand, proof: CredentialProof, caller: Caller) -> EntryOutcome:
        verifier = self._verifiers.for_method(command.method)
        employee_id = verifier.subject(command.employee_id, proof)
        employee = self._require_employee(employee_id)

        try:
            verification = verifier.verify(employee=employee, proof=proof, now=self._clock())
        except ExpiredCredentialError:
            self._publish(NotificationEvent.expired_credential(employee, command.entry_time))
            logger.warning("QR code expired employee=%s", employee_id)
            raise
        except (NotRecognizedError, NotEnrolledError) as exc:
            logger.warning("Facial verification failed employee=%s: %s", employee_id, exc)
            raise

        ensure_can_act_for(caller, employee_id, action="record attendance")

        try:
            has_open = self._sessions.has_open_session(employee_id)
        except StoreError:
            logger.warning("Error checking for open attendance, proceeding anyway employee=%s", employee_id, exc_info=True)
            has_open = False
        if has_open:
            logger.warning("Attempt to record entry with existing open attendance employee=%s", employee_id)
            raise DuplicateOpenSessionError(
                "You already have an open attendance entry. Please record exit time first before creating a new entry."
            )

        check = self._geofence.check(command.location)
        if not check.within:
            self._publish(
                NotificationEvent.location_violation(
                    employee, command.entry_time, attempt=_ATTEMPT_LABEL[command.method]
                )
            )
            logger.warning(
                "Location outside allowed area employee=%s distance=%.1fm", employee_id, check.distance_meters
            )
            raise OutOfBoundsError("Location outside allowed area", distance_meters=check.distance_meters)

        late = self.is_late(command.entry_time)
        if late:
            self._publish(NotificationEvent.late_arrival(employee, command.entry_time, late_hour=self._late_hour))
            logger.info("Late attendance recorded employee=%s entryTime=%s", employee_id, command.entry_time)

        record = self._sessions.create(
            employee_id=employee_id,
            entry_time=command.entry_time,
            method=command.method,
            location=command.location,
        )
        logger.info(
            "Attendance recorded attendance=%s employee=%s method=%s requester=%s",
            record.record_id,
            employee_id,
            command.method.value,
            caller.user_id,
        )
        return EntryOutcome(record=record, verification=verification, late=late)

    def record_exit(self, command: ExitCommand, caller: Caller) -> AttendanceRecord:
        employee = self._require_employee(command.employee_id)
        ensure_can_act_for(caller, employee.employee_id, action="record attendance")

        now = self._clock()
        record = self._sessions.find_latest_open(
            employee.employee_id, start=now - self._lookback, end=now + self._lookback
        )
        if record is None:
            logger.warning("No entry attendance found for exit employee=%s", employee.employee_id)
            raise NoOpenSessionError("No entry attendance found. Please record entry first.")

        if command.exit_time <= record.entry_time:
            logger.warning(
                "Exit time is not after entry time employee=%s entry=%s exit=%s",
                employee.employee_id,
                record.entry_time,
                command.exit_time,
            )
            raise InvalidChronologyError("Exit time must be after entry time")

        try:
            updated = self._sessions.record_exit(
                record.record_id, exit_time=command.exit_time, location=command.location
            )
        except ConcurrentUpdateError:
            logger.warning("Attendance %s was closed concurrently", record.record_id)
            raise NoOpenSessionError("This attendance entry already has an exit time.") from None

        logger.info(
            "Exit attendance recorded attendance=%s employee=%s requester=%s",
            updated.record_id,
            employee.employee_id,
            caller.user_id,
        )
        self._publish(NotificationEvent.exit_recorded(employee, command.exit_time))
        return updated

    def issue_qr(self, employee_id: str, caller: Caller) -> QrIssue:
        self._require_employee(employee_id)
        ensure_can_act_for(caller, employee_id, action="generate QR code")

        challenge = self._qr_codec.issue(employee_id, now=self._clock())
        payload = self._qr_codec.encode(challenge)
        logger.info("QR code generated employee=%s requester=%s", employee_id, caller.user_id)
        return QrIssue(challenge=challenge, payload=payload, image_data_url=render_png_data_url(payload))

    def get_history(self, employee_id: str, caller: Caller) -> list[dict]:
        """Most recent records (by creation), each with the employee summary."""
        ensure_can_act_for(caller, employee_id, action="view attendance")

        records = self._sessions.recent_for_employee(employee_id, self._history_limit)
        employee = self._employees.get_by_id(employee_id)
        summary = employee.summary() if employee else None
        return [{**r.to_dict(), "employee": summary} for r in records]
