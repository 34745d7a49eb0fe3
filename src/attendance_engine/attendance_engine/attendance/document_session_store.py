from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import as_datetime
from ..core.constants import ATTENDANCE
from ..core.enums import AttendanceMethod
from ..core.exceptions import IndexUnavailableError, StoreError
from ..geofence.model import GeoPoint
from ..store.repository import Document, DocumentStore
from .model import AttendanceRecord
from .repository import SessionStore

logger = logging.getLogger(__name__)


def _instant(doc: Document, field_name: str) -> Optional[datetime]:
    try:
        return as_datetime(doc.get(field_name))
    except (TypeError, ValueError):
        logger.warning("Unreadable %s on attendance %s: %r", field_name, doc.id, doc.get(field_name))
        return None


def _method(value) -> AttendanceMethod:
    try:
        return AttendanceMethod(value)
    except ValueError:
        return AttendanceMethod.MANUAL


def record_from_document(doc: Document) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=doc.id,
        employee_id=doc.get("employeeId"),
        entry_time=_instant(doc, "entryTime"),
        method=_method(doc.get("method")),
        entry_location=GeoPoint.from_document(doc.get("location")),
        exit_time=_instant(doc, "exitTime"),
        exit_location=GeoPoint.from_document(doc.get("exitLocation")),
        created_at=_instant(doc, "createdAt"),
        updated_at=_instant(doc, "updatedAt"),
    )


def _by_entry(records: Sequence[AttendanceRecord], *, descending: bool) -> list[AttendanceRecord]:
    return sorted(records, key=lambda r: r.entry_time or datetime.min, reverse=descending)


class DocumentSessionStore(SessionStore):
    def __init__(self, store: DocumentStore, *, collection: str = ATTENDANCE):
        self._store = store
        self._collection = collection

    def _with_fallback(
        self,
        preferred: Callable[[], Sequence[Document]],
        fallback: Callable[[], Sequence[Document]],
        *,
        what: str,
        employee_id: str,
    ) -> Sequence[Document]:
        try:
            return preferred()
        except IndexUnavailableError as exc:
            logger.warning(
                "Index required for %s, using fallback query employee=%s index=%s",
                what,
                employee_id,
                ",".join(exc.fields),
            )
            return fallback()

    def create(
        self,
        *,
        employee_id: str,
        entry_time: datetime,
        method: AttendanceMethod,
        location: GeoPoint,
    ) -> AttendanceRecord:
        doc_id = self._store.insert(
            self._collection,
            {
                "employeeId": employee_id,
                "entryTime": entry_time,
                "location": location.to_document(),
                "method": method.value,
                "exitTime": None,
            },
        )
        created = self.get(doc_id)
        if created is None:
            raise StoreError(f"Attendance {doc_id} vanished after insert")
        return created

    def get(self, record_id: str) -> Optional[AttendanceRecord]:
        doc = self._store.get_by_id(self._collection, record_id)
        return record_from_document(doc) if doc else None

    def has_open_session(self, employee_id: str) -> bool:
        docs = self._store.query_eq(self._collection, "employeeId", employee_id)
        return any(not d.get("exitTime") for d in docs)

    def find_latest_open(self, employee_id: str, *, start: datetime, end: datetime) -> Optional[AttendanceRecord]:
        for record in _by_entry(self._window(employee_id, start, end, what="exit lookup"), descending=True):
            if record.is_open:
                return record
        return None

    def record_exit(self, record_id: str, *, exit_time: datetime, location: GeoPoint) -> AttendanceRecord:
        doc = self._store.update(
            self._collection,
            record_id,
            {"exitTime": exit_time, "exitLocation": location.to_document()},
            expected={"exitTime": None},
        )
        return record_from_document(doc)

    def records_in_window(self, employee_id: str, *, start: datetime, end: datetime) -> Sequence[AttendanceRecord]:
        return _by_entry(self._window(employee_id, start, end, what="presence report"), descending=False)

    def all_for_employee(self, employee_id: str) -> Sequence[AttendanceRecord]:
        docs = self._store.query_eq(self._collection, "employeeId", employee_id)
        return _by_entry([record_from_document(d) for d in docs], descending=False)

    def recent_for_employee(self, employee_id: str, limit: int) -> Sequence[AttendanceRecord]:
        def fallback() -> Sequence[Document]:
            docs = self._store.query_eq(self._collection, "employeeId", employee_id)
            docs = sorted(
                docs,
                key=lambda d: _instant(d, "createdAt") or datetime.min,
                reverse=True,
            )
            return docs[:limit]

        docs = self._with_fallback(
            lambda: self._store.query_eq(
                self._collection,
                "employeeId",
                employee_id,
                order_by="createdAt",
                descending=True,
                limit=limit,
            ),
            fallback,
            what="attendance history",
            employee_id=employee_id,
        )
        return [record_from_document(d) for d in docs]

    def entries_since(self, start: datetime) -> Sequence[AttendanceRecord]:
        docs = self._store.query_range(self._collection, "entryTime", start)
        return [record_from_document(d) for d in docs]

    def count(self) -> int:
        return self._store.count(self._collection)

    def _window(self, employee_id: str, start: datetime, end: datetime, *, what: str) -> list[AttendanceRecord]:
        docs = self._with_fallback(
            lambda: self._store.query_range(
                self._collection,
                "entryTime",
                start,
                end,
                equals={"employeeId": employee_id},
                order_by="entryTime",
                descending=True,
            ),
            lambda: self._store.query_eq(self._collection, "employeeId", employee_id),
            what=what,
            employee_id=employee_id,
        )
        records = [record_from_document(d) for d in docs]
        # The fallback query is unbounded in time; both paths go through this filter.
        return [r for r in records if r.entry_time is not None and start <= r.entry_time <= end]
