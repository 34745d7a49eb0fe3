from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.datetime_utils import as_datetime
from ..core.constants import EMPLOYEES
from ..core.enums import Role
from ..store.repository import Document, DocumentStore
from .model import Employee
from .repository import EmployeeDirectory

logger = logging.getLogger(__name__)


def _role(value) -> Role:
    try:
        return Role(value)
    except ValueError:
        logger.warning("Unknown employee role %r, treating as employee", value)
        return Role.EMPLOYEE


def employee_from_document(doc: Document) -> Employee:
    data = doc.data
    descriptor = data.get("faceDescriptor")
    return Employee(
        employee_id=doc.id,
        email=data.get("email") or "",
        name=data.get("name") or "",
        role=_role(data.get("role") or Role.EMPLOYEE.value),
        face_descriptor=tuple(float(v) for v in descriptor) if descriptor else None,
        hire_date=as_datetime(data.get("hireDate")),
        created_at=as_datetime(data.get("createdAt")),
    )


class DocumentEmployeeDirectory(EmployeeDirectory):
    def __init__(self, store: DocumentStore, *, collection: str = EMPLOYEES):
        self._store = store
        self._collection = collection

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        doc = self._store.get_by_id(self._collection, employee_id)
        if doc is None:
            return None
        return employee_from_document(doc)

    def list_all(self) -> Sequence[Employee]:
        return [employee_from_document(doc) for doc in self._store.scan(self._collection)]
