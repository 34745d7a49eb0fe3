from __future__ import annotations

import copy
import threading
import uuid
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.exceptions import ConcurrentUpdateError, IndexUnavailableError, StoreError
from .repository import Document, DocumentStore, index_fields

_MISSING = object()


class InMemoryDocumentStore(DocumentStore):
    """Process-local document store used for development and tests.

    Composite indexes must be declared (constructor or `declare_index`);
    queries needing an undeclared one raise IndexUnavailableError just like a
    hosted document database whose index is still building.
    """

    def __init__(
        self,
        *,
        indexes: Iterable[tuple[str, Sequence[str]]] = (),
        clock: Callable[[], datetime] = now_local,
    ):
        self._collections: dict[str, dict[str, dict]] = {}
        self._indexes: set[tuple[str, tuple[str, ...]]] = set()
        self._lock = threading.RLock()
        self._clock = clock
        for collection, fields in indexes:
            self.declare_index(collection, *fields)

    def declare_index(self, collection: str, *fields: str) -> None:
        with self._lock:
            self._indexes.add((collection, tuple(fields)))

    def _require_index(self, collection: str, fields: tuple[str, ...]) -> None:
        if fields and (collection, fields) not in self._indexes:
            raise IndexUnavailableError(collection, fields)

    def _docs(self, collection: str) -> dict[str, dict]:
        return self._collections.setdefault(collection, {})

    def insert(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        body = copy.deepcopy(dict(data))
        body.setdefault("createdAt", self._clock())
        with self._lock:
            self._docs(collection)[doc_id] = body
        return doc_id

    def put(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        """Write a document under a caller-chosen id (fixtures, seeding)."""
        body = copy.deepcopy(dict(data))
        body.setdefault("createdAt", self._clock())
        with self._lock:
            self._docs(collection)[doc_id] = body

    def get_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        with self._lock:
            body = self._docs(collection).get(doc_id)
            if body is None:
                return None
            return Document(id=doc_id, data=copy.deepcopy(body))

    def update(
        self,
        collection: str,
        doc_id: str,
        changes: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> Document:
        with self._lock:
            body = self._docs(collection).get(doc_id)
            if body is None:
                raise StoreError(f"{collection}/{doc_id} does not exist")
            for key, value in (expected or {}).items():
                if body.get(key) != value:
                    raise ConcurrentUpdateError(f"{collection}/{doc_id} changed: {key}")
            body.update(copy.deepcopy(dict(changes)))
            body["updatedAt"] = self._clock()
            return Document(id=doc_id, data=copy.deepcopy(body))

    def query_eq(
        self,
        collection: str,
        field_name: str,
        value: Any,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Sequence[Document]:
        if order_by:
            self._require_index(collection, index_fields(order_by, equals={field_name: value}))
        with self._lock:
            hits = [
                (doc_id, body)
                for doc_id, body in self._docs(collection).items()
                if body.get(field_name, _MISSING) == value
            ]
            return self._finish(hits, order_by=order_by, descending=descending, limit=limit)

    def query_range(
        self,
        collection: str,
        field_name: str,
        start: Any = None,
        end: Any = None,
        *,
        equals: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Sequence[Document]:
        self._require_index(collection, index_fields(field_name, equals=equals, order_by=order_by))
        equals = dict(equals or {})
        with self._lock:
            hits = []
            for doc_id, body in self._docs(collection).items():
                if any(body.get(k, _MISSING) != v for k, v in equals.items()):
                    continue
                value = body.get(field_name)
                if value is None:
                    continue
                if start is not None and value < start:
                    continue
                if end is not None and value > end:
                    continue
                hits.append((doc_id, body))
            return self._finish(hits, order_by=order_by or field_name, descending=descending, limit=limit)

    def scan(self, collection: str) -> Sequence[Document]:
        with self._lock:
            return [Document(id=k, data=copy.deepcopy(v)) for k, v in self._docs(collection).items()]

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._docs(collection))

    @staticmethod
    def _finish(hits, *, order_by, descending, limit) -> list[Document]:
        if order_by:
            hits = [h for h in hits if h[1].get(order_by) is not None]
            hits.sort(key=lambda h: h[1][order_by], reverse=descending)
        if limit is not None:
            hits = hits[: int(limit)]
        return [Document(id=doc_id, data=copy.deepcopy(body)) for doc_id, body in hits]
