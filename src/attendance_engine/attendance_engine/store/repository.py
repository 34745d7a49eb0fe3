from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol, Sequence


@dataclass(frozen=True)
class Document:
    """A stored document: id assigned by the store plus its field map."""

    id: str
    data: Mapping[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


class DocumentStore(Protocol):
    """Document-collection persistence consumed by the engine.

    Query shapes that combine an equality filter with a range or an ordering on
    another field need a composite index; when it is missing the store raises
    IndexUnavailableError and the caller degrades to a broader query.
    Other driver failures surface as StoreError.
    """

    def insert(self, collection: str, data: Mapping[str, Any]) -> str:
        raise NotImplementedError

    def get_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        raise NotImplementedError

    def update(
        self,
        collection: str,
        doc_id: str,
        changes: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> Document:
        """Merge `changes` into the document.

        `expected` holds field values that must still be current, otherwise
        ConcurrentUpdateError is raised and nothing is written.
        """

        raise NotImplementedError

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
        raise NotImplementedError

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
        """Documents with start <= field <= end (either bound optional)."""

        raise NotImplementedError

    def scan(self, collection: str) -> Sequence[Document]:
        raise NotImplementedError

    def count(self, collection: str) -> int:
        raise NotImplementedError


def index_fields(
    field_name: str,
    *,
    equals: Optional[Mapping[str, Any]] = None,
    order_by: Optional[str] = None,
) -> tuple[str, ...]:
    """Field list of the composite index a query shape needs (empty if none)."""

    eq_fields = tuple(sorted(equals or {}))
    if eq_fields and field_name in eq_fields:
        eq_fields = tuple(f for f in eq_fields if f != field_name)
    fields = eq_fields + (field_name,)
    if order_by and order_by != field_name:
        fields += (order_by,)
    if len(fields) == 1:
        return ()
    return fields
