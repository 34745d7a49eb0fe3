from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.exceptions import ConcurrentUpdateError, IndexUnavailableError, StoreError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json, to_json_scalar
from .repository import Document, DocumentStore, index_fields

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _path(field_name: str) -> str:
    if not _FIELD_RE.match(field_name):
        raise StoreError(f"Unsupported field name: {field_name!r}")
    return f"$.{field_name}"


def _value_expr() -> str:
    return "JSON_UNQUOTE(JSON_EXTRACT(body, %s))"


def _not_null_expr() -> str:
    return "JSON_TYPE(JSON_EXTRACT(body, %s)) NOT IN ('NULL')"


class MySQLDocumentStore(DocumentStore):
    """JSON documents in one MySQL table (see database.bootstrap for the DDL).

    Composite indexes are tracked in `document_indexes`; only rows in state
    READY count, so a freshly declared index behaves as unavailable until the
    operator marks it built.
    """

    def __init__(self, conn_factory: DatabaseConnection, *, clock: Callable[[], datetime] = now_local):
        self._conn_factory = conn_factory
        self._clock = clock

    def _require_index(self, cur, collection: str, fields: tuple[str, ...]) -> None:
        if not fields:
            return
        cur.execute(
            """
            SELECT state FROM document_indexes
            WHERE collection=%s AND fields=%s
            """,
            (collection, ",".join(fields)),
        )
        row = fetchone(cur)
        if not row or row["state"] != "READY":
            raise IndexUnavailableError(collection, fields)

    def insert(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        now = self._clock()
        body = dict(data)
        body.setdefault("createdAt", now)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO documents(collection, doc_id, body, version, created_at, updated_at)
                VALUES(%s,%s,%s,1,%s,%s)
                """,
                (collection, doc_id, to_json(body), now, now),
            )
        return doc_id

    def get_by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT doc_id, body FROM documents WHERE collection=%s AND doc_id=%s",
                (collection, doc_id),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Document(id=row["doc_id"], data=from_json(row["body"]))

    def update(
        self,
        collection: str,
        doc_id: str,
        changes: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> Document:
        now = self._clock()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT body, version FROM documents WHERE collection=%s AND doc_id=%s",
                (collection, doc_id),
            )
            row = fetchone(cur)
            if not row:
                raise StoreError(f"{collection}/{doc_id} does not exist")
            body = from_json(row["body"])
            for key, value in (expected or {}).items():
                if body.get(key) != to_json_scalar(value):
                    raise ConcurrentUpdateError(f"{collection}/{doc_id} changed: {key}")

            body.update(changes)
            body["updatedAt"] = now
            cur.execute(
                """
                UPDATE documents
                SET body=%s, version=version+1, updated_at=%s
                WHERE collection=%s AND doc_id=%s AND version=%s
                """,
                (to_json(body), now, collection, doc_id, int(row["version"])),
            )
            if cur.rowcount == 0:
                raise ConcurrentUpdateError(f"{collection}/{doc_id} was modified concurrently")
        return self.get_by_id(collection, doc_id)

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
        return self._select(
            collection,
            equals={field_name: value},
            order_by=order_by,
            descending=descending,
            limit=limit,
            required_index=index_fields(order_by, equals={field_name: value}) if order_by else (),
        )

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
        return self._select(
            collection,
            equals=equals,
            range_field=field_name,
            start=start,
            end=end,
            order_by=order_by or field_name,
            descending=descending,
            limit=limit,
            required_index=index_fields(field_name, equals=equals, order_by=order_by),
        )

    def scan(self, collection: str) -> Sequence[Document]:
        return self._select(collection)

    def count(self, collection: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM documents WHERE collection=%s", (collection,))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def _select(
        self,
        collection: str,
        *,
        equals: Optional[Mapping[str, Any]] = None,
        range_field: Optional[str] = None,
        start: Any = None,
        end: Any = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        required_index: tuple[str, ...] = (),
    ) -> list[Document]:
        clauses = ["collection=%s"]
        params: list[object] = [collection]

        for key, value in (equals or {}).items():
            clauses.append(f"{_value_expr()}=%s")
            params.extend([_path(key), str(to_json_scalar(value))])

        if range_field:
            clauses.append(_not_null_expr())
            params.append(_path(range_field))
            if start is not None:
                clauses.append(f"{_value_expr()}>=%s")
                params.extend([_path(range_field), to_json_scalar(start)])
            if end is not None:
                clauses.append(f"{_value_expr()}<=%s")
                params.extend([_path(range_field), to_json_scalar(end)])

        sql = f"SELECT doc_id, body FROM documents WHERE {' AND '.join(clauses)}"
        if order_by:
            sql += f" ORDER BY {_value_expr()} {'DESC' if descending else 'ASC'}"
            params.append(_path(order_by))
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            self._require_index(cur, collection, required_index)
            cur.execute(sql, tuple(params))
            rows = fetchall(cur)
            return [Document(id=r["doc_id"], data=from_json(r["body"])) for r in rows]
