from __future__ import annotations

from typing import Mapping, Sequence

from ..core.constants import ATTENDANCE
from .connection import DatabaseConnection, DBConfig
from .mysql_base import db_cursor

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS documents (
        collection VARCHAR(64) NOT NULL,
        doc_id CHAR(32) NOT NULL,
        body JSON NOT NULL,
        version INT NOT NULL DEFAULT 1,
        created_at DATETIME(6) NOT NULL,
        updated_at DATETIME(6) NOT NULL,
        PRIMARY KEY (collection, doc_id)
    ) CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci
    """,
    """
    CREATE TABLE IF NOT EXISTS document_indexes (
        collection VARCHAR(64) NOT NULL,
        fields VARCHAR(255) NOT NULL,
        state VARCHAR(16) NOT NULL DEFAULT 'CREATING',
        PRIMARY KEY (collection, fields)
    ) CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci
    """,
)

# Composite indexes the engine's preferred query shapes use.
DEFAULT_INDEXES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (ATTENDANCE, ("employeeId", "entryTime")),
    (ATTENDANCE, ("employeeId", "createdAt")),
)


def ensure_database_exists(db_config: Mapping) -> None:
    target = DBConfig.from_mapping(db_config)
    conn = DatabaseConnection(target).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: Mapping) -> None:
    ensure_database_exists(db_config)
    conn_factory = DatabaseConnection(DBConfig.from_mapping(db_config))
    with db_cursor(conn_factory, dictionary=False) as (_, cur):
        for stmt in SCHEMA_STATEMENTS:
            cur.execute(stmt)


def declare_index(db_config: Mapping, collection: str, fields: Sequence[str], *, ready: bool = True) -> None:
    """Register a composite index; queries may use it once its state is READY."""
    conn_factory = DatabaseConnection(DBConfig.from_mapping(db_config))
    with db_cursor(conn_factory, dictionary=False) as (_, cur):
        cur.execute(
            """
            INSERT INTO document_indexes(collection, fields, state)
            VALUES(%s,%s,%s)
            ON DUPLICATE KEY UPDATE state=VALUES(state)
            """,
            (collection, ",".join(fields), "READY" if ready else "CREATING"),
        )


def list_tables(db_config: Mapping) -> list[str]:
    conn_factory = DatabaseConnection(DBConfig.from_mapping(db_config))
    with db_cursor(conn_factory, dictionary=False) as (_, cur):
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
