from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import Any

"""Shared SQLite store for concurrent file pipelines.

One connection is shared by every pipeline of a run. sqlite3 connections are
not safe for concurrent use, so every statement runs under a single lock and
statements from different threads are never interleaved.

The store is a clean slate on every run: open_store() deletes an existing
database file before connecting.
"""

__all__ = [
    "StoreError",
    "SqliteStore",
    "open_store",
    "quote_identifier",
]

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the store cannot be opened, reset or a table created."""


def quote_identifier(name: str) -> str:
    """Quote an identifier for SQLite, doubling embedded double quotes."""
    return '"' + name.replace('"', '""') + '"'


class SqliteStore:
    """Serialized access to a single sqlite3 connection."""

    def __init__(self, conn: sqlite3.Connection, path: Path | None = None) -> None:
        self._conn = conn
        self._lock = threading.Lock()
        self.path = path

    def execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        with self._lock:
            return self._conn.execute(sql, params)

    def create_table(self, table: str, columns: Sequence[str]) -> None:
        """Create ``table`` with one TEXT column per name. Idempotent."""
        cols_sql = ", ".join(f"{quote_identifier(c)} TEXT" for c in columns)
        sql = f"CREATE TABLE IF NOT EXISTS {quote_identifier(table)} ({cols_sql})"
        try:
            self.execute(sql)
        except sqlite3.Error as e:
            raise StoreError(f"cannot create table {table}: {e}") from e

    def count_rows(self, table: str) -> int:
        row = self.execute(f"SELECT COUNT(*) FROM {quote_identifier(table)}").fetchone()
        return int(row[0])

    def fetch_all(self, table: str) -> list[tuple[Any, ...]]:
        return self.execute(f"SELECT * FROM {quote_identifier(table)}").fetchall()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> SqliteStore:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def open_store(path: Path) -> SqliteStore:
    """Delete any existing database at ``path`` and open a fresh one.

    Raises:
        StoreError: If the old file cannot be removed or the database opened
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.unlink(missing_ok=True)
    except OSError as e:
        raise StoreError(f"cannot reset store {path}: {e}") from e

    try:
        # Autocommit: each multi-row INSERT is its own transaction
        conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
        conn.execute("PRAGMA synchronous = NORMAL")
    except sqlite3.Error as e:
        raise StoreError(f"cannot open store {path}: {e}") from e

    logger.debug("store opened path=%s", path)
    return SqliteStore(conn, path=path)
