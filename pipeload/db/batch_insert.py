from __future__ import annotations

import sqlite3
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from .store import SqliteStore, quote_identifier

"""Multi-row batch INSERT into the shared SQLite store.

A batch is written with one statement:

    INSERT INTO "t" VALUES (?,?,?),(?,?,?),...

so it either lands completely or not at all. Failures are wrapped in
BatchInsertError; retry and error accounting belong to the caller.
"""


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Metrics data for a single batch insert operation."""
    batch_size: int  # Number of rows in this batch
    elapsed_seconds: float  # Time spent executing the INSERT
    start_time: float  # Start timestamp (time.time())
    end_time: float  # End timestamp (time.time())


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int


def build_insert_sql(table: str, column_count: int, row_count: int) -> str:
    """Build the parameterized multi-row INSERT statement.

    >>> build_insert_sql("t", 2, 2)
    'INSERT INTO "t" VALUES (?,?),(?,?)'
    """
    row_placeholder = "(" + ",".join("?" * column_count) + ")"
    values_sql = ",".join([row_placeholder] * row_count)
    return f"INSERT INTO {quote_identifier(table)} VALUES {values_sql}"


def batch_insert(
    store: SqliteStore,
    table: str,
    rows: Iterable[Sequence[str]],
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """Insert ``rows`` into ``table`` with a single statement.

    Parameters
    ----------
    store: shared store (statement execution is serialized by the store)
    table: target table, already created
    rows: records of equal length matching the table's column count
    metrics_callback: Optional callback receiving BatchMetrics for the attempt.
        Called for failed attempts too; not called when ``rows`` is empty.

    Raises
    ------
    BatchInsertError: when the statement fails
    """
    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0)

    sql = build_insert_sql(table, len(rows_list[0]), len(rows_list))
    params = [value for row in rows_list for value in row]

    start_time = time.time()
    try:
        store.execute(sql, params)
    except sqlite3.Error as e:
        raise BatchInsertError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(BatchMetrics(
                batch_size=len(rows_list),
                elapsed_seconds=end_time - start_time,
                start_time=start_time,
                end_time=end_time,
            ))

    return InsertResult(inserted_rows=len(rows_list))
