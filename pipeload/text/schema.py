from __future__ import annotations

import re
from dataclasses import dataclass

from ..models.error_entry import ColumnMismatch

"""Header-derived table schema and per-record validation.

The first record of a file is always the header. Its values are used verbatim
as column names; every column is TEXT.
"""

__all__ = [
    "TableSchema",
    "sanitize_table_name",
]

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def sanitize_table_name(base_name: str) -> str:
    """Replace every character outside [A-Za-z0-9] with an underscore.

    >>> sanitize_table_name("sales-2024.q1")
    'sales_2024_q1'
    """
    return _NON_ALNUM.sub("_", base_name)


@dataclass(frozen=True)
class TableSchema:
    table_name: str
    columns: tuple[str, ...]

    @classmethod
    def from_header(cls, table_name: str, header: list[str]) -> TableSchema:
        return cls(table_name=table_name, columns=tuple(header))

    @property
    def column_count(self) -> int:
        return len(self.columns)

    def check(self, record: list[str], line: int, raw_line: str) -> ColumnMismatch | None:
        """Return a ColumnMismatch when ``record`` does not fit, else None."""
        if len(record) == self.column_count:
            return None
        return ColumnMismatch(
            line=line,
            expected_columns=self.column_count,
            got_columns=len(record),
            raw_content=raw_line,
        )
