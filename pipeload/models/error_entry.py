from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

"""Per-file error entries collected while streaming a delimited file.

Two kinds exist and both are kept in file order on the FileReport:

- ColumnMismatch: a line whose field count differs from the header (row dropped)
- InsertError: a batch whose INSERT failed (all rows of the batch dropped)

Entries are never discarded, even though the rows they describe are.
"""

__all__ = [
    "ColumnMismatch",
    "InsertError",
    "ErrorEntry",
]


@dataclass(frozen=True)
class ColumnMismatch:
    """A record rejected because its field count differs from the header."""
    kind: ClassVar[str] = "column_mismatch"
    error_type: ClassVar[str] = "COLUMN_MISMATCH"

    line: int  # 1-based line number within the file
    expected_columns: int
    got_columns: int
    raw_content: str

    @property
    def message(self) -> str:
        return f"expected {self.expected_columns} columns, got {self.got_columns}"


@dataclass(frozen=True)
class InsertError:
    """A batch that could not be persisted."""
    kind: ClassVar[str] = "insert_error"
    error_type: ClassVar[str] = "INSERT_ERROR"

    start_line: int  # line number of the first record in the batch
    message: str
    batch_size: int
    end_line: int | None = None  # line number of the last record in the batch

    @property
    def line(self) -> int:
        return self.start_line

    @property
    def last_line(self) -> int:
        if self.end_line is not None:
            return self.end_line
        return self.start_line + self.batch_size - 1


ErrorEntry = Union[ColumnMismatch, InsertError]
