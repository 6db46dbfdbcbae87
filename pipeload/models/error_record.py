from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .error_entry import ErrorEntry

"""ErrorRecord model for the JSON Lines error log.

ErrorRecord is the serialized form of an ErrorEntry (or of a file-level
failure) once the owning file and table are known. line=-1 is the sentinel for
file-level errors where no line applies.
"""

__all__ = [
    "ErrorRecord",
    "FILE_LEVEL_LINE",
]

FILE_LEVEL_LINE = -1


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: source file name
        table: target table name
        line: 1-based line number, or -1 for file-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Database error message or description
    """
    timestamp: str
    file: str
    table: str
    line: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, table: str, line: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            table=table,
            line=line,
            error_type=error_type,
            message=message,
        )

    @staticmethod
    def from_entry(file: str, table: str, entry: ErrorEntry) -> ErrorRecord:
        """Build a record from a per-line or per-batch error entry."""
        return ErrorRecord.create(
            file=file,
            table=table,
            line=entry.line,
            error_type=entry.error_type,
            message=entry.message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
