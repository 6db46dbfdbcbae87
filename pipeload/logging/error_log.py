from __future__ import annotations

import threading
from datetime import UTC, datetime
from pathlib import Path

from pipeload.models.error_record import ErrorRecord

"""Error log buffering for concurrent pipelines.

- JSON Lines, fixed schema (see ErrorRecord)
- One `logs/errors-YYYYMMDD-HHMMSS.log` (UTC) per run, created on first flush
  that has records
- append() is called from several pipeline threads, so the buffer is locked
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush writes JSON Lines."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR
        self._lock = threading.Lock()

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        with self._lock:
            self._records.append(record)

    def extend(self, records: list[ErrorRecord]) -> None:
        with self._lock:
            self._records.extend(records)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        with self._lock:
            return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file; None when nothing to write."""
        with self._lock:
            if not self._records:
                return None
            fp = self.file_path
            with fp.open("a", encoding="utf-8") as f:
                for r in self._records:
                    f.write(r.to_json_line() + "\n")
            self._records.clear()
            return fp
