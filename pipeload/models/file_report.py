from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from .error_entry import ColumnMismatch, ErrorEntry, InsertError

"""FileReport domain model and status enums for a single file pipeline.

A pipeline walks through PipelineState while it runs and ends with an immutable
FileReport. FileStatus is the coarse terminal outcome used by the summary and
exit code logic.
"""


class PipelineState(Enum):
    """Lifecycle of one file pipeline.

    OPENING → READING → HEADER_PENDING → TABLE_CREATED → STREAMING → DRAINING → DONE
    Any fatal I/O fault moves the pipeline to FAILED.
    """
    OPENING = "opening"
    READING = "reading"
    HEADER_PENDING = "header_pending"
    TABLE_CREATED = "table_created"
    STREAMING = "streaming"
    DRAINING = "draining"
    DONE = "done"
    FAILED = "failed"


class FileStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class FileReport:
    """Terminal summary of one file's ingestion.

    error_count counts failed batches, skipped_count counts rejected lines.
    errors keeps the detailed entries of both kinds in file order.
    """
    table_name: str
    file_name: str
    path: Path
    status: FileStatus
    total_lines: int = 0
    inserted_rows: int = 0
    error_count: int = 0
    skipped_count: int = 0
    errors: tuple[ErrorEntry, ...] = field(default_factory=tuple)
    start_time: datetime | None = None
    end_time: datetime | None = None
    elapsed_seconds: float = 0.0
    total_batches: int = 0
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0
    error: str | None = None  # fatal failure reason (status FAILED)
    error_type: str | None = None  # STREAM_OPEN_ERROR / TABLE_CREATE_ERROR / PROCESSING_ERROR

    @property
    def column_errors(self) -> list[ColumnMismatch]:
        return [e for e in self.errors if isinstance(e, ColumnMismatch)]

    @property
    def insert_errors(self) -> list[InsertError]:
        return [e for e in self.errors if isinstance(e, InsertError)]
