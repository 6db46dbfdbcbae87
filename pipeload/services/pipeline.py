from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import BATCH_SIZE
from ..db.batch_insert import BatchInsertError, BatchMetrics, batch_insert
from ..db.store import SqliteStore, StoreError
from ..models.error_entry import ErrorEntry, InsertError
from ..models.file_report import FileReport, FileStatus, PipelineState
from ..models.processing_result import BatchStatsAccumulator
from ..text.normalizer import normalize
from ..text.reader import ReaderError, StreamOpenError, count_lines, iter_lines
from ..text.schema import TableSchema

"""Per-file ingestion pipeline: read → normalize → validate → batch → flush.

Failure handling is layered:

- a line with the wrong field count is dropped and recorded (ColumnMismatch)
- a batch whose INSERT fails is dropped and recorded (InsertError); the
  pipeline carries on with a fresh batch and never retries
- failing to open the file or create the table ends the pipeline as FAILED

Nothing raised here escapes into sibling pipelines: run() always returns a
FileReport.
"""

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class FilePipeline:
    """Streams one delimited file into its own table."""

    def __init__(
        self,
        path: Path,
        table_name: str,
        store: SqliteStore,
        *,
        separator: str = "|",
        batch_size: int = BATCH_SIZE,
        encoding: str = "utf-8",
        progress: ProgressCallback | None = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.path = path
        self.table_name = table_name
        self.store = store
        self.separator = separator
        self.batch_size = batch_size
        self.encoding = encoding
        self.progress = progress

        self.state = PipelineState.OPENING
        self.schema: TableSchema | None = None
        self.total_lines = 0  # counting pass (progress denominator)
        self.lines_seen = 0
        self.inserted_rows = 0
        self.error_count = 0
        self.skipped_count = 0
        self.errors: list[ErrorEntry] = []

        self._batch: list[list[str]] = []
        self._batch_first_line = 0
        self._batch_last_line = 0
        self._batch_stats = BatchStatsAccumulator()

    def run(self) -> FileReport:
        start_time = datetime.now(UTC)
        try:
            self.total_lines = count_lines(self.path, encoding=self.encoding)
            self.state = PipelineState.READING
            self._stream()
        except StreamOpenError as e:
            return self._fail(start_time, e, "STREAM_OPEN_ERROR")
        except StoreError as e:
            return self._fail(start_time, e, "TABLE_CREATE_ERROR")
        except (ReaderError, OSError) as e:
            return self._fail(start_time, e, "PROCESSING_ERROR")

        self.state = PipelineState.DONE
        return self._report(FileStatus.SUCCESS, start_time)

    def _fail(self, start_time: datetime, exc: Exception, error_type: str) -> FileReport:
        self.state = PipelineState.FAILED
        logger.error("file=%s table=%s failed: %s", self.path.name, self.table_name, exc)
        return self._report(FileStatus.FAILED, start_time, error=str(exc), error_type=error_type)

    def _stream(self) -> None:
        self.state = PipelineState.HEADER_PENDING
        for line_no, raw_line in enumerate(iter_lines(self.path, encoding=self.encoding), start=1):
            self.lines_seen = line_no
            if self.progress is not None:
                self.progress(line_no, self.total_lines)

            record = normalize(raw_line, self.separator)

            if self.schema is None:
                self.schema = TableSchema.from_header(self.table_name, record)
                self.store.create_table(self.table_name, self.schema.columns)
                self.state = PipelineState.TABLE_CREATED
                logger.debug(
                    "file=%s table=%s columns=%d", self.path.name, self.table_name,
                    self.schema.column_count,
                )
                continue

            mismatch = self.schema.check(record, line_no, raw_line)
            if mismatch is not None:
                self.skipped_count += 1
                self.errors.append(mismatch)
                continue

            self.state = PipelineState.STREAMING
            if not self._batch:
                self._batch_first_line = line_no
            self._batch.append(record)
            self._batch_last_line = line_no
            if len(self._batch) >= self.batch_size:
                self._flush()

        self.state = PipelineState.DRAINING
        if self._batch:
            self._flush()

    def _flush(self) -> None:
        rows = self._batch
        first_line, last_line = self._batch_first_line, self._batch_last_line
        # The batch is dropped whatever the outcome
        self._batch = []
        try:
            result = batch_insert(
                self.store, self.table_name, rows, metrics_callback=self._on_batch_metrics
            )
        except BatchInsertError as e:
            self.error_count += 1
            self.errors.append(InsertError(
                start_line=first_line,
                message=str(e),
                batch_size=len(rows),
                end_line=last_line,
            ))
            logger.debug(
                "file=%s lines=%d-%d insert failed: %s", self.path.name, first_line, last_line, e
            )
            return
        self.inserted_rows += result.inserted_rows

    def _on_batch_metrics(self, metrics: BatchMetrics) -> None:
        self._batch_stats.add_batch_time(metrics.elapsed_seconds)

    def _report(
        self,
        status: FileStatus,
        start_time: datetime,
        error: str | None = None,
        error_type: str | None = None,
    ) -> FileReport:
        end_time = datetime.now(UTC)
        total_batches, avg_batch, p95_batch = self._batch_stats.get_stats()
        return FileReport(
            table_name=self.table_name,
            file_name=self.path.name,
            path=self.path,
            status=status,
            total_lines=self.lines_seen,
            inserted_rows=self.inserted_rows,
            error_count=self.error_count,
            skipped_count=self.skipped_count,
            errors=tuple(self.errors),
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=(end_time - start_time).total_seconds(),
            total_batches=total_batches,
            avg_batch_seconds=avg_batch,
            p95_batch_seconds=p95_batch,
            error=error,
            error_type=error_type,
        )


def process_file(
    path: Path,
    table_name: str,
    store: SqliteStore,
    *,
    separator: str = "|",
    batch_size: int = BATCH_SIZE,
    encoding: str = "utf-8",
    progress: ProgressCallback | None = None,
) -> FileReport:
    """Run a FilePipeline for ``path`` and return its FileReport."""
    return FilePipeline(
        path,
        table_name,
        store,
        separator=separator,
        batch_size=batch_size,
        encoding=encoding,
        progress=progress,
    ).run()
