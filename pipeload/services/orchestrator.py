from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import ImportConfig
from ..db.store import SqliteStore, StoreError, open_store
from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import FILE_LEVEL_LINE, ErrorRecord
from ..models.file_report import FileReport, FileStatus
from ..models.processing_result import ProcessingResult
from .discovery import SetupError, assign_table_names, scan_input_files
from .pipeline import FilePipeline
from .progress import ProgressAggregator, ProgressRenderer, TqdmProgressRenderer

"""Service orchestration for the delimited-text -> SQLite loader.

process_all() coordinates a run:
1. Scan the source directory and assign table names (collision policy)
2. Recreate the store (clean slate)
3. Submit one FilePipeline per file to a thread pool; all share the store
4. Wait for every pipeline, success or failure
5. Write the JSON Lines error log and return a ProcessingResult

Only setup problems raise (SetupError). Per-file failures come back as FAILED
FileReports.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "SetupError",
    "process_all",
    "error_records_for",
]


def error_records_for(report: FileReport) -> list[ErrorRecord]:
    """Convert a FileReport's entries (and fatal error) into log records."""
    records = [
        ErrorRecord.from_entry(report.file_name, report.table_name, entry)
        for entry in report.errors
    ]
    if report.status == FileStatus.FAILED and report.error is not None:
        records.append(ErrorRecord.create(
            file=report.file_name,
            table=report.table_name,
            line=FILE_LEVEL_LINE,
            error_type=report.error_type or "PROCESSING_ERROR",
            message=report.error,
        ))
    return records


def _run_pipeline(
    path: Path,
    table_name: str,
    store: SqliteStore,
    config: ImportConfig,
    aggregator: ProgressAggregator,
) -> FileReport:
    logger.debug("started file=%s table=%s", path.name, table_name)
    pipeline = FilePipeline(
        path,
        table_name,
        store,
        separator=config.separator,
        batch_size=config.batch_size,
        encoding=config.encoding,
        progress=aggregator.reporter(path.name),
    )
    try:
        return pipeline.run()
    except Exception as e:
        # A crashing pipeline must not take its siblings down
        logger.error("file=%s table=%s unexpected error: %s", path.name, table_name, e)
        start = datetime.now(UTC)
        return FileReport(
            table_name=table_name,
            file_name=path.name,
            path=path,
            status=FileStatus.FAILED,
            total_lines=pipeline.lines_seen,
            inserted_rows=pipeline.inserted_rows,
            error_count=pipeline.error_count,
            skipped_count=pipeline.skipped_count,
            errors=tuple(pipeline.errors),
            start_time=start,
            end_time=start,
            error=f"unexpected error: {e}",
            error_type="PROCESSING_ERROR",
        )


def _join(futures: list[tuple[Path, Future[FileReport]]]) -> list[FileReport]:
    # Every future is awaited; _run_pipeline never raises
    return [future.result() for _, future in futures]


def process_all(
    config: ImportConfig,
    store: SqliteStore | None = None,
    renderer: ProgressRenderer | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ProcessingResult:
    """Load every matching file of ``config.source_directory`` into the store.

    Args:
        config: Import configuration
        store: Store to load into. None opens (and recreates) the database at
            ``config.database_path`` and closes it when done.
        renderer: Progress renderer; defaults to tqdm bars on a TTY
        error_log: Error log buffer; defaults to ``logs/errors-*.log``

    Returns:
        ProcessingResult with one FileReport per discovered file

    Raises:
        SetupError: directory listing, name collision (policy "fail") or store
            open/reset failure
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()

    file_paths = scan_input_files(Path(config.source_directory), config.file_extension)
    table_names = assign_table_names(file_paths, config.table_name_collision)
    logger.info(f"Found {len(file_paths)} {config.file_extension} files to process")

    owns_store = store is None
    if store is None:
        try:
            store = open_store(Path(config.database_path))
        except StoreError as e:
            raise SetupError(str(e)) from e

    try:
        if not file_paths:
            return ProcessingResult.from_reports([], start_time, datetime.now(UTC))

        aggregator = ProgressAggregator(
            interval=config.progress_interval_seconds,
            renderer=renderer if renderer is not None else TqdmProgressRenderer(),
        )
        max_workers = config.max_workers or len(file_paths)
        with aggregator, ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="pipeline"
        ) as executor:
            # Launch everything before awaiting anything
            futures = [
                (path, executor.submit(
                    _run_pipeline, path, table_names[path], store, config, aggregator
                ))
                for path in file_paths
            ]
            reports = _join(futures)
    finally:
        if owns_store:
            store.close()

    for report in reports:
        error_log.extend(error_records_for(report))
    try:
        log_path = error_log.flush()
    except OSError as e:
        # Error log problems never fail the run
        logger.warning(f"could not write error log: {e}")
    else:
        if log_path is not None:
            logger.info(f"error log written: {log_path}")

    return ProcessingResult.from_reports(reports, start_time, datetime.now(UTC))
