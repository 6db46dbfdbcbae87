from __future__ import annotations

from ..models.file_report import FileReport
from ..models.processing_result import ProcessingResult

"""End-of-run summary rendering.

Two outputs:
- render_file_report(): per-file block with a capped preview of each error kind
- render_summary_line(): the single SUMMARY line

SUMMARY format:
SUMMARY files={n} success={s} failed={f} lines={l} rows={r} skipped={k}
insert_errors={e} elapsed_sec={t} throughput_rps={x}
"""

DEFAULT_PREVIEW_LIMIT = 5


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Avoid scientific notation for very small values
        return f"{value:.6f}".rstrip('0').rstrip('.')
    return str(round(value, 3))


def render_summary_line(result: ProcessingResult) -> str:
    """Render the SUMMARY line for a run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     success_files=1, failed_files=0, total_lines=1001, inserted_rows=1000,
        ...     skipped_rows=0, insert_errors=0, start_time=start, end_time=end,
        ...     elapsed_seconds=2.0, throughput_rows_per_sec=500.0,
        ... )
        >>> render_summary_line(result)  # doctest: +ELLIPSIS
        'SUMMARY files=1 success=1 failed=0 lines=1001 rows=1000 skipped=0 insert_errors=0 ...'
    """
    return (
        f"SUMMARY files={result.total_files} "
        f"success={result.success_files} "
        f"failed={result.failed_files} "
        f"lines={result.total_lines} "
        f"rows={result.inserted_rows} "
        f"skipped={result.skipped_rows} "
        f"insert_errors={result.insert_errors} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_rps={_format_number(result.throughput_rows_per_sec)}"
    )


def render_file_report(report: FileReport, limit: int = DEFAULT_PREVIEW_LIMIT) -> list[str]:
    """Render one file's outcome with at most ``limit`` entries per error kind."""
    lines = [
        f"FILE table={report.table_name} file={report.file_name} "
        f"status={report.status.value} lines={report.total_lines} "
        f"rows={report.inserted_rows} errors={report.error_count} "
        f"skipped={report.skipped_count}"
    ]
    if report.error is not None:
        lines.append(f"Failure: {report.error}")

    column_errors = report.column_errors
    if column_errors:
        lines.append("Column count mismatches:")
        for err in column_errors[:limit]:
            lines.append(
                f"Line {err.line}: Expected {err.expected_columns} columns, got {err.got_columns}"
            )
            lines.append(f"Content: {err.raw_content}")
        if len(column_errors) > limit:
            lines.append(f"... and {len(column_errors) - limit} more column errors")

    insert_errors = report.insert_errors
    if insert_errors:
        lines.append("Insertion errors:")
        for err in insert_errors[:limit]:
            lines.append(f"Lines {err.start_line}-{err.last_line}: {err.message}")
        if len(insert_errors) > limit:
            lines.append(f"... and {len(insert_errors) - limit} more insertion errors")

    return lines
