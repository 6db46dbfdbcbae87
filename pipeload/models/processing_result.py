from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from datetime import datetime

from .file_report import FileReport, FileStatus

"""Processing result models for a full load run.

ProcessingResult merges the FileReports of every pipeline into run totals.
BatchStatsAccumulator collects per-batch timings for one file.
"""


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of one orchestration run."""
    success_files: int
    failed_files: int
    total_lines: int
    inserted_rows: int
    skipped_rows: int  # lines rejected for column mismatch
    insert_errors: int  # batches that failed to insert
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float
    file_reports: list[FileReport] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files

    @classmethod
    def from_reports(
        cls,
        reports: list[FileReport],
        start_time: datetime,
        end_time: datetime,
    ) -> ProcessingResult:
        elapsed = (end_time - start_time).total_seconds()
        inserted = sum(r.inserted_rows for r in reports)
        # Avoid division by zero on instant runs
        throughput = inserted / elapsed if elapsed > 0 else 0.0
        return cls(
            success_files=sum(1 for r in reports if r.status == FileStatus.SUCCESS),
            failed_files=sum(1 for r in reports if r.status == FileStatus.FAILED),
            total_lines=sum(r.total_lines for r in reports),
            inserted_rows=inserted,
            skipped_rows=sum(r.skipped_count for r in reports),
            insert_errors=sum(r.error_count for r in reports),
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=elapsed,
            throughput_rows_per_sec=throughput,
            file_reports=list(reports),
        )


class BatchStatsAccumulator:
    """Accumulates batch timing statistics for a FileReport."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Calculate batch statistics.

        Returns:
            tuple: (total_batches, avg_batch_seconds, p95_batch_seconds)
        """
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method='inclusive'
            )[18]  # 95th percentile (19th out of 20 quantiles, 0-indexed)

        return (total_batches, avg_batch_seconds, p95_batch_seconds)
