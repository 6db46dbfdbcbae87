"""Domain models for the delimited-file -> SQLite loader.

This package contains the value objects passed between the reader, the file
pipelines, the orchestrator and the summary renderer.
"""

from .error_entry import ColumnMismatch, ErrorEntry, InsertError
from .error_record import FILE_LEVEL_LINE, ErrorRecord
from .file_report import FileReport, FileStatus, PipelineState
from .processing_result import BatchStatsAccumulator, ProcessingResult

__all__ = [
    # Error entries
    "ColumnMismatch",
    "ErrorEntry",
    "InsertError",
    "ErrorRecord",
    "FILE_LEVEL_LINE",
    # Processing models
    "FileReport",
    "FileStatus",
    "PipelineState",
    "BatchStatsAccumulator",
    "ProcessingResult",
]
