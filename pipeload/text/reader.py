from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

"""Streaming line reader for delimited text files.

Files are never materialized: iter_lines() yields one decoded line at a time
and count_lines() is a separate pass over a freshly opened handle, so the
progress denominator costs a second read instead of memory.

Universal newlines are used: "\\r\\n", "\\n" and a lone "\\r" all end a line and
are not part of the yielded text. Undecodable bytes are replaced rather than
aborting the stream.
"""

__all__ = [
    "ReaderError",
    "StreamOpenError",
    "iter_lines",
    "count_lines",
]


class ReaderError(Exception):
    """Base exception for input stream failures."""


class StreamOpenError(ReaderError):
    """Raised when an input file cannot be opened."""


def _open(path: Path, encoding: str):
    try:
        return path.open("r", encoding=encoding, errors="replace", newline=None)
    except OSError as e:
        raise StreamOpenError(f"cannot open {path}: {e}") from e


def iter_lines(path: Path, encoding: str = "utf-8") -> Iterator[str]:
    """Yield the lines of ``path`` without their terminators.

    The file is opened on the first ``next()`` call, so a generator that is
    never advanced never touches the filesystem.

    Raises:
        StreamOpenError: If the file cannot be opened
    """
    with _open(path, encoding) as f:
        for line in f:
            yield line.rstrip("\n")


def count_lines(path: Path, encoding: str = "utf-8") -> int:
    """Count lines with an independent pass over ``path``."""
    total = 0
    for _ in iter_lines(path, encoding=encoding):
        total += 1
    return total
