from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from pathlib import Path

from ..text.normalizer import canonicalize, format_canonical
from ..text.reader import ReaderError, iter_lines
from .discovery import SetupError, scan_input_files

"""Sanitize mode: rewrite raw files into canonical quoted-pipe companions.

Each input line is split on the source separator (``*|*`` by default), every
double quote is removed from each field, fields are trimmed, wrapped in quotes
and joined with ``|``. The header fixes the expected column count; lines with a
different count are dropped with a warning. Every written line ends with a
newline, including the last one.
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewriteResult:
    input_path: Path
    output_path: Path
    total_lines: int = 0
    written_lines: int = 0
    dropped_lines: int = 0
    error: str | None = None


def rewrite_file(
    input_path: Path,
    output_path: Path,
    separator: str = "*|*",
    encoding: str = "utf-8",
) -> RewriteResult:
    """Rewrite one file. An existing ``output_path`` is replaced.

    Raises:
        ReaderError: If the input cannot be opened
    """
    expected_columns: int | None = None
    total = written = dropped = 0
    lines = iter_lines(input_path, encoding=encoding)
    # Open the input before truncating the output
    first = next(lines, None)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding=encoding, newline="\n") as out:
        if first is None:
            return RewriteResult(input_path, output_path)
        for line_no, raw_line in enumerate(itertools.chain([first], lines), start=1):
            total = line_no
            fields = canonicalize(raw_line, separator)
            if expected_columns is None:
                expected_columns = len(fields)
            elif len(fields) != expected_columns:
                logger.warning(
                    "%s line #%d: wrong number of columns (expected %d, got %d)",
                    input_path.name, line_no, expected_columns, len(fields),
                )
                logger.warning("-> line content: %s", raw_line)
                dropped += 1
                continue
            out.write(format_canonical(fields) + "\n")
            written += 1

    return RewriteResult(input_path, output_path, total, written, dropped)


def rewrite_all(
    input_directory: Path,
    output_directory: Path,
    extension: str = ".csv",
    separator: str = "*|*",
    encoding: str = "utf-8",
) -> list[RewriteResult]:
    """Rewrite every matching file of ``input_directory`` into ``output_directory``.

    Files are processed one after another. A file that cannot be read is
    reported in its RewriteResult and the others still run.

    Raises:
        SetupError: If the input directory can't be listed, or input and output
            directories are the same
    """
    if input_directory.resolve() == output_directory.resolve():
        raise SetupError("sanitize input and output directories must differ")

    files = scan_input_files(input_directory, extension)
    logger.info(f"Found {len(files)} {extension} files to sanitize")
    output_directory.mkdir(parents=True, exist_ok=True)

    results: list[RewriteResult] = []
    for path in files:
        target = output_directory / path.name
        logger.info(f"Processing {path.name}...")
        try:
            result = rewrite_file(path, target, separator=separator, encoding=encoding)
        except (ReaderError, OSError) as e:
            logger.error(f"sanitize failed for {path.name}: {e}")
            results.append(RewriteResult(path, target, error=str(e)))
            continue
        logger.info(
            f"Finished processing {path.name} written={result.written_lines} "
            f"dropped={result.dropped_lines}"
        )
        results.append(result)
    return results
