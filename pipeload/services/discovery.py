from __future__ import annotations

import logging
from pathlib import Path

from ..text.schema import sanitize_table_name

"""Input discovery and table identity assignment.

Table names come from the file's base name with everything outside
[A-Za-z0-9] replaced by "_". Distinct files can collapse onto the same name
(``a.b.csv`` and ``a-b.csv`` both give ``a_b``); the collision policy decides
what happens. Names are compared case-insensitively, as SQLite does:

- "suffix": later files (in name order) get ``_2``, ``_3``, ...
- "fail": SetupError before any file is processed
"""

logger = logging.getLogger(__name__)

COLLISION_POLICIES = ("suffix", "fail")


class SetupError(Exception):
    """Fatal error that prevents the run from starting."""


def scan_input_files(directory: Path, extension: str = ".csv") -> list[Path]:
    """Scan ``directory`` (non-recursive) for files with ``extension``.

    The extension match is case-insensitive. Results are sorted by name so
    that table suffixes are deterministic.

    Raises:
        SetupError: If the directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise SetupError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise SetupError(f"Path is not a directory: {directory}")

    wanted = extension.lower()
    try:
        files = [p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == wanted]
    except OSError as e:
        raise SetupError(f"Error reading directory {directory}: {e}") from e
    return sorted(files, key=lambda p: p.name)


def table_name_for(path: Path) -> str:
    return sanitize_table_name(path.stem)


def assign_table_names(paths: list[Path], policy: str = "suffix") -> dict[Path, str]:
    """Map each path to a unique table name.

    Raises:
        SetupError: On a collision with policy "fail", or an unknown policy
    """
    if policy not in COLLISION_POLICIES:
        raise SetupError(f"unknown table name collision policy: {policy}")

    # SQLite identifiers are case-insensitive: "Sales" and "sales" are one table
    owners: dict[str, Path] = {}
    names: dict[Path, str] = {}
    for path in paths:
        base = table_name_for(path)
        name = base
        if name.casefold() in owners:
            taken_by = owners[name.casefold()]
            if policy == "fail":
                raise SetupError(
                    f"table name collision: {path.name} and {taken_by.name} both map to '{name}'"
                )
            n = 2
            while f"{base}_{n}".casefold() in owners:
                n += 1
            name = f"{base}_{n}"
            logger.warning(
                "table name collision: %s maps to '%s' (taken by %s), using '%s'",
                path.name, base, taken_by.name, name,
            )
        owners[name.casefold()] = path
        names[path] = name
    return names
