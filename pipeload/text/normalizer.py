from __future__ import annotations

"""Record normalization for quoted, custom-separated text lines.

Two field rules exist:

- normalize(): used when loading. Strips at most one leading and one trailing
  double quote per field, then surrounding whitespace.
- canonicalize(): used by the sanitize rewrite. Removes every double quote in
  the field, then surrounding whitespace.

The separator is always a hard split point, even inside quotes. Quoted fields
containing the separator are therefore split; this is a known limitation.
"""

__all__ = [
    "CANONICAL_SEPARATOR",
    "normalize",
    "canonicalize",
    "format_canonical",
]

CANONICAL_SEPARATOR = "|"
QUOTE = '"'


def _split(raw_line: str, separator: str) -> list[str]:
    if not separator:
        raise ValueError("separator must be a non-empty string")
    return raw_line.split(separator)


def _strip_outer_quotes(field: str) -> str:
    if field.startswith(QUOTE):
        field = field[1:]
    if field.endswith(QUOTE):
        field = field[:-1]
    return field.strip()


def normalize(raw_line: str, separator: str = CANONICAL_SEPARATOR) -> list[str]:
    """Split ``raw_line`` on ``separator`` and clean each field.

    >>> normalize('"1"|" Ann "| 30 ', "|")
    ['1', 'Ann', '30']
    """
    return [_strip_outer_quotes(f) for f in _split(raw_line, separator)]


def canonicalize(raw_line: str, separator: str) -> list[str]:
    """Split ``raw_line`` and drop every double quote from each field.

    >>> canonicalize('a"x"*|*b', "*|*")
    ['ax', 'b']
    """
    return [f.replace(QUOTE, "").strip() for f in _split(raw_line, separator)]


def format_canonical(fields: list[str]) -> str:
    """Render fields as ``"f1"|"f2"|...`` (no trailing newline)."""
    return CANONICAL_SEPARATOR.join(f"{QUOTE}{f}{QUOTE}" for f in fields)
