#!/usr/bin/env python3
"""Dataset generation script for performance testing.

Generates synthetic delimited files in the raw format the tool ingests:
- Line 1: header with column names
- Line 2+: data lines, fields joined by the separator and randomly quoted

A fraction of lines can be made malformed (one field missing) to exercise the
column-mismatch path.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np


def generate_rows(
    rows: int, cols: int, malformed_ratio: float = 0.0, seed: int = 42
) -> tuple[list[str], list[list[str]], list[int]]:
    """Generate a header, data rows and the 1-based line numbers made malformed.

    Column types cycle through id / name / amount / quantity / category so the
    text looks like a typical export.
    """
    rng = np.random.default_rng(seed)
    header = ["id"] + [f"col_{i}" for i in range(1, cols)]
    categories = np.array(["Electronics", "Clothing", "Books", "Food", "Sports", "Home"])

    columns: list[list[str]] = [[str(i) for i in range(1, rows + 1)]]
    for i in range(1, cols):
        kind = i % 4
        if kind == 1:
            values = [f"Item_{v}" for v in rng.integers(1000, 9999, rows)]
        elif kind == 2:
            values = [f"{v:.2f}" for v in rng.uniform(0.01, 9999.99, rows)]
        elif kind == 3:
            values = [str(v) for v in rng.integers(1, 1000, rows)]
        else:
            values = rng.choice(categories, rows).tolist()
        columns.append(values)

    data = [list(r) for r in zip(*columns)]

    malformed: list[int] = []
    if malformed_ratio > 0 and cols > 1:
        count = int(rows * malformed_ratio)
        picked = np.sort(rng.choice(rows, size=count, replace=False))
        for idx in picked:
            data[idx] = data[idx][:-1]
            malformed.append(int(idx) + 2)  # header is line 1
    return header, data, malformed


def write_dataset(
    output_path: Path,
    rows: int,
    cols: int,
    separator: str = "*|*",
    malformed_ratio: float = 0.0,
    quote_ratio: float = 0.3,
    seed: int = 42,
) -> list[int]:
    """Write a synthetic file and return the malformed line numbers."""
    rng = np.random.default_rng(seed + 1)
    header, data, malformed = generate_rows(rows, cols, malformed_ratio, seed)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="\n") as f:
        f.write(separator.join(header) + "\n")
        for row in data:
            quoted = rng.random(len(row)) < quote_ratio
            f.write(separator.join(f'"{v}"' if q else v for v, q in zip(row, quoted)) + "\n")
    return malformed


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic delimited datasets for performance testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate default 50k rows, 40 columns in raw *|* format
  %(prog)s input/perf.csv

  # Canonical pipe format with 1%% malformed lines
  %(prog)s output/perf.csv --separator "|" --malformed-ratio 0.01
        """
    )
    parser.add_argument("output", type=Path, help="Output file path")
    parser.add_argument("--rows", type=int, default=50_000, help="Number of data rows (default: 50,000)")
    parser.add_argument("--cols", type=int, default=40, help="Number of columns (default: 40)")
    parser.add_argument("--separator", default="*|*", help="Field separator (default: *|*)")
    parser.add_argument(
        "--malformed-ratio", type=float, default=0.0,
        help="Fraction of data lines missing one field (default: 0)"
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Show what would be generated without creating files"
    )
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if args.cols <= 0:
        print("Error: --cols must be positive", file=sys.stderr)
        return 1
    if not 0 <= args.malformed_ratio < 1:
        print("Error: --malformed-ratio must be in [0, 1)", file=sys.stderr)
        return 1

    print("Dataset generation plan:")
    print(f"  Output file: {args.output}")
    print(f"  Rows: {args.rows:,} (+ 1 header line)")
    print(f"  Columns: {args.cols}")
    print(f"  Separator: {args.separator}")
    print(f"  Malformed ratio: {args.malformed_ratio}")
    print(f"  Random seed: {args.seed}")

    if args.dry_run:
        print("\n[DRY RUN] Would generate files but not creating them.")
        return 0

    malformed = write_dataset(
        args.output, args.rows, args.cols, args.separator, args.malformed_ratio, seed=args.seed
    )
    print(f"\nCreated {args.output} ({len(malformed)} malformed lines)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
