from __future__ import annotations

import importlib.util
import time
from pathlib import Path

from pipeload.db.store import open_store
from pipeload.services.pipeline import process_file

"""Performance smoke test using the synthetic dataset generator.
Kept small so CI stays fast; thresholds are lenient.
"""

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "gen_perf_dataset.py"


def _load_generator():
    spec = importlib.util.spec_from_file_location("gen_perf_dataset", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_generator_marks_malformed_lines(tmp_path: Path):
    gen = _load_generator()
    path = tmp_path / "raw.csv"
    malformed = gen.write_dataset(path, rows=200, cols=5, malformed_ratio=0.05, seed=1)
    assert len(malformed) == 10
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 201
    for n in malformed:
        assert lines[n - 1].count("*|*") == 3


def test_perf_smoke_load(tmp_path: Path):
    gen = _load_generator()
    path = tmp_path / "perf.csv"
    rows = 20_000
    malformed = gen.write_dataset(path, rows=rows, cols=10, separator="|", malformed_ratio=0.01, seed=7)

    with open_store(tmp_path / "perf.sqlite") as store:
        start = time.perf_counter()
        report = process_file(path, "perf", store, separator="|", batch_size=50)
        elapsed = time.perf_counter() - start
        assert store.count_rows("perf") == rows - len(malformed)

    assert report.skipped_count == len(malformed)
    assert report.error_count == 0
    throughput = report.inserted_rows / elapsed
    # Extremely lenient floor: only catches pathological regressions
    assert throughput > 1_000, f"throughput too low: {throughput:.0f} rows/s"
