from __future__ import annotations

import json
import sqlite3
from contextlib import closing
from dataclasses import replace
from pathlib import Path
from unittest.mock import Mock

import pytest

import pipeload.services.pipeline as pipeline_mod
from pipeload.db.batch_insert import BatchInsertError, batch_insert
from pipeload.logging.error_log import ErrorLogBuffer
from pipeload.models.error_record import FILE_LEVEL_LINE
from pipeload.models.file_report import FileReport, FileStatus
from pipeload.services.discovery import SetupError
from pipeload.services.orchestrator import error_records_for, process_all


def _by_file(result) -> dict[str, FileReport]:
    return {r.file_name: r for r in result.file_reports}


def _count(db_path: str, table: str) -> int:
    with closing(sqlite3.connect(db_path)) as conn:
        return conn.execute(f'SELECT COUNT(*) FROM "{table}"').fetchone()[0]


def _run(config, tmp_path: Path, renderer=None):
    return process_all(
        config,
        renderer=renderer if renderer is not None else Mock(),
        error_log=ErrorLogBuffer(tmp_path / "logs"),
    )


def test_process_all_loads_every_file(import_config, sample_files, tmp_path: Path):
    renderer = Mock()
    result = _run(import_config, tmp_path, renderer)

    assert result.total_files == 2
    assert result.success_files == 2
    assert result.inserted_rows == 5
    assert result.skipped_rows == 1
    assert result.total_lines == 8
    assert _count(import_config.database_path, "people") == 2
    assert _count(import_config.database_path, "orders") == 3

    renderer.close.assert_called_once()
    final = renderer.render.call_args[0][0]
    assert (final.current, final.total) == (8, 8)
    assert set(final.files) == {"people.csv", "orders.csv"}


def test_batch_failures_in_one_file_do_not_affect_others(
    import_config, sample_files, tmp_path: Path, monkeypatch
):
    def failing_for_orders(store, table, rows, metrics_callback=None):
        if table == "orders":
            raise BatchInsertError("simulated failure")
        return batch_insert(store, table, rows, metrics_callback=metrics_callback)

    monkeypatch.setattr(pipeline_mod, "batch_insert", failing_for_orders)
    result = _run(import_config, tmp_path)
    reports = _by_file(result)

    assert reports["orders.csv"].status == FileStatus.SUCCESS
    assert reports["orders.csv"].inserted_rows == 0
    assert reports["orders.csv"].error_count == 2
    assert reports["people.csv"].inserted_rows == 2
    assert result.failed_files == 0
    assert result.insert_errors == 2


def test_crashing_pipeline_is_reported_as_failed(
    import_config, sample_files, tmp_path: Path, monkeypatch
):
    def crash_for_orders(store, table, rows, metrics_callback=None):
        if table == "orders":
            raise RuntimeError("kaboom")
        return batch_insert(store, table, rows, metrics_callback=metrics_callback)

    monkeypatch.setattr(pipeline_mod, "batch_insert", crash_for_orders)
    result = _run(import_config, tmp_path)
    reports = _by_file(result)

    assert reports["orders.csv"].status == FileStatus.FAILED
    assert reports["orders.csv"].error_type == "PROCESSING_ERROR"
    assert "kaboom" in reports["orders.csv"].error
    assert reports["people.csv"].status == FileStatus.SUCCESS
    assert _count(import_config.database_path, "people") == 2
    assert result.failed_files == 1


def test_rerun_replaces_previous_data(import_config, sample_files, tmp_path: Path):
    _run(import_config, tmp_path)
    _run(import_config, tmp_path)
    assert _count(import_config.database_path, "people") == 2
    assert _count(import_config.database_path, "orders") == 3


def test_single_worker_processes_all_files(import_config, sample_files, tmp_path: Path):
    result = _run(replace(import_config, max_workers=1), tmp_path)
    assert result.success_files == 2


def test_empty_directory(import_config, tmp_path: Path):
    result = _run(import_config, tmp_path)
    assert result.total_files == 0
    assert result.inserted_rows == 0
    assert Path(import_config.database_path).exists()


def test_missing_source_directory(import_config, tmp_path: Path):
    cfg = replace(import_config, source_directory=str(tmp_path / "missing"))
    with pytest.raises(SetupError):
        _run(cfg, tmp_path)


def test_collision_fail_policy_aborts_before_loading(import_config, temp_workdir: Path, tmp_path: Path):
    out = temp_workdir / "output"
    (out / "a-b.csv").write_text("x\n1\n", encoding="utf-8")
    (out / "a.b.csv").write_text("x\n2\n", encoding="utf-8")
    cfg = replace(import_config, table_name_collision="fail")
    with pytest.raises(SetupError):
        _run(cfg, tmp_path)
    assert not Path(cfg.database_path).exists()


def test_collision_suffix_policy_loads_both(import_config, temp_workdir: Path, tmp_path: Path):
    out = temp_workdir / "output"
    (out / "a-b.csv").write_text("x\n1\n", encoding="utf-8")
    (out / "a.b.csv").write_text("x\n2\n", encoding="utf-8")
    _run(import_config, tmp_path)
    assert _count(import_config.database_path, "a_b") == 1
    assert _count(import_config.database_path, "a_b_2") == 1


def test_error_log_written(import_config, sample_files, tmp_path: Path):
    _run(import_config, tmp_path)
    logs = list((tmp_path / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    records = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert records == [{
        "timestamp": records[0]["timestamp"],
        "file": "people.csv",
        "table": "people",
        "line": 3,
        "error_type": "COLUMN_MISMATCH",
        "message": "expected 3 columns, got 2",
    }]


def test_error_records_for_failed_report():
    report = FileReport(
        table_name="t",
        file_name="t.csv",
        path=Path("t.csv"),
        status=FileStatus.FAILED,
        error="cannot open t.csv",
        error_type="STREAM_OPEN_ERROR",
    )
    (record,) = error_records_for(report)
    assert record.line == FILE_LEVEL_LINE
    assert record.error_type == "STREAM_OPEN_ERROR"
    assert record.message == "cannot open t.csv"


def test_case_only_collision_loads_separate_tables(import_config, temp_workdir: Path, tmp_path: Path):
    out = temp_workdir / "output"
    (out / "Sales.csv").write_text("x\n1\n", encoding="utf-8")
    (out / "sales.csv").write_text("y|z\n2|3\n", encoding="utf-8")
    result = _run(import_config, tmp_path)

    reports = _by_file(result)
    assert reports["sales.csv"].table_name == "sales_2"
    assert reports["sales.csv"].error_count == 0
    assert _count(import_config.database_path, "Sales") == 1
    assert _count(import_config.database_path, "sales_2") == 1
