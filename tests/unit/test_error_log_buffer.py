from __future__ import annotations

import json
import re
import threading
from pathlib import Path

from pipeload.logging.error_log import ErrorLogBuffer
from pipeload.models.error_entry import ColumnMismatch, InsertError
from pipeload.models.error_record import ErrorRecord

KEYS = {"timestamp", "file", "table", "line", "error_type", "message"}


def test_error_record_creation_and_json_line():
    rec = ErrorRecord.create(
        file="people.csv",
        table="people",
        line=10,
        error_type="INSERT_ERROR",
        message="constraint failed",
    )
    data = json.loads(rec.to_json_line())
    assert data["file"] == "people.csv"
    assert data["table"] == "people"
    assert data["line"] == 10
    assert data["timestamp"].endswith("Z")
    assert set(data.keys()) == KEYS


def test_error_record_from_entries():
    mismatch = ColumnMismatch(line=3, expected_columns=3, got_columns=2, raw_content="2|Bob")
    rec = ErrorRecord.from_entry("p.csv", "p", mismatch)
    assert (rec.line, rec.error_type) == (3, "COLUMN_MISMATCH")
    assert rec.message == "expected 3 columns, got 2"

    failed = InsertError(start_line=4, message="boom", batch_size=2, end_line=5)
    rec = ErrorRecord.from_entry("p.csv", "p", failed)
    assert (rec.line, rec.error_type, rec.message) == (4, "INSERT_ERROR", "boom")


def test_non_ascii_kept_verbatim():
    rec = ErrorRecord.create("ñ.csv", "_", 1, "COLUMN_MISMATCH", "día")
    assert "día" in rec.to_json_line()


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("f1.csv", "f1", 1, "COLUMN_MISMATCH", "bad"))
    buf.append(ErrorRecord.create("f1.csv", "f1", 2, "INSERT_ERROR", "dup"))
    path = buf.flush()
    assert path is not None and path.exists()
    assert path.parent == Path("./logs")
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        assert set(json.loads(raw).keys()) == KEYS
    # flush clears the buffer
    assert len(buf) == 0


def test_flush_without_records_creates_nothing(tmp_path: Path):
    logs = tmp_path / "logs"
    buf = ErrorLogBuffer(logs_dir=logs)
    assert buf.flush() is None
    assert not logs.exists()


def test_error_log_buffer_multiple_flushes(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.append(ErrorRecord.create("f.csv", "f", 1, "INSERT_ERROR", "a"))
    path = buf.flush()
    buf.append(ErrorRecord.create("f.csv", "f", 2, "INSERT_ERROR", "b"))
    path2 = buf.flush()
    assert path == path2
    assert len(path.read_text(encoding="utf-8").splitlines()) == 2


def test_concurrent_appends(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)

    def worker(n: int) -> None:
        for i in range(100):
            buf.append(ErrorRecord.create(f"{n}.csv", str(n), i, "INSERT_ERROR", "x"))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(buf) == 400
