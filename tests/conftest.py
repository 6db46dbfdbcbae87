# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from pipeload.config.loader import ImportConfig
from pipeload.db.store import open_store
from pipeload.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "input").mkdir()
        (p / "output").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("PIPELOAD_DATABASE_PATH", raising=False)
        monkeypatch.delenv("PIPELOAD_SOURCE_DIRECTORY", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./output
database_path: ./output/database.sqlite
file_extension: .csv
separator: "|"
batch_size: 2
progress_interval_seconds: 0.01
sanitize:
  input_directory: ./input
  output_directory: ./output
  separator: "*|*"
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def import_config(temp_workdir: Path) -> ImportConfig:
    return ImportConfig(
        source_directory=str(temp_workdir / "output"),
        database_path=str(temp_workdir / "output" / "database.sqlite"),
        batch_size=2,
        progress_interval_seconds=0.01,
    )


@pytest.fixture()
def sample_files(temp_workdir: Path) -> list[Path]:
    """Two canonical pipe files: one clean, one with a malformed line."""
    out = temp_workdir / "output"
    people = out / "people.csv"
    people.write_text('"id"|"name"|"age"\n"1"|"Ann"|"30"\n"2"|"Bob"\n"3"|"Cid"|"40"\n', encoding="utf-8")
    orders = out / "orders.csv"
    orders.write_text('"id"|"amount"\n"1"|"9.50"\n"2"|"12.00"\n"3"|"1.25"\n', encoding="utf-8")
    return [orders, people]


@pytest.fixture()
def raw_files(temp_workdir: Path) -> list[Path]:
    """Raw *|* files as they arrive in the input directory."""
    inp = temp_workdir / "input"
    a = inp / "customers.csv"
    a.write_text('id*|*name\n1*|* "Ann" \n2*|*Bob"s\n3*|*Cid*|*extra\n', encoding="utf-8")
    b = inp / "items.csv"
    b.write_text('sku*|*qty\r\nA1*|*3\r\nB2*|*4', encoding="utf-8")
    return [a, b]


@pytest.fixture()
def store(tmp_path: Path):
    s = open_store(tmp_path / "test.sqlite")
    yield s
    s.close()


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()
