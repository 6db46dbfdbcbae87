from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load the YAML config (default config/import.yml)
- Validate it against the bundled JSON schema (unknown keys rejected)
- Apply defaults for absent keys
- Apply environment overrides (PIPELOAD_DATABASE_PATH, PIPELOAD_SOURCE_DIRECTORY)
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")

ENV_DATABASE_PATH = "PIPELOAD_DATABASE_PATH"
ENV_SOURCE_DIRECTORY = "PIPELOAD_SOURCE_DIRECTORY"

BATCH_SIZE = 100
PROGRESS_INTERVAL_SECONDS = 0.1


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class SanitizeConfig:
    input_directory: str = "./input"
    output_directory: str = "./output"
    separator: str = "*|*"


@dataclass(frozen=True)
class ImportConfig:
    source_directory: str = "./output"
    database_path: str = "./output/database.sqlite"
    file_extension: str = ".csv"
    separator: str = "|"
    batch_size: int = BATCH_SIZE
    progress_interval_seconds: float = PROGRESS_INTERVAL_SECONDS
    max_workers: int | None = None  # None: one worker per file
    encoding: str = "utf-8"
    table_name_collision: str = "suffix"  # suffix | fail
    error_preview_limit: int = 5
    sanitize: SanitizeConfig = field(default_factory=SanitizeConfig)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the config
            data fails validation (unknown keys, wrong types, bad values).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def config_from_dict(data: dict[str, Any]) -> ImportConfig:
    """Build an ImportConfig from validated data, filling defaults."""
    _validate_config_schema(data)
    sanitize_raw = data.get("sanitize") or {}
    values = {k: v for k, v in data.items() if k != "sanitize"}
    return ImportConfig(sanitize=SanitizeConfig(**sanitize_raw), **values)


def _apply_env_overrides(cfg: ImportConfig) -> ImportConfig:
    overrides: dict[str, Any] = {}
    db_path = os.getenv(ENV_DATABASE_PATH)
    if db_path:
        overrides["database_path"] = db_path
    source = os.getenv(ENV_SOURCE_DIRECTORY)
    if source:
        overrides["source_directory"] = source
    if not overrides:
        return cfg
    return replace(cfg, **overrides)


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    return _apply_env_overrides(config_from_dict(data))
