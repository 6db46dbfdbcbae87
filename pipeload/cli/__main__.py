from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from pipeload.config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from pipeload.logging.init import log_summary, set_debug, setup_logging
from pipeload.services.discovery import SetupError
from pipeload.services.orchestrator import process_all
from pipeload.services.rewrite import rewrite_all
from pipeload.services.summary import render_file_report, render_summary_line

"""CLI entrypoint.

Commands:
- load (default): load every matching file of source_directory into SQLite
- sanitize: rewrite raw files into canonical quoted-pipe companions

Exit codes:
- 0: every file processed (row-level and batch-level errors do not count)
- 1: fatal setup error (config, directory listing, store open/reset)
- 2: at least one file could not be processed
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True lets .env values win over the existing environment.
    Failure only produces a warning.
    """
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except OSError as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="pipeload", description="Delimited text -> SQLite bulk loader"
    )
    p.add_argument(
        "command",
        nargs="?",
        choices=("load", "sanitize"),
        default="load",
        help="load files into the database (default) or sanitize raw files",
    )
    p.add_argument(
        "--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to the YAML config"
    )
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _run_sanitize(cfg: ImportConfig, logger: logging.Logger) -> int:
    sanitize = cfg.sanitize
    try:
        results = rewrite_all(
            Path(sanitize.input_directory),
            Path(sanitize.output_directory),
            extension=cfg.file_extension,
            separator=sanitize.separator,
            encoding=cfg.encoding,
        )
    except SetupError as e:
        logger.error(f"sanitize: {e}")
        return EXIT_FATAL

    failed = sum(1 for r in results if r.error is not None)
    log_summary(
        f"files={len(results)} success={len(results) - failed} failed={failed} "
        f"written={sum(r.written_lines for r in results)} "
        f"dropped={sum(r.dropped_lines for r in results)}"
    )
    return EXIT_PARTIAL_FAILURE if failed else EXIT_SUCCESS_ALL


def _run_load(cfg: ImportConfig, logger: logging.Logger) -> int:
    logger.info(f"Processing files from: {cfg.source_directory}")
    try:
        result = process_all(cfg)
    except SetupError as e:
        logger.error(f"setup: {e}")
        return EXIT_FATAL

    for report in result.file_reports:
        for line in render_file_report(report, cfg.error_preview_limit):
            logger.info(line)

    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(result)[len("SUMMARY "):])

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # Only read sys.argv when argv is None; [] means "no arguments"
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    if args.command == "sanitize":
        return _run_sanitize(cfg, logger)
    return _run_load(cfg, logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
