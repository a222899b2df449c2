from __future__ import annotations

import argparse
import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import psycopg2
from dotenv import load_dotenv

from ..config.loader import ConfigError, load_config
from ..excel.errors import ExcelImportError
from ..excel.reader import read_data_rows, read_header_row
from ..logging.init import enable_debug, log_summary, setup_logging
from ..models.config_models import ImportConfig
from ..services.orchestrator import ProcessingError, process_all, scan_excel_files, select_columns
from ..services.row_consumer import CollectingRowConsumer
from ..services.summary import render_summary_line

"""CLI entrypoint.

    python -m xlsx_importer.cli [--config PATH] [--debug] [--inspect-data]

Flow: load .env -> load config -> import every workbook of the source
directory -> SUMMARY line -> exit code (0 all success / 2 any file failed /
1 fatal).
"""

__all__ = ["main", "EXIT_SUCCESS_ALL", "EXIT_PARTIAL_FAILURE", "EXIT_FATAL"]

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

DEFAULT_CONFIG_PATH = Path("config/import.yml")
INSPECT_SAMPLE_ROWS = 3


def _build_dsn(cfg: ImportConfig) -> str:
    """Resolve the connection string.

    優先順位: DATABASE_URL / PGDSN > config の dsn > PG* 個別変数 > config の個別値
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[object]:
    """Yield a psycopg2 cursor; transaction boundaries are issued by the orchestrator."""
    conn = psycopg2.connect(_build_dsn(cfg))
    conn.autocommit = True  # BEGIN/COMMIT は orchestrator が明示発行
    cur = conn.cursor()
    try:
        yield cur
    finally:
        cur.close()
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values take precedence over the environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Streaming Excel (.xlsx) -> PostgreSQL importer")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to the import YAML config")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print sheet headers & first rows then exit")
    return p.parse_args(argv)


def _inspect_data(cfg: ImportConfig) -> int:
    try:
        excel_files = scan_excel_files(Path(cfg.source_directory))
    except ProcessingError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    if not excel_files:
        print("inspect: no .xlsx files")
        return EXIT_SUCCESS_ALL
    for f in excel_files:
        print(f"FILE: {f.name}")
        for mapping in cfg.sheet_mappings.values():
            try:
                header = read_header_row(f, mapping.sheet_index, mapping.header_row)
                selected = select_columns(header, mapping)
                consumer = CollectingRowConsumer(limit=INSPECT_SAMPLE_ROWS)
                used = {str(i) for i in selected}
                read_data_rows(f, mapping.sheet_index, mapping.start_row, consumer, used.__contains__)
            except ExcelImportError as e:
                print(f"  SHEET: {mapping.name} error={e}")
                continue
            print(f"  SHEET: {mapping.name} (#{mapping.sheet_index + 1}) cols={list(selected.values())}")
            sample_rows = []
            for row in consumer.rows:
                values = row.values_by_column()
                sample_rows.append({name: _printable(values.get(idx)) for idx, name in selected.items()})
            print("    sample_rows=", sample_rows)
    return EXIT_SUCCESS_ALL


def _printable(value: object) -> object:
    # datetime は isoformat で表示
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # [] を渡されたときに sys.argv が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        enable_debug()
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error("config: %s", e)
        return EXIT_FATAL

    directory = Path(cfg.source_directory)
    if not directory.exists():
        logger.error("directory not found: %s", directory)
        return EXIT_FATAL

    logger.info("Processing files from: %s", directory)

    if args.inspect_data:
        return _inspect_data(cfg)

    # DISABLE_DB_CONNECT=1 で DB 接続せず mock モード
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
        db_mode = "mock"
        try:
            result = process_all(cfg, cursor=None)
        except ProcessingError as e:
            logger.error("processing(mock): %s", e)
            return EXIT_FATAL
    else:
        try:
            with _db_connection(cfg) as cur:
                db_mode = "live"
                result = process_all(cfg, cursor=cur)
        except ProcessingError as e:
            logger.error("processing: %s", e)
            return EXIT_FATAL
        except psycopg2.Error as db_e:
            level = logging.DEBUG if os.getenv("SUPPRESS_DB_WARNING") == "1" else logging.INFO
            logger.log(level, "DB connection failed -> fallback to mock mode: %s", db_e)
            db_mode = "mock"
            try:
                result = process_all(cfg, cursor=None)
            except ProcessingError as e:
                logger.error("processing(mock): %s", e)
                return EXIT_FATAL

    logger.info("mode=%s total_rows=%d", db_mode, result.total_inserted_rows)

    total_files = result.success_files + result.failed_files
    summary_line = render_summary_line(total_files, result)
    # log_summary が "SUMMARY " ラベルを付与する
    log_summary(summary_line.removeprefix("SUMMARY "))

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


