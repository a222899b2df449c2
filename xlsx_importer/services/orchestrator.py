from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..db.batch_insert import PostgresRowConsumer
from ..excel.errors import MissingColumnsError, SheetNotFoundError
from ..excel.reader import read_data_rows, read_header_row
from ..logging.error_log import ErrorLogBuffer, record_for_exception
from ..models.column import ExcelColumn
from ..models.config_models import ImportConfig, SheetMappingConfig
from ..models.error_record import ErrorRecord
from ..models.excel_file import ExcelFile, FileStatus
from ..models.processing_result import BatchStatsAccumulator, FileStat, ProcessingResult
from ..models.sheet_process import SheetProcess
from .progress import ProgressTracker, SheetProgressIndicator

"""Import orchestration.

Scans the source directory, imports every configured sheet mapping of every
workbook (one transaction per file), records failures in the error log and
aggregates the metrics of the SUMMARY line.
"""

__all__ = [
    "ProcessingError",
    "MissingColumnsError",
    "scan_excel_files",
    "select_columns",
    "process_all",
]

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Fatal errors that prevent the whole run."""


class _SheetSkipped(Exception):
    pass


def scan_excel_files(directory: Path) -> list[Path]:
    """Return the .xlsx files of ``directory`` (non-recursive, sorted by name).

    Raises:
        ProcessingError: If directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")
    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")
    try:
        # Excel のロックファイル (~$xxx.xlsx) は除外
        return sorted(
            p for p in directory.iterdir()
            if p.is_file() and p.suffix == ".xlsx" and not p.name.startswith("~$")
        )
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


def select_columns(header: list[ExcelColumn | None], mapping: SheetMappingConfig) -> dict[int, str]:
    """Resolve the configured columns against a header row.

    Returns:
        0-based column index -> column name, in sheet order

    Raises:
        MissingColumnsError: a configured column is not in the header
    """
    selected: dict[int, str] = {}
    for col in header:
        if col is None:
            continue
        name = col.name.strip()
        if name and mapping.uses_column(name) and name not in selected.values():
            selected[col.index] = name
    if mapping.columns is not None:
        missing = set(mapping.columns) - set(selected.values())
        if missing:
            raise MissingColumnsError(f"mapping '{mapping.name}' missing columns: {sorted(missing)}")
    return selected


def process_all(config: ImportConfig, cursor: Any = None) -> ProcessingResult:
    """Import all Excel files of the configured directory.

    Args:
        config: Import configuration with directory and mappings
        cursor: Database cursor for transactions (None = mock mode)

    Raises:
        ProcessingError: For fatal errors that prevent processing
    """
    start_time = datetime.now(UTC)
    error_log = ErrorLogBuffer()
    file_paths = scan_excel_files(Path(config.source_directory))

    file_stats: list[FileStat] = []
    success_count = 0
    failed_count = 0
    total_rows = 0
    total_skipped_sheets = 0

    with ProgressTracker(len(file_paths), description="Processing files") as progress:
        for file_path in file_paths:
            progress.start_file(file_path)
            batch_stats = BatchStatsAccumulator()
            file_result = _process_single_file(file_path, config, cursor, error_log, batch_stats)

            if file_result.status == FileStatus.SUCCESS:
                success_count += 1
                total_rows += file_result.total_rows
            else:
                failed_count += 1
            total_skipped_sheets += file_result.skipped_sheets

            progress.set_postfix(success=success_count, failed=failed_count, rows=total_rows)
            progress.finish_file(success=(file_result.status == FileStatus.SUCCESS))

            elapsed = 0.0
            if file_result.start_time and file_result.end_time:
                elapsed = (file_result.end_time - file_result.start_time).total_seconds()
            batches, avg_batch, p95_batch = batch_stats.get_stats()
            file_stats.append(
                FileStat(
                    file_name=file_path.name,
                    status=file_result.status.value,
                    inserted_rows=file_result.total_rows,
                    elapsed_seconds=elapsed,
                    total_batches=batches,
                    avg_batch_seconds=avg_batch,
                    p95_batch_seconds=p95_batch,
                )
            )

    try:
        log_path = error_log.flush()
    except OSError as e:
        logger.warning("failed to write error log: %s", e)
    else:
        if log_path is not None:
            logger.info("error log written: %s", log_path)

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    throughput_rps = total_rows / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return ProcessingResult(
        success_files=success_count,
        failed_files=failed_count,
        total_inserted_rows=total_rows,
        skipped_sheets=total_skipped_sheets,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput_rps,
        file_stats=file_stats,
    )


def _rollback(cursor: Any, file_name: str, error_log: ErrorLogBuffer) -> None:
    if cursor is None:
        return
    try:
        cursor.execute("ROLLBACK")
    except Exception as e:
        error_log.append(ErrorRecord.create(file_name, "TRANSACTION_ROLLBACK_ERROR", str(e)))


def _process_single_file(
    file_path: Path,
    config: ImportConfig,
    cursor: Any,
    error_log: ErrorLogBuffer,
    batch_stats: BatchStatsAccumulator,
) -> ExcelFile:
    """Import every sheet mapping of one workbook inside one transaction.

    The first failing sheet rolls the whole file back and skips the remaining
    mappings of that file.
    """
    start_time = datetime.now(UTC)

    def _result(status: FileStatus, sheets: list[SheetProcess], rows: int, skipped: int, error: str | None) -> ExcelFile:
        return ExcelFile(
            path=file_path,
            name=file_path.name,
            sheets=sheets,
            start_time=start_time,
            end_time=datetime.now(UTC),
            status=status,
            total_rows=rows,
            skipped_sheets=skipped,
            error=error,
        )

    if cursor is not None:
        try:
            cursor.execute("BEGIN")
        except Exception as e:
            error_log.append(ErrorRecord.create(file_path.name, "TRANSACTION_BEGIN_ERROR", str(e)))
            return _result(FileStatus.FAILED, [], 0, 0, f"Failed to begin transaction: {e}")

    logger.info("file=%s mappings=%d", file_path.name, len(config.sheet_mappings))
    sheet_processes: list[SheetProcess] = []
    inserted = 0
    skipped = 0
    sheet_progress = SheetProgressIndicator(file_path.name, len(config.sheet_mappings))

    for mapping in config.sheet_mappings.values():
        sheet_progress.start_sheet(mapping.name, mapping.sheet_index)
        try:
            sheet_result = _process_single_sheet(file_path, mapping, cursor, batch_stats)
        except _SheetSkipped:
            skipped += 1
            sheet_progress.finish_sheet(success=True)
            continue
        except Exception as e:
            logger.error("file=%s mapping=%s: %s", file_path.name, mapping.name, e)
            error_log.append(
                record_for_exception(file_path.name, e, mapping=mapping.name, sheet=mapping.sheet_index + 1)
            )
            sheet_progress.finish_sheet(success=False)
            sheet_processes.append(SheetProcess(mapping=mapping, error=str(e)))
            _rollback(cursor, file_path.name, error_log)
            return _result(FileStatus.FAILED, sheet_processes, 0, skipped, f"mapping '{mapping.name}' failed: {e}")

        sheet_processes.append(sheet_result)
        inserted += sheet_result.inserted_rows
        sheet_progress.finish_sheet(success=True, rows_processed=sheet_result.inserted_rows)

    if cursor is not None:
        try:
            cursor.execute("COMMIT")
        except Exception as e:
            _rollback(cursor, file_path.name, error_log)
            error_log.append(ErrorRecord.create(file_path.name, "TRANSACTION_COMMIT_ERROR", str(e)))
            return _result(FileStatus.FAILED, sheet_processes, 0, skipped, f"commit failed: {e}")

    return _result(FileStatus.SUCCESS, sheet_processes, inserted, skipped, None)


def _process_single_sheet(
    file_path: Path,
    mapping: SheetMappingConfig,
    cursor: Any,
    batch_stats: BatchStatsAccumulator,
) -> SheetProcess:
    try:
        header = read_header_row(file_path, mapping.sheet_index, mapping.header_row)
    except SheetNotFoundError as e:
        logger.warning("file=%s mapping=%s skipped: %s", file_path.name, mapping.name, e)
        raise _SheetSkipped() from e

    selected = select_columns(header, mapping)
    if not selected:
        logger.warning("file=%s mapping=%s has no importable columns", file_path.name, mapping.name)
    logger.debug(
        "file=%s mapping=%s table=%s columns=%s",
        file_path.name, mapping.name, mapping.table_name, list(selected.values()),
    )

    used = {str(i) for i in selected}
    consumer = PostgresRowConsumer(
        cursor,
        mapping.table_name,
        selected,
        page_size=mapping.page_size,
        metrics_callback=lambda m: batch_stats.add_batch_time(m.elapsed_seconds),
    )
    delivered = read_data_rows(file_path, mapping.sheet_index, mapping.start_row, consumer, used.__contains__)
    return SheetProcess(
        mapping=mapping,
        header=header,
        selected_columns=selected,
        delivered_rows=delivered,
        inserted_rows=consumer.inserted_rows,
    )
