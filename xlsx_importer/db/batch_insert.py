from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from psycopg2.extras import execute_values

from ..services.row_consumer import RowConsumer

if TYPE_CHECKING:
    from ..excel.cells import CellValue

"""Batched INSERT into PostgreSQL and the row consumer built on it.

``batch_insert`` wraps ``psycopg2.extras.execute_values``.
``PostgresRowConsumer`` receives typed rows from the streaming reader, keeps at
most ``page_size`` rows pending and flushes them with ``batch_insert``; the
remainder is flushed by ``finish()``. Without a cursor (mock mode) rows are
only counted.
"""

__all__ = [
    "BatchInsertError",
    "BatchMetrics",
    "InsertResult",
    "batch_insert",
    "PostgresRowConsumer",
]

logger = logging.getLogger(__name__)


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Metrics data for a single batch insert operation."""
    batch_size: int  # Number of rows in this batch
    elapsed_seconds: float  # Time spent on execute_values call
    start_time: float  # Start timestamp (time.time())
    end_time: float  # End timestamp (time.time())


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    page_size: int = 1000,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """Perform batched INSERT using psycopg2.extras.execute_values.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: 対象テーブル名 (サニタイズ済み想定)
    columns: 挿入列
    rows: 行シーケンス
    page_size: execute_values の page_size (性能調整)
    metrics_callback: Optional callback receiving BatchMetrics for each call.
        Not invoked when ``rows`` is empty (the function returns early).
    """
    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0)

    cols_sql = ",".join(f'"{c}"' for c in columns)
    sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"

    start_time = time.time()
    try:
        execute_values(cursor, sql, rows_list, page_size=page_size)
    except Exception as e:
        raise BatchInsertError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(rows_list),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    return InsertResult(inserted_rows=len(rows_list))


class PostgresRowConsumer(RowConsumer):
    """Row consumer inserting typed rows into one table.

    Args:
        cursor: psycopg2 cursor, or None for mock mode (count only)
        table: target table
        columns: 0-based sheet column index -> target column name
        page_size: rows per INSERT batch
        metrics_callback: forwarded to ``batch_insert``
    """

    def __init__(
        self,
        cursor: Any,
        table: str,
        columns: Mapping[int, str],
        page_size: int = 1000,
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> None:
        super().__init__()
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.cursor = cursor
        self.table = table
        self.column_indices = sorted(columns)
        self.column_names = [columns[i] for i in self.column_indices]
        self.page_size = page_size
        self.metrics_callback = metrics_callback
        self.inserted_rows = 0
        self._pending: list[list[Any]] = []

    def _process(self, cells: Sequence[CellValue | None], row_index: int, sheet_index: int) -> None:
        values = {c.column: c.python_value for c in cells if c is not None}
        self._pending.append([values.get(i) for i in self.column_indices])
        if len(self._pending) >= self.page_size:
            self._flush()

    def finish(self) -> None:
        self._flush()
        super().finish()
        logger.debug("table=%s inserted_rows=%d mock=%s", self.table, self.inserted_rows, self.cursor is None)

    def _flush(self) -> None:
        if not self._pending:
            return
        if self.cursor is None or not self.column_names:
            self.inserted_rows += len(self._pending)
        else:
            result = batch_insert(
                self.cursor,
                self.table,
                self.column_names,
                self._pending,
                page_size=self.page_size,
                metrics_callback=self.metrics_callback,
            )
            self.inserted_rows += result.inserted_rows
        self._pending.clear()
