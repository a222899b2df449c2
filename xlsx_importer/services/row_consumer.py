from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

from ..models.row_data import RowData

if TYPE_CHECKING:
    from ..excel.cells import CellValue

"""Row consumer contract for the data reader.

``read_data_rows`` calls ``process_values`` once per non-empty row and
``finish`` once at the end of a successful scan. The consumer counts the rows
it accepted in ``row_counter``.
"""

__all__ = [
    "RowConsumer",
    "CollectingRowConsumer",
]


class RowConsumer(ABC):
    """Base class for row sinks."""

    def __init__(self) -> None:
        self._row_counter = 0
        self.finished = False

    @property
    def row_counter(self) -> int:
        return self._row_counter

    def process_values(self, cells: Sequence[CellValue | None], row_index: int, sheet_index: int) -> None:
        """Accept one row. ``cells`` is a copy; the reader reuses its own buffer."""
        self._process(cells, row_index, sheet_index)
        self._row_counter += 1

    @abstractmethod
    def _process(self, cells: Sequence[CellValue | None], row_index: int, sheet_index: int) -> None:
        ...

    def finish(self) -> None:
        self.finished = True


class CollectingRowConsumer(RowConsumer):
    """Keeps delivered rows in memory as ``RowData``.

    With ``limit`` only the first ``limit`` rows are kept; later rows are
    still counted. Used for sampling (``--inspect-data``) and tests.
    """

    def __init__(self, limit: int | None = None) -> None:
        super().__init__()
        self.limit = limit
        self.rows: list[RowData] = []

    def _process(self, cells: Sequence[CellValue | None], row_index: int, sheet_index: int) -> None:
        if self.limit is not None and len(self.rows) >= self.limit:
            return
        self.rows.append(RowData(row_index=row_index, sheet_index=sheet_index, cells=tuple(cells)))
