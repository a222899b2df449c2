from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..excel.cells import CellValue

"""RowData model: one delivered sheet row.

Holds the typed cells exactly as the data reader produced them (gaps are
``None``) together with the row / sheet position.
"""

__all__ = [
    "RowData",
]


@dataclass(frozen=True)
class RowData:
    """Logical representation of a single delivered row."""
    row_index: int  # 0-based sheet row
    sheet_index: int  # 0-based worksheet index
    cells: tuple[CellValue | None, ...]

    @property
    def row_number(self) -> int:
        """1-based row number as shown by spreadsheet applications."""
        return self.row_index + 1

    def values_by_column(self) -> dict[int, Any]:
        """Column index -> python value, gaps left out."""
        return {c.column: c.python_value for c in self.cells if c is not None}
