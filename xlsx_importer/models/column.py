from __future__ import annotations

from dataclasses import dataclass

"""ExcelColumn model: one named column discovered in a sheet's header row."""

__all__ = [
    "ExcelColumn",
]


@dataclass(frozen=True)
class ExcelColumn:
    """Header cell with text content.

    Header cells that are not text (numbers, booleans, blanks) have no
    ExcelColumn; the header list holds ``None`` at their position instead.
    """
    index: int  # 0-based column index
    name: str  # 表示値 (formatted value)
