from __future__ import annotations

from dataclasses import dataclass

from openpyxl.utils.cell import column_index_from_string, coordinate_from_string
from openpyxl.utils.exceptions import CellCoordinatesException

from .errors import MalformedAddressError

__all__ = [
    "CellAddress",
    "parse_cell_reference",
]


@dataclass(frozen=True)
class CellAddress:
    """Zero-based position of a cell ("A1" -> row=0, column=0)."""
    row: int
    column: int


def parse_cell_reference(reference: str) -> CellAddress:
    """Parse an A1-style reference into a zero-based ``CellAddress``.

    Absolute markers (``$A$1``) are accepted. Anything that is not column
    letters followed by a positive row number raises ``MalformedAddressError``.
    """
    try:
        letters, row = coordinate_from_string(reference)
        column = column_index_from_string(letters)
    except (CellCoordinatesException, ValueError, TypeError) as e:
        raise MalformedAddressError(f"invalid cell reference: {reference!r}") from e
    return CellAddress(row=row - 1, column=column - 1)
