from __future__ import annotations

import datetime
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from openpyxl.styles.numbers import is_date_format
from openpyxl.utils.datetime import from_excel

from ..models.column import ExcelColumn
from .errors import InvalidFormulaCellError, NumericParseError

if TYPE_CHECKING:
    from .address import CellAddress
    from .events import CellEvent

"""Cell type classification and value coercion.

Two profiles share the same input (one cell event):

- header profile: only text-like cells become ``ExcelColumn``; everything
  else is a ``None`` placeholder so positions stay aligned.
- data profile: turns the raw encoded value into one typed value, returns
  ``None`` for a gap, or raises for unrecoverable cells.

Numeric cells without a number format are passed on as ``TextValue`` with no
display value. Downstream consumers rely on that shape, so it is kept as is.
"""

__all__ = [
    "CellType",
    "BooleanValue",
    "NumberValue",
    "TextValue",
    "FormulaValue",
    "ErrorValue",
    "CellValue",
    "parse_number",
    "classify_header_cell",
    "classify_data_cell",
]

logger = logging.getLogger(__name__)

# <v> の数値は 10 進表記のみ ("1_000" / "inf" / "nan" は不可)
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(raw: str) -> float:
    """Parse the raw value of a numeric cell.

    Raises:
        ValueError: ``raw`` is not a plain decimal number
    """
    text = raw.strip()
    if not _NUMBER_RE.fullmatch(text):
        raise ValueError(f"not a decimal number: {raw!r}")
    return float(text)


class CellType(Enum):
    """Declared kind of a cell's content (from the ``t`` attribute)."""
    BOOLEAN = "boolean"
    ERROR = "error"
    FORMULA = "formula"
    STRING = "string"
    NUMERIC = "numeric"
    BLANK = "blank"


@dataclass(frozen=True)
class BooleanValue:
    column: int
    raw: str
    value: bool

    @property
    def python_value(self) -> bool:
        return self.value


@dataclass(frozen=True)
class NumberValue:
    column: int
    value: float
    formatted: str | None
    format_string: str

    @property
    def is_date(self) -> bool:
        return is_date_format(self.format_string)

    @property
    def python_value(self) -> float | datetime.datetime | datetime.time:
        if self.is_date:
            return from_excel(self.value)
        return self.value


@dataclass(frozen=True)
class TextValue:
    column: int
    raw: str
    display: str | None

    @property
    def python_value(self) -> str:
        return self.raw


@dataclass(frozen=True)
class FormulaValue:
    column: int
    text: str

    @property
    def python_value(self) -> str:
        return self.text


@dataclass(frozen=True)
class ErrorValue:
    """Non-formula error cell kept as a sentinel ("ERROR:<raw>")."""
    column: int
    raw: str
    text: str

    @property
    def python_value(self) -> str:
        return self.text


CellValue = BooleanValue | NumberValue | TextValue | FormulaValue | ErrorValue


def classify_header_cell(column: int, event: CellEvent) -> ExcelColumn | None:
    if event.cell_type in (CellType.FORMULA, CellType.STRING):
        return ExcelColumn(index=column, name=event.formatted_value or "")
    return None


def classify_data_cell(address: CellAddress, event: CellEvent) -> CellValue | None:
    """Convert one data cell into a typed value.

    Returns None when the cell has no raw value or its type is not importable.

    Raises:
        InvalidFormulaCellError: error cell whose value starts with ``#``
        NumericParseError: numeric / boolean cell whose raw text is not a number
    """
    raw = event.raw_value
    if raw is None:
        return None
    column = address.column
    cell_type = event.cell_type

    if cell_type is CellType.BOOLEAN:
        try:
            flag = int(raw) == 1
        except ValueError as e:
            raise NumericParseError(
                f"Unable to read boolean cell {event.reference}: {raw!r}",
                event.reference, address.row, column,
            ) from e
        return BooleanValue(column=column, raw=raw, value=flag)

    if cell_type is CellType.ERROR:
        if raw.startswith("#"):
            logger.error("Unable to import data due to invalid formula at cell address %s", event.reference)
            raise InvalidFormulaCellError(
                f"Unable to import data due to invalid formula at Excel row #{address.row + 1}",
                event.reference, address.row, column,
            )
        return ErrorValue(column=column, raw=raw, text=f"ERROR:{raw}")

    if cell_type is CellType.FORMULA:
        return FormulaValue(column=column, text=raw)

    if cell_type is CellType.STRING:
        return TextValue(column=column, raw=raw, display=event.formatted_value)

    if cell_type is CellType.NUMERIC:
        if event.format_string is None:
            return TextValue(column=column, raw=raw, display=None)
        try:
            number = parse_number(raw)
        except ValueError as e:
            raise NumericParseError(
                f"Unable to read Excel row #{address.row + 1} and cell #{column + 1}: {raw!r} is not a number",
                event.reference, address.row, column,
            ) from e
        logger.debug(
            "Formatting %s / '%s' using format: '%s' as %s",
            event.reference, raw, event.format_string, event.formatted_value,
        )
        return NumberValue(
            column=column,
            value=number,
            formatted=event.formatted_value,
            format_string=event.format_string,
        )

    return None
