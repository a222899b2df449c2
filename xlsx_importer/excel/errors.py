from __future__ import annotations

"""Exception hierarchy for the streaming sheet reader.

Every failure raised while opening a workbook or scanning a sheet derives from
``ExcelImportError`` so callers (orchestrator, CLI) can catch one base type.
"""

__all__ = [
    "ExcelImportError",
    "WorkbookOpenError",
    "SheetNotFoundError",
    "MalformedAddressError",
    "UnresolvedStringIndexError",
    "CellValueError",
    "InvalidFormulaCellError",
    "NumericParseError",
    "HeaderRowNotFoundError",
    "RowProcessingError",
    "RowConsumerFinishError",
    "MissingColumnsError",
]


class ExcelImportError(Exception):
    """Base class for all reader errors."""


class WorkbookOpenError(ExcelImportError):
    """Raised when the container cannot be opened or a part cannot be read."""


class SheetNotFoundError(WorkbookOpenError):
    """Raised when the requested worksheet part index does not exist."""

    def __init__(self, sheet_index: int, available: int) -> None:
        super().__init__(f"sheet #{sheet_index} not found (workbook has {available} sheets)")
        self.sheet_index = sheet_index
        self.available = available


class MalformedAddressError(ExcelImportError):
    """Raised when a cell reference is not letters followed by a row number."""


class UnresolvedStringIndexError(ExcelImportError):
    """Raised when a shared-string index is not present in the table."""


class CellValueError(ExcelImportError):
    """Base class for errors tied to one cell.

    Attributes:
        reference: Cell reference as written in the sheet (e.g. ``"B7"``)
        row_number: 1-based row number
        column_number: 1-based column number
    """

    def __init__(self, message: str, reference: str, row: int, column: int) -> None:
        super().__init__(message)
        self.reference = reference
        self.row_number = row + 1
        self.column_number = column + 1


class InvalidFormulaCellError(CellValueError):
    """Raised for error cells produced by a broken formula (value starts with ``#``)."""


class NumericParseError(CellValueError):
    """Raised when a numeric or boolean cell holds text that is not a number."""


class HeaderRowNotFoundError(ExcelImportError):
    """Raised when the configured header row is empty or absent."""


class RowProcessingError(ExcelImportError):
    """Wraps a row consumer failure with the position of the failing row."""

    def __init__(self, row_index: int, sheet_index: int) -> None:
        super().__init__(f"Unable to process Excel row #{row_index + 1} @Sheet #{sheet_index + 1}")
        self.row_index = row_index
        self.row_number = row_index + 1
        self.sheet_index = sheet_index


class RowConsumerFinishError(ExcelImportError):
    """Wraps a failure raised by the row consumer's finish hook."""


class MissingColumnsError(ExcelImportError):
    """Raised when configured columns are absent from the header row."""
