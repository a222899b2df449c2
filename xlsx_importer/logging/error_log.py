from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..excel.errors import (
    CellValueError,
    ExcelImportError,
    HeaderRowNotFoundError,
    InvalidFormulaCellError,
    MalformedAddressError,
    MissingColumnsError,
    NumericParseError,
    RowConsumerFinishError,
    RowProcessingError,
    UnresolvedStringIndexError,
    WorkbookOpenError,
)
from ..models.error_record import FILE_LEVEL, ErrorRecord

"""Error log buffering.

Records are kept in memory during a run and written as JSON Lines to
``logs/errors-YYYYMMDD-HHMMSS.log`` (UTC) on flush. Serial use only.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "classify_error",
    "record_for_exception",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"

# 判定順 = サブクラス優先
_ERROR_TYPES: tuple[tuple[type[Exception], str], ...] = (
    (InvalidFormulaCellError, "INVALID_FORMULA_CELL"),
    (NumericParseError, "NUMERIC_PARSE_ERROR"),
    (MalformedAddressError, "MALFORMED_ADDRESS"),
    (UnresolvedStringIndexError, "UNRESOLVED_STRING_INDEX"),
    (HeaderRowNotFoundError, "HEADER_ROW_NOT_FOUND"),
    (MissingColumnsError, "MISSING_COLUMNS"),
    (RowProcessingError, "ROW_PROCESSING_ERROR"),
    (RowConsumerFinishError, "ROW_CONSUMER_FINISH_ERROR"),
    (WorkbookOpenError, "WORKBOOK_OPEN_ERROR"),
    (ExcelImportError, "EXCEL_IMPORT_ERROR"),
)


def classify_error(exc: BaseException) -> str:
    """Map an exception to its UPPER_SNAKE error type."""
    for exc_type, label in _ERROR_TYPES:
        if isinstance(exc, exc_type):
            return label
    return "UNEXPECTED_ERROR"


def record_for_exception(file: str, exc: BaseException, *, mapping: str = "", sheet: int = FILE_LEVEL) -> ErrorRecord:
    """Build an ErrorRecord, taking the row position from reader errors."""
    row = FILE_LEVEL
    if isinstance(exc, (CellValueError, RowProcessingError)):
        row = exc.row_number
    message = str(exc)
    if exc.__cause__ is not None:
        message = f"{message}: {exc.__cause__}"
    return ErrorRecord.create(file, classify_error(exc), message, mapping=mapping, sheet=sheet, row=row)


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush writes JSON Lines."""

    def __init__(self) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            LOGS_DIR.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = LOGS_DIR / f"errors-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file; None when nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
