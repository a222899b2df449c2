from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from contextlib import closing
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from ..models.column import ExcelColumn
from .address import parse_cell_reference
from .cells import CellValue, classify_data_cell, classify_header_cell
from .container import XlsxContainer
from .errors import HeaderRowNotFoundError, RowConsumerFinishError, RowProcessingError
from .events import CellEvent, RowEnd, RowStart, SheetEvent, iter_sheet_events
from .strings import SharedStringTable
from .styles import StylesTable

if TYPE_CHECKING:
    from ..services.row_consumer import RowConsumer

"""Streaming sheet reader: header discovery and data row extraction.

Both entry points open the workbook, load the shared strings and styles once,
and drive the cell event source of one worksheet with a handler object:

- ``read_header_row`` stops the scan as soon as the header row closes.
- ``read_data_rows`` scans to the end and hands each non-empty row to a
  row consumer, then runs the consumer's finish hook.
"""

__all__ = [
    "ScanControl",
    "SheetContentsHandler",
    "HeaderRowHandler",
    "DataRowHandler",
    "drive_events",
    "read_header_row",
    "read_data_rows",
]

logger = logging.getLogger(__name__)

ColumnPredicate = Callable[[str], bool]

ZERO_ROWS_MESSAGE = (
    "Excel Importer could not import any rows. Please check if the template is configured "
    "correctly. If the file was not created with Microsoft Excel for desktop, try opening the "
    "file with Excel and saving it with the same name before importing."
)


class ScanControl(Enum):
    """Returned from ``end_row`` to continue or stop the scan."""
    CONTINUE = "continue"
    STOP = "stop"


class SheetContentsHandler(Protocol):
    def start_row(self, row: int) -> None: ...

    def cell(self, event: CellEvent) -> None: ...

    def end_row(self, row: int) -> ScanControl: ...


class HeaderRowHandler:
    """Collects the header row and stops the scan once it is complete."""

    def __init__(self, header_row_index: int) -> None:
        self.header_row_index = header_row_index
        self.columns: list[ExcelColumn | None] | None = None
        self._buffer: list[ExcelColumn | None] = []
        self._header_row_seen = False

    @property
    def found(self) -> bool:
        return self.columns is not None

    def start_row(self, row: int) -> None:
        self._buffer.clear()

    def cell(self, event: CellEvent) -> None:
        address = parse_cell_reference(event.reference)
        if address.row == self.header_row_index:
            self._buffer.append(classify_header_cell(address.column, event))

    def end_row(self, row: int) -> ScanControl:
        if row == self.header_row_index:
            self._header_row_seen = True
            if any(c is not None for c in self._buffer):
                self.columns = list(self._buffer)
                logger.debug("header row #%d found: %d columns", row + 1, len(self.columns))
                return ScanControl.STOP
        elif row > self.header_row_index:
            raise HeaderRowNotFoundError(self._not_found_message(row))
        return ScanControl.CONTINUE

    def _not_found_message(self, row: int | None = None) -> str:
        number = self.header_row_index + 1
        if self._header_row_seen:
            return f"Unable to find header row: header row #{number} is empty"
        if row is None:
            return f"Unable to find header row: sheet ended before header row #{number}"
        return f"Unable to find header row: row #{number} not present (next row is #{row + 1})"

    def result(self) -> list[ExcelColumn | None]:
        if self.columns is None:
            raise HeaderRowNotFoundError(self._not_found_message())
        return self.columns


class DataRowHandler:
    """Builds typed rows from ``start_row_index`` on and feeds a row consumer."""

    def __init__(
        self,
        sheet_index: int,
        start_row_index: int,
        consumer: RowConsumer,
        is_column_used: ColumnPredicate,
    ) -> None:
        self.sheet_index = sheet_index
        self.start_row_index = start_row_index
        self.consumer = consumer
        self.is_column_used = is_column_used
        self.row_counter = 0
        self.row_open = False
        self._buffer: list[CellValue | None] = []

    def start_row(self, row: int) -> None:
        self._buffer.clear()
        self.row_open = True

    def cell(self, event: CellEvent) -> None:
        address = parse_cell_reference(event.reference)
        if address.row < self.start_row_index:
            return
        if not self.is_column_used(str(address.column)):
            return
        logger.debug("Reading %s / '%s' / %s", event.reference, event.raw_value, event.cell_type.name)
        self._buffer.append(classify_data_cell(address, event))

    def end_row(self, row: int) -> ScanControl:
        if any(v is not None for v in self._buffer):
            self._deliver(row)
        self._buffer.clear()
        self.row_open = False
        return ScanControl.CONTINUE

    def _deliver(self, row: int) -> None:
        try:
            self.consumer.process_values(list(self._buffer), row, self.sheet_index)
        except Exception as e:
            raise RowProcessingError(row, self.sheet_index) from e
        self.row_counter += 1


def drive_events(events: Iterable[SheetEvent], handler: SheetContentsHandler) -> bool:
    """Feed events to ``handler`` until the stream ends or the handler stops it.

    Returns True when the stream was read to the end, False when stopped early.
    """
    for event in events:
        if isinstance(event, CellEvent):
            handler.cell(event)
        elif isinstance(event, RowStart):
            handler.start_row(event.row)
        elif isinstance(event, RowEnd):
            if handler.end_row(event.row) is ScanControl.STOP:
                return False
    return True


def _parse_sheet(excel_file: Path | str, sheet_index: int, handler: SheetContentsHandler) -> bool:
    with XlsxContainer(excel_file) as container:
        strings = SharedStringTable.load(container)
        styles = StylesTable.load(container)
        with container.open_part(sheet_index) as stream:
            with closing(iter_sheet_events(stream, strings, styles)) as events:
                return drive_events(events, handler)


def read_header_row(excel_file: Path | str, sheet_index: int, header_row_index: int) -> list[ExcelColumn | None]:
    """Return the header columns of a sheet (``None`` for non-text header cells).

    Raises:
        HeaderRowNotFoundError: the header row is empty or missing
        WorkbookOpenError: the workbook or the sheet cannot be read
    """
    handler = HeaderRowHandler(header_row_index)
    _parse_sheet(excel_file, sheet_index, handler)
    return handler.result()


def read_data_rows(
    excel_file: Path | str,
    sheet_index: int,
    start_row_index: int,
    row_consumer: RowConsumer,
    is_column_used: ColumnPredicate,
) -> int:
    """Stream the data rows of a sheet into ``row_consumer``.

    ``is_column_used`` receives the 0-based column index as text. The
    consumer's ``finish()`` runs once after the whole sheet was read; it is
    not called when the scan fails.

    Returns:
        Number of rows delivered to the consumer
    """
    handler = DataRowHandler(sheet_index, start_row_index, row_consumer, is_column_used)
    _parse_sheet(excel_file, sheet_index, handler)
    _finish(row_consumer, handler.row_counter)
    return handler.row_counter


def _finish(row_consumer: RowConsumer, row_count: int) -> None:
    try:
        row_consumer.finish()
    except Exception as e:
        raise RowConsumerFinishError(f"Unable to finish row processing after {row_count} rows: {e}") from e
    if row_count == 0:
        logger.warning(ZERO_ROWS_MESSAGE)
    else:
        logger.info("Excel Importer successfully imported %d rows", row_count)
