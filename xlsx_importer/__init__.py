"""Streaming xlsx reader and PostgreSQL importer.

Library entry points::

    from xlsx_importer import read_header_row, read_data_rows
"""

from .excel.errors import (
    ExcelImportError,
    HeaderRowNotFoundError,
    RowConsumerFinishError,
    RowProcessingError,
)
from .excel.reader import read_data_rows, read_header_row
from .services.row_consumer import CollectingRowConsumer, RowConsumer

__all__ = [
    "read_header_row",
    "read_data_rows",
    "RowConsumer",
    "CollectingRowConsumer",
    "ExcelImportError",
    "HeaderRowNotFoundError",
    "RowProcessingError",
    "RowConsumerFinishError",
]

__version__ = "0.1.0"
