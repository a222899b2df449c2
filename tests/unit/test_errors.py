from __future__ import annotations

from xlsx_importer.excel.errors import (
    CellValueError,
    ExcelImportError,
    InvalidFormulaCellError,
    RowProcessingError,
    SheetNotFoundError,
    WorkbookOpenError,
)


def test_row_processing_error_positions_are_one_based_in_message():
    err = RowProcessingError(4, 0)
    assert err.row_index == 4
    assert err.row_number == 5
    assert err.sheet_index == 0
    assert str(err) == "Unable to process Excel row #5 @Sheet #1"


def test_cell_value_error_positions():
    err = InvalidFormulaCellError("bad", "C4", 3, 2)
    assert isinstance(err, CellValueError)
    assert err.reference == "C4"
    assert err.row_number == 4
    assert err.column_number == 3


def test_sheet_not_found_is_open_error():
    err = SheetNotFoundError(3, 1)
    assert isinstance(err, WorkbookOpenError)
    assert isinstance(err, ExcelImportError)
    assert "sheet #3" in str(err)
    assert err.available == 1
