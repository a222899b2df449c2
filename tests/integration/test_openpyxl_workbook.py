from __future__ import annotations

from pathlib import Path

from openpyxl import Workbook

from xlsx_importer.excel.cells import NumberValue
from xlsx_importer.excel.reader import read_data_rows, read_header_row
from xlsx_importer.models.column import ExcelColumn
from xlsx_importer.services.row_consumer import CollectingRowConsumer


def _save(path: Path, build) -> Path:
    wb = Workbook()
    build(wb.active)
    wb.save(path)
    return path


def test_number_formats_are_rendered(tmp_path: Path):
    def build(ws):
        ws.append(["amount", "rate"])
        ws.append([1234.5, 0.125])
        ws["A2"].number_format = "#,##0.00"
        ws["B2"].number_format = "0.0%"

    path = _save(tmp_path / "fmt.xlsx", build)
    consumer = CollectingRowConsumer()
    read_data_rows(path, 0, 1, consumer, lambda c: True)
    amount, rate = consumer.rows[0].cells
    assert amount == NumberValue(column=0, value=1234.5, formatted="1,234.50", format_string="#,##0.00")
    assert rate.formatted == "12.5%"


def test_sparse_rows_and_columns(tmp_path: Path):
    def build(ws):
        ws["B3"] = "code"
        ws["D3"] = "qty"
        ws["B5"] = "X-1"
        ws["D7"] = 4

    path = _save(tmp_path / "sparse.xlsx", build)
    assert read_header_row(path, 0, 2) == [ExcelColumn(1, "code"), ExcelColumn(3, "qty")]
    consumer = CollectingRowConsumer()
    assert read_data_rows(path, 0, 3, consumer, lambda c: True) == 2
    assert [r.row_index for r in consumer.rows] == [4, 6]
    assert consumer.rows[0].values_by_column() == {1: "X-1"}
    assert consumer.rows[1].values_by_column() == {3: 4}


def test_streams_write_only_workbook(tmp_path: Path):
    path = tmp_path / "big.xlsx"
    wb = Workbook(write_only=True)
    ws = wb.create_sheet("Data")
    ws.append(["n", "label"])
    for i in range(5000):
        ws.append([i, f"row-{i}"])
    wb.save(path)

    consumer = CollectingRowConsumer(limit=1)
    assert read_data_rows(path, 0, 1, consumer, lambda c: c == "0") == 5000
    assert consumer.row_counter == 5000
    assert consumer.rows[0].values_by_column() == {0: 0}
