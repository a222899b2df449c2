from __future__ import annotations

import datetime

import pytest

from xlsx_importer.excel.address import CellAddress
from xlsx_importer.excel.cells import (
    BooleanValue,
    CellType,
    ErrorValue,
    FormulaValue,
    NumberValue,
    TextValue,
    classify_data_cell,
    classify_header_cell,
    parse_number,
)
from xlsx_importer.excel.errors import InvalidFormulaCellError, NumericParseError
from xlsx_importer.excel.events import CellEvent
from xlsx_importer.models.column import ExcelColumn

ADDR = CellAddress(row=4, column=2)  # C5


def _event(raw, cell_type, formatted=None, fmt=None) -> CellEvent:
    return CellEvent("C5", raw, formatted if formatted is not None else raw, cell_type, fmt)


class TestHeaderProfile:
    def test_string_cell_becomes_column(self):
        assert classify_header_cell(2, _event("amount", CellType.STRING)) == ExcelColumn(2, "amount")

    def test_formula_cell_becomes_column(self):
        assert classify_header_cell(0, _event("total", CellType.FORMULA)) == ExcelColumn(0, "total")

    @pytest.mark.parametrize(
        "cell_type,raw",
        [
            (CellType.NUMERIC, "1"),
            (CellType.BOOLEAN, "1"),
            (CellType.ERROR, "#REF!"),
            (CellType.BLANK, None),
        ],
    )
    def test_other_cells_are_placeholders(self, cell_type: CellType, raw):
        assert classify_header_cell(1, _event(raw, cell_type)) is None


class TestDataProfile:
    def test_no_raw_value_is_gap(self):
        assert classify_data_cell(ADDR, _event(None, CellType.BLANK)) is None
        assert classify_data_cell(ADDR, CellEvent("C5", None, None, CellType.NUMERIC)) is None

    @pytest.mark.parametrize("raw,expected", [("1", True), ("0", False), ("2", False)])
    def test_boolean(self, raw: str, expected: bool):
        value = classify_data_cell(ADDR, _event(raw, CellType.BOOLEAN))
        assert value == BooleanValue(column=2, raw=raw, value=expected)
        assert value.python_value is expected

    def test_boolean_not_a_number(self):
        with pytest.raises(NumericParseError) as exc:
            classify_data_cell(ADDR, _event("yes", CellType.BOOLEAN))
        assert exc.value.row_number == 5

    def test_error_from_formula_raises(self, caplog):
        with caplog.at_level("ERROR"):
            with pytest.raises(InvalidFormulaCellError) as exc:
                classify_data_cell(ADDR, _event("#DIV/0!", CellType.ERROR))
        assert "invalid formula at Excel row #5" in str(exc.value)
        assert exc.value.reference == "C5"
        assert "C5" in caplog.text

    def test_error_without_hash_is_sentinel(self):
        value = classify_data_cell(ADDR, _event("N/A", CellType.ERROR))
        assert value == ErrorValue(column=2, raw="N/A", text="ERROR:N/A")
        assert value.python_value == "ERROR:N/A"

    def test_formula(self):
        value = classify_data_cell(ADDR, _event("SUM(A1:A3)", CellType.FORMULA))
        assert value == FormulaValue(column=2, text="SUM(A1:A3)")

    def test_string(self):
        value = classify_data_cell(ADDR, _event("Alice", CellType.STRING))
        assert value == TextValue(column=2, raw="Alice", display="Alice")
        assert value.python_value == "Alice"

    def test_numeric_with_format(self):
        value = classify_data_cell(ADDR, _event("1234.5", CellType.NUMERIC, "1234.50", "0.00"))
        assert value == NumberValue(column=2, value=1234.5, formatted="1234.50", format_string="0.00")
        assert value.python_value == 1234.5
        assert not value.is_date

    def test_numeric_date_format(self):
        value = classify_data_cell(ADDR, _event("45000", CellType.NUMERIC, "2023-03-15", "yyyy-mm-dd"))
        assert value.is_date
        assert value.python_value == datetime.datetime(2023, 3, 15)

    def test_numeric_without_format_is_raw_text(self):
        value = classify_data_cell(ADDR, _event("42", CellType.NUMERIC))
        assert value == TextValue(column=2, raw="42", display=None)

    def test_numeric_not_a_number(self):
        with pytest.raises(NumericParseError) as exc:
            classify_data_cell(ADDR, _event("abc", CellType.NUMERIC, "abc", "0.00"))
        assert exc.value.column_number == 3

    def test_blank_with_raw_value_is_gap(self):
        assert classify_data_cell(ADDR, _event("x", CellType.BLANK)) is None


@pytest.mark.parametrize("raw", ["1_000", "inf", "-Infinity", "nan", "0x10", ""])
def test_numeric_rejects_non_decimal_text(raw: str):
    with pytest.raises(NumericParseError):
        classify_data_cell(ADDR, _event(raw, CellType.NUMERIC, raw, "0.00"))


@pytest.mark.parametrize("raw,expected", [("12", 12.0), ("-0.5", -0.5), (".25", 0.25), ("1.5E+3", 1500.0), (" 7 ", 7.0)])
def test_parse_number_accepts_decimal_literals(raw: str, expected: float):
    assert parse_number(raw) == expected
