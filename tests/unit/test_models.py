from __future__ import annotations

from pathlib import Path

import pytest

from xlsx_importer.models import ExcelColumn, SheetMappingConfig, SheetProcess
from xlsx_importer.models.excel_file import ExcelFile, FileStatus
from xlsx_importer.models.processing_result import BatchStatsAccumulator


def test_excel_file_defaults():
    f = ExcelFile(path=Path("data/a.xlsx"), name="a.xlsx")
    assert f.status is FileStatus.PENDING
    assert f.sheets == []
    assert f.total_rows == 0
    assert f.error is None


def test_sheet_process_table_name():
    mapping = SheetMappingConfig(name="Orders", table_name="orders", sheet_index=1)
    sp = SheetProcess(mapping=mapping, header=[ExcelColumn(0, "id")], selected_columns={0: "id"})
    assert sp.table_name == "orders"
    assert sp.inserted_rows == 0


def test_excel_column_is_frozen():
    col = ExcelColumn(0, "id")
    with pytest.raises(AttributeError):
        col.name = "x"  # type: ignore[misc]


class TestBatchStatsAccumulator:
    def test_empty(self):
        assert BatchStatsAccumulator().get_stats() == (0, 0.0, 0.0)

    def test_single(self):
        acc = BatchStatsAccumulator()
        acc.add_batch_time(0.5)
        assert acc.get_stats() == (1, 0.5, 0.5)

    def test_many(self):
        acc = BatchStatsAccumulator()
        for t in range(1, 21):
            acc.add_batch_time(float(t))
        total, avg, p95 = acc.get_stats()
        assert total == 20
        assert avg == pytest.approx(10.5)
        assert 19.0 <= p95 <= 20.0


def test_file_status_values():
    assert [s.value for s in FileStatus] == ["pending", "success", "failed"]
