from __future__ import annotations

import time
from pathlib import Path

import pytest
from openpyxl import Workbook

from xlsx_importer.db.batch_insert import PostgresRowConsumer
from xlsx_importer.excel.reader import read_data_rows, read_header_row

"""Streaming throughput smoke test (mock mode, no database)."""

ROWS = 20_000
BUDGET_SECONDS = 30.0


@pytest.fixture(scope="module")
def wide_workbook(tmp_path_factory) -> Path:
    path = tmp_path_factory.mktemp("perf") / "wide.xlsx"
    wb = Workbook(write_only=True)
    ws = wb.create_sheet("Data")
    ws.append([f"col{i}" for i in range(10)])
    for r in range(ROWS):
        ws.append([r, f"name-{r}", r * 0.5, r % 2 == 0, "x" * 8, r, r, r, r, r])
    wb.save(path)
    return path


@pytest.mark.perf
def test_streaming_throughput_budget(wide_workbook: Path):
    header = read_header_row(wide_workbook, 0, 0)
    columns = {c.index: c.name for c in header if c is not None}
    consumer = PostgresRowConsumer(None, "perf", columns, page_size=5000)

    start = time.perf_counter()
    delivered = read_data_rows(wide_workbook, 0, 1, consumer, lambda c: True)
    elapsed = time.perf_counter() - start

    assert delivered == ROWS
    assert consumer.inserted_rows == ROWS
    assert elapsed < BUDGET_SECONDS, f"{ROWS} rows took {elapsed:.1f}s"


@pytest.mark.perf
def test_header_read_does_not_scan_whole_sheet(wide_workbook: Path):
    start = time.perf_counter()
    read_header_row(wide_workbook, 0, 0)
    header_elapsed = time.perf_counter() - start

    start = time.perf_counter()
    read_data_rows(wide_workbook, 0, 1, PostgresRowConsumer(None, "perf", {0: "col0"}), lambda c: c == "0")
    full_elapsed = time.perf_counter() - start

    # 先頭行で打ち切るので全走査より十分速い
    assert header_elapsed < full_elapsed
