from __future__ import annotations

import json
import re
from pathlib import Path
from unittest.mock import MagicMock, patch

import pandas as pd  # type: ignore
import pytest

from xlsx_importer.cli import EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL
from xlsx_importer.cli import main as cli_main

"""End-to-end CLI runs against a fake PostgreSQL connection.

``psycopg2.connect`` returns a mock connection and ``execute_values`` is
replaced, so the rows that would be inserted can be inspected per table.
"""

SUMMARY_RE = re.compile(
    r"SUMMARY files=(\d+)/(\d+) success=(\d+) failed=(\d+) rows=(\d+) "
    r"skipped_sheets=(\d+) elapsed_sec=([0-9.]+) throughput_rps=([0-9.]+)"
)


def _make_excel_file(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


@pytest.fixture()
def inserted(monkeypatch) -> dict[str, list[list]]:
    import xlsx_importer.db.batch_insert as bi

    tables: dict[str, list[list]] = {}

    def fake_execute_values(cursor, sql, rows, page_size=1000):
        table = sql.split()[2]
        tables.setdefault(table, []).extend(list(r) for r in rows)

    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    return tables


def _run(argv: list[str] | None = None) -> int:
    with patch("xlsx_importer.cli.app.psycopg2.connect", return_value=MagicMock()):
        return cli_main(argv or [])


def test_multi_file_success(write_config, temp_workdir: Path, inserted, capsys):
    data = temp_workdir / "data"
    _make_excel_file(
        data / "2024-01.xlsx",
        {
            "Customers": [["id", "name", "email"], [1, "Alice", "a@x"], [2, "Bob", "b@x"]],
            "Orders": [["January orders", "", ""], ["order_id", "customer_id", "amount"], [100, 1, 10.5]],
        },
    )
    _make_excel_file(
        data / "2024-02.xlsx",
        {
            "Customers": [["id", "name", "email"], [3, "Carol", "c@x"]],
            "Orders": [["February orders", "", ""], ["order_id", "customer_id", "amount"], [101, 3, 7.0], [102, 2, 1.25]],
        },
    )

    code = _run()
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert inserted["customers"] == [[1.0, "Alice"], [2.0, "Bob"], [3.0, "Carol"]]
    assert inserted["orders"] == [[100.0, 1.0, 10.5], [101.0, 3.0, 7.0], [102.0, 2.0, 1.25]]

    m = SUMMARY_RE.search(out)
    assert m is not None
    files, total, success, failed, rows, skipped = (int(x) for x in m.groups()[:6])
    assert (files, total, success, failed, rows, skipped) == (2, 2, 2, 0, 6, 0)
    assert "mode=live" in out


def test_partial_failure_writes_error_log(write_config, temp_workdir: Path, inserted, capsys):
    data = temp_workdir / "data"
    _make_excel_file(data / "good.xlsx", {"Customers": [["id", "name"], [1, "Alice"]]})
    # ヘッダ行が空 → HEADER_ROW_NOT_FOUND
    _make_excel_file(data / "no_header.xlsx", {"Customers": [[1, 2], [3, 4]]})

    code = _run()
    out = capsys.readouterr().out
    assert code == EXIT_PARTIAL_FAILURE
    m = SUMMARY_RE.search(out)
    assert m is not None
    # good.xlsx は Orders シート無し → skipped
    assert m.group(3, 4, 5, 6) == ("1", "1", "1", "1")

    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    records = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert [(r["file"], r["error_type"]) for r in records] == [("no_header.xlsx", "HEADER_ROW_NOT_FOUND")]
    assert inserted["customers"] == [[1.0, "Alice"]]
