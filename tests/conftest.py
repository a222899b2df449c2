# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from xlsx_helpers import make_openpyxl_workbook
from xlsx_importer.logging.init import reset_logging


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
sheet_mappings:
  Customers:
    table: customers
    sheet_index: 0
    columns: [id, name]
  Orders:
    table: orders
    sheet_index: 1
    header_row: 1
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def customers_orders_workbook(temp_workdir: Path) -> Path:
    """Workbook matching ``sample_config_yaml``: Customers (header row 1), Orders (header row 2)."""
    return make_openpyxl_workbook(
        temp_workdir / "data" / "shop.xlsx",
        {
            "Customers": [
                ["id", "name", "note"],
                [1, "Alice", "vip"],
                [2, "Bob", "new"],
                [3, "Carol", "x"],
            ],
            "Orders": [
                ["Order export"],
                ["order_id", "customer_id", "amount"],
                [10, 1, 99.5],
                [11, 3, 12.25],
            ],
        },
    )


@pytest.fixture()
def no_db(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
