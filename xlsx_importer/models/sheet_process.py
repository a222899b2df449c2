from __future__ import annotations

from dataclasses import dataclass

from .column import ExcelColumn
from .config_models import SheetMappingConfig

"""SheetProcess model: outcome of importing one sheet mapping from one file."""

__all__ = [
    "SheetProcess",
]


@dataclass(frozen=True)
class SheetProcess:
    """Processing unit for a single worksheet."""
    mapping: SheetMappingConfig  # Configuration reference
    header: list[ExcelColumn | None] | None = None  # 読み取ったヘッダ行
    selected_columns: dict[int, str] | None = None  # column index -> target column
    delivered_rows: int = 0  # rows handed to the consumer
    inserted_rows: int = 0  # Successfully inserted row count
    error: str | None = None  # Sheet-level error message

    @property
    def table_name(self) -> str:
        return self.mapping.table_name
