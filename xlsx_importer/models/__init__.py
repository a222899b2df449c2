"""Domain models for the streaming xlsx importer."""

from .column import ExcelColumn
from .config_models import DatabaseConfig, ImportConfig, SheetMappingConfig
from .row_data import RowData
from .sheet_process import SheetProcess

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "SheetMappingConfig",
    # Processing models
    "ExcelColumn",
    "RowData",
    "SheetProcess",
]
