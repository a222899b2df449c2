from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses for the streaming xlsx importer.

Built by ``xlsx_importer.config.loader.load_config`` after schema validation
and default resolution.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None
    port: int | None
    user: str | None
    password: str | None
    database: str | None
    dsn: str | None


@dataclass(frozen=True)
class SheetMappingConfig:
    """How one worksheet of every source file is imported into one table.

    Row and sheet indices are 0-based.
    """
    name: str  # mapping key in sheet_mappings
    table_name: str  # Target database table name
    sheet_index: int  # worksheet part index
    header_row: int = 0
    start_row: int = 1  # first data row (> header_row)
    columns: tuple[str, ...] | None = None  # header names to import (None = all named columns)
    page_size: int = 1000  # rows per INSERT batch

    def uses_column(self, name: str) -> bool:
        return self.columns is None or name in self.columns


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for the import process."""
    source_directory: str  # Directory to scan for Excel files
    sheet_mappings: dict[str, SheetMappingConfig]  # mapping name -> configuration
    database: DatabaseConfig  # Database connection fallback configuration
