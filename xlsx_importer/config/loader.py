from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DatabaseConfig, ImportConfig, SheetMappingConfig

"""Config loader.

Responsibilities:
- Load YAML config (default: config/import.yml)
- Validate against the packaged JSON schema (config_schema.json)
- Apply defaults (table = mapping name, header_row = 0, start_row = header_row + 1)
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_PAGE_SIZE = 1000


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: the schema file is missing or invalid, or the config
            data fails validation (missing keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path)
        prefix = f"{location}: " if location else ""
        raise ConfigError(f"config validation failed: {prefix}{e.message}") from e


def _build_mapping(name: str, raw: dict[str, Any]) -> SheetMappingConfig:
    header_row = raw.get("header_row", 0)
    start_row = raw.get("start_row", header_row + 1)
    if start_row <= header_row:
        raise ConfigError(
            f"sheet_mappings.{name}: start_row ({start_row}) must be greater than header_row ({header_row})"
        )
    columns = raw.get("columns")
    return SheetMappingConfig(
        name=name,
        table_name=raw.get("table", name.lower()),
        sheet_index=raw["sheet_index"],
        header_row=header_row,
        start_row=start_row,
        columns=tuple(columns) if columns else None,
        page_size=raw.get("page_size", DEFAULT_PAGE_SIZE),
    )


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    mappings = {name: _build_mapping(name, raw) for name, raw in data["sheet_mappings"].items()}
    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImportConfig(
        source_directory=data["source_directory"],
        sheet_mappings=mappings,
        database=db,
    )
