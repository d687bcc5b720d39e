from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import ColumnMapping, DatabaseConfig, ImportConfig
from ..models.material import MaterialClass

"""Import configuration (config/import.yml).

The YAML is checked against config_schema.json, which ships inside this
package, before anything is typed. Defaults applied afterwards:
header_row=2, base_currency=IDR, Indonesian column headers (see ColumnMapping).
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")
DEFAULT_BASE_CURRENCY = "IDR"
DEFAULT_HEADER_ROW = 2

_DB_KEYS = ("host", "port", "user", "password", "database", "dsn")


class ConfigError(Exception):
    pass


@lru_cache(maxsize=1)
def _schema() -> dict[str, Any]:
    try:
        return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"config schema is not valid JSON: {e}") from e


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: config root must be a mapping")
    return data


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    """Read, validate and type the import configuration.

    Raises:
        ConfigError: missing/unreadable file, bad YAML or a schema violation
    """
    data = _read_yaml(path)
    try:
        jsonschema.validate(data, _schema())
    except ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"config validation failed at {where}: {e.message}") from e

    target_class = MaterialClass.from_label(data["target_class"])
    if target_class is None:  # pragma: no cover - schema enum
        raise ConfigError(f"unknown target_class: {data['target_class']!r}")

    db_section = data.get("database") or {}
    sentinels = data.get("null_sentinels") or []
    return ImportConfig(
        source_file=data["source_file"],
        sheet_name=data.get("sheet_name"),
        header_row=data.get("header_row", DEFAULT_HEADER_ROW),
        columns=ColumnMapping(**(data.get("columns") or {})),
        target_class=target_class,
        period=str(data["period"]),
        base_currency=str(data.get("base_currency", DEFAULT_BASE_CURRENCY)).upper(),
        submitted_by=data["submitted_by"],
        database=DatabaseConfig(**{key: db_section.get(key) for key in _DB_KEYS}),
        null_sentinels={s.strip().upper() for s in sentinels} or None,
    )
