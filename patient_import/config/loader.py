from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from patient_import.models.config_models import DatabaseConfig, DedupStrategy, ImportConfig

"""Config loader.

Responsibilities:
- Load YAML config (default: config/import.yml)
- Validate against the packaged JSON schema (additional keys rejected)
- Apply defaults for every missing key
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or malformed, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path, *, required: bool = True) -> ImportConfig:
    """Load and validate the import configuration.

    When `required` is False and the file does not exist, built-in defaults
    are returned instead of raising.
    """
    if not path.exists():
        if not required:
            return ImportConfig()
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    defaults = ImportConfig()
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
        dedup_strategy=DedupStrategy(data.get("dedup_strategy", defaults.dedup_strategy.value)),
        require_mrn=data.get("require_mrn", defaults.require_mrn),
        header_row=data.get("header_row", defaults.header_row),
        default_country=data.get("default_country", defaults.default_country),
        default_calling_code=data.get("default_calling_code", defaults.default_calling_code),
        table=data.get("table", defaults.table),
        error_log_dir=data.get("error_log_dir", defaults.error_log_dir),
        database=db,
    )
