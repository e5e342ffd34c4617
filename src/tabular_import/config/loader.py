from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.schema import ColumnDefinition, ColumnKind, TargetSchema
from ..parsing.parser import DEFAULT_ALLOWED_EXTENSIONS
from ..services.preview import DEFAULT_PREVIEW_ROWS

"""Config loader.

Responsibilities:
- Load YAML (config/import.yml by default)
- Validate against the packaged config_schema.json (extra keys rejected)
- Apply defaults (preview_rows=10, parser compatible mode, .csv only)
- Build TargetSchema objects for each configured import target
"""

DEFAULT_CONFIG_PATH = Path("config/import.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    """Fallback connection settings; environment variables take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ParserConfig:
    doubled_quote_escape: bool = False
    allowed_extensions: tuple[str, ...] = DEFAULT_ALLOWED_EXTENSIONS


@dataclass(frozen=True)
class ImportConfig:
    schemas: dict[str, TargetSchema]
    parser: ParserConfig = field(default_factory=ParserConfig)
    preview_rows: int = DEFAULT_PREVIEW_ROWS
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    def schema(self, name: str) -> TargetSchema:
        try:
            return self.schemas[name]
        except KeyError:
            known = ", ".join(sorted(self.schemas)) or "(none)"
            raise ConfigError(f"unknown schema '{name}' (configured: {known})") from None


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or data invalid
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


def _build_schema(name: str, raw: dict[str, Any]) -> TargetSchema:
    columns = tuple(
        ColumnDefinition(
            key=c["key"],
            label=c["label"],
            required=bool(c.get("required", False)),
            kind=ColumnKind(c.get("kind", ColumnKind.AUTO.value)),
        )
        for c in raw["columns"]
    )
    keys = [c.key for c in columns]
    duplicates = sorted({k for k in keys if keys.count(k) > 1})
    if duplicates:
        raise ConfigError(f"schema '{name}' has duplicate column keys: {duplicates}")
    return TargetSchema(
        name=name,
        table=raw["table"],
        columns=columns,
        defaults=dict(raw.get("defaults") or {}),
        label=raw.get("label"),
    )


def parse_config(data: dict[str, Any]) -> ImportConfig:
    """Validate an already-loaded mapping and build ImportConfig."""
    _validate_config_schema(data)

    parser_raw = data.get("parser") or {}
    parser = ParserConfig(
        doubled_quote_escape=parser_raw.get("doubled_quote_escape", False),
        allowed_extensions=tuple(
            parser_raw.get("allowed_extensions", DEFAULT_ALLOWED_EXTENSIONS)
        ),
    )
    db_raw = data.get("database") or {}
    database = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    schemas = {name: _build_schema(name, raw) for name, raw in data["schemas"].items()}
    return ImportConfig(
        schemas=schemas,
        parser=parser,
        preview_rows=data.get("preview_rows", DEFAULT_PREVIEW_ROWS),
        database=database,
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    return parse_config(data)
