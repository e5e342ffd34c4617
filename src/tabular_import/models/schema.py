from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Target schema models: column definitions and the per-source-column mapping.

ColumnDefinition and TargetSchema are supplied by configuration and stay
immutable for the lifetime of an import session. ColumnMapping entries are
produced by the mapper, one per source header, in header order.
"""

__all__ = [
    "ColumnDefinition",
    "ColumnKind",
    "ColumnMapping",
    "SKIP",
    "TargetSchema",
]

# Empty target key means "skip this column"
SKIP = ""


class ColumnKind(Enum):
    """Per-column coercion override.

    AUTO applies the numeric heuristic; TEXT keeps the cell as a string
    (zip codes, phone numbers, identifiers with leading zeros).
    """
    AUTO = "auto"
    TEXT = "text"


@dataclass(frozen=True)
class ColumnDefinition:
    key: str  # unique target field identifier
    label: str  # display name
    required: bool = False
    kind: ColumnKind = ColumnKind.AUTO


@dataclass(frozen=True)
class ColumnMapping:
    source_column: str
    target_key: str = SKIP

    @property
    def is_skipped(self) -> bool:
        return self.target_key == SKIP


@dataclass(frozen=True)
class TargetSchema:
    """Named import destination (e.g. equipment, employees).

    Attributes:
        name: Key used on the command line and in config
        table: Destination table handed to the writer
        columns: Ordered column definitions
        defaults: Values filled in when a record leaves a field blank
        label: Human readable title, falls back to name
    """
    name: str
    table: str
    columns: tuple[ColumnDefinition, ...]
    defaults: Mapping[str, Any] = field(default_factory=dict)
    label: str | None = None

    @property
    def title(self) -> str:
        return self.label or self.name

    def column(self, key: str) -> ColumnDefinition | None:
        for definition in self.columns:
            if definition.key == key:
                return definition
        return None

    def label_for(self, key: str) -> str:
        definition = self.column(key)
        return definition.label if definition is not None else key
