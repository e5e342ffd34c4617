from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Parsed table models for the tabular import pipeline.

RawTable holds the header row and data rows exactly as the tokenizer produced
them. ParseOutcome wraps a RawTable together with parser diagnostics so that
callers can tell an empty file from a garbled one.
"""

__all__ = [
    "DiagnosticKind",
    "FailureReason",
    "ParseDiagnostic",
    "ParseOutcome",
    "RawTable",
]


@dataclass(frozen=True)
class RawTable:
    """Header row plus data rows of string cells.

    Headers keep their original order and are not deduplicated.
    Rows are not padded or truncated to the header width.
    """
    headers: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.headers)

    def sample(self, column_index: int) -> str | None:
        """First data cell of a column, used as the "e.g." hint while mapping."""
        if not self.rows or column_index >= len(self.rows[0]):
            return None
        return self.rows[0][column_index]


class DiagnosticKind(Enum):
    UNBALANCED_QUOTES = "UNBALANCED_QUOTES"
    RAGGED_ROW = "RAGGED_ROW"


class FailureReason(Enum):
    EMPTY = "EMPTY"  # no non-blank line at all
    NO_DATA_ROWS = "NO_DATA_ROWS"  # header only


@dataclass(frozen=True)
class ParseDiagnostic:
    line: int  # 1-based physical line number in the source text
    kind: DiagnosticKind
    message: str


@dataclass(frozen=True)
class ParseOutcome:
    """Result of a hardened parse: success-with-table or failure-with-reason.

    Diagnostics are informational only; a successful outcome with warnings
    still carries the best-effort table.
    """
    table: RawTable
    diagnostics: tuple[ParseDiagnostic, ...] = field(default_factory=tuple)
    failure: FailureReason | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def warning_count(self) -> int:
        return len(self.diagnostics)
