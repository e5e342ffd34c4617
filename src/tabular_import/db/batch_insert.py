from __future__ import annotations

import re
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

"""Batched INSERT of mapped records.

Records are dicts; the column list is the union of their keys in first-seen
order and missing keys are sent as NULL. One execute_values call per batch
(page_size controls statement size, not transactions).
"""

__all__ = [
    "BatchInsertError",
    "BatchMetrics",
    "InsertResult",
    "batch_insert",
    "record_columns",
]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class BatchInsertError(Exception):
    """INSERT failed. Carries the driver's structured diagnostics when present."""

    def __init__(self, message: str, details: str | None = None, hint: str | None = None) -> None:
        self.message = message
        self.details = details
        self.hint = hint
        super().__init__(message)


@dataclass(frozen=True)
class BatchMetrics:
    batch_size: int
    elapsed_seconds: float
    start_time: float  # time.time()
    end_time: float


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    columns: tuple[str, ...] = ()


def record_columns(records: Sequence[Mapping[str, Any]]) -> list[str]:
    columns: list[str] = []
    seen: set[str] = set()
    for record in records:
        for key in record:
            if key not in seen:
                seen.add(key)
                columns.append(key)
    return columns


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def batch_insert(
    cursor: Any,
    table: str,
    records: Sequence[Mapping[str, Any]],
    page_size: int = 1000,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """INSERT ``records`` into ``table`` using psycopg2.extras.execute_values.

    Parameters
    ----------
    cursor: psycopg2 cursor (transaction handled by the caller)
    table: target table, ``name`` or ``schema.name``
    records: dict rows; keys are column names
    page_size: execute_values page size
    metrics_callback: receives BatchMetrics; not called for an empty batch
    """
    if not _IDENTIFIER.match(table):
        raise BatchInsertError(f"invalid table name: {table!r}")

    records = list(records)
    if not records:
        return InsertResult(inserted_rows=0)

    columns = record_columns(records)
    if not columns:
        raise BatchInsertError("records have no columns to insert")

    cols_sql = ",".join(_quote_identifier(c) for c in columns)
    sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"
    rows = [[record.get(c) for c in columns] for record in records]

    start_time = time.time()
    try:
        execute_values(cursor, sql, rows, page_size=page_size)
    except psycopg2.Error as e:
        diag = getattr(e, "diag", None)
        message = (getattr(diag, "message_primary", None) or str(e)).strip()
        raise BatchInsertError(
            message,
            details=getattr(diag, "message_detail", None),
            hint=getattr(diag, "message_hint", None),
        ) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(rows),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    return InsertResult(inserted_rows=len(rows), columns=tuple(columns))
