from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from ..models.schema import ColumnDefinition, ColumnKind, ColumnMapping
from ..models.table import RawTable
from .coercer import Cell, coerce

"""Record materialization and hand-off to an external writer.

materialize():
- one record per source row, keys = mapped target keys
- cells beyond the end of a short row are skipped (not treated as null)
- rows that produce no key at all are dropped; rows whose values are all
  None are kept
- when two source columns target the same key the later one wins

commit() calls the writer exactly once with the full batch. The core does no
chunking and no partial-commit bookkeeping; writer errors propagate unchanged.
"""

__all__ = [
    "CommitError",
    "MappedRecord",
    "Writer",
    "apply_defaults",
    "commit",
    "extract_error_message",
    "materialize",
]

logger = logging.getLogger(__name__)

MappedRecord = dict[str, Cell]
Writer = Callable[[list[MappedRecord]], Awaitable[Any]]

_MESSAGE_FIELDS = ("message", "details", "hint")


class CommitError(Exception):
    """The writer rejected the batch. ``message`` is user-facing."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def materialize(
    table: RawTable,
    mapping: Sequence[ColumnMapping],
    column_defs: Sequence[ColumnDefinition] | None = None,
) -> list[MappedRecord]:
    kinds = {d.key: d.kind for d in column_defs or ()}
    active = [(index, m.target_key) for index, m in enumerate(mapping) if not m.is_skipped]
    records: list[MappedRecord] = []
    for row in table.rows:
        record: MappedRecord = {}
        for index, key in active:
            if index < len(row):
                record[key] = coerce(row[index], kinds.get(key, ColumnKind.AUTO))
        if record:
            records.append(record)
    return records


async def commit(records: list[MappedRecord], writer: Writer) -> int:
    """Submit the whole batch to ``writer`` and return the record count."""
    logger.debug("submitting %d records", len(records))
    await writer(records)
    return len(records)


def apply_defaults(
    records: Sequence[Mapping[str, Any]], defaults: Mapping[str, Any]
) -> list[dict[str, Any]]:
    """Fill ``defaults`` into records where the key is absent, None or ""."""
    if not defaults:
        return [dict(r) for r in records]
    filled: list[dict[str, Any]] = []
    for record in records:
        out = dict(record)
        for key, value in defaults.items():
            if out.get(key) in (None, ""):
                out[key] = value
        filled.append(out)
    return filled


def _field(source: Any, name: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def extract_error_message(error: Any) -> str:
    """Best user-facing message for a writer failure.

    Structured fields first (message, details, hint, as attributes or mapping
    keys, then a DB driver's ``diag`` primary/detail/hint), then str(error),
    then a JSON or repr rendering.
    """
    for name in _MESSAGE_FIELDS:
        value = _field(error, name)
        if isinstance(value, str) and value:
            return value

    diag = getattr(error, "diag", None)
    if diag is not None:
        for name in ("message_primary", "message_detail", "message_hint"):
            value = getattr(diag, name, None)
            if value:
                return str(value)

    if isinstance(error, BaseException):
        text = str(error)
        if text:
            return text
        return type(error).__name__

    if isinstance(error, (Mapping, list, tuple)):
        try:
            return json.dumps(error, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            return repr(error)
    return str(error)
