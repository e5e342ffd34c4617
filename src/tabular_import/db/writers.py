from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import psycopg2

from ..services.committer import MappedRecord, apply_defaults
from .batch_insert import BatchMetrics, batch_insert

"""Record writers.

A writer is an async callable taking the full list of records. It either
returns (success) or raises (failure); the workflow turns the exception into
a CommitError. Blocking I/O runs in a worker thread via asyncio.to_thread.
"""

__all__ = [
    "JsonLinesWriter",
    "PostgresWriter",
]

logger = logging.getLogger(__name__)


class PostgresWriter:
    """Insert the batch into one table inside a single transaction.

    The insert is all-or-nothing for this writer: on any error the
    transaction is rolled back and the original exception re-raised.
    """

    def __init__(
        self,
        dsn: str,
        table: str,
        defaults: Mapping[str, Any] | None = None,
        *,
        page_size: int = 1000,
        connect: Callable[[str], Any] | None = None,
    ) -> None:
        self.dsn = dsn
        self.table = table
        self.defaults = dict(defaults or {})
        self.page_size = page_size
        self._connect = connect or psycopg2.connect

    async def __call__(self, records: list[MappedRecord]) -> int:
        return await asyncio.to_thread(self._write, records)

    def _write(self, records: list[MappedRecord]) -> int:
        rows = apply_defaults(records, self.defaults)
        conn = self._connect(self.dsn)
        try:
            cur = conn.cursor()
            try:
                result = batch_insert(
                    cur,
                    self.table,
                    rows,
                    page_size=self.page_size,
                    metrics_callback=self._log_batch,
                )
            finally:
                cur.close()
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.debug("table=%s inserted_rows=%d", self.table, result.inserted_rows)
        return result.inserted_rows

    def _log_batch(self, metrics: BatchMetrics) -> None:
        logger.debug(
            "batch table=%s rows=%d elapsed=%.3fs",
            self.table,
            metrics.batch_size,
            metrics.elapsed_seconds,
        )


class JsonLinesWriter:
    """Append each record as one JSON object per line."""

    def __init__(self, path: Path, defaults: Mapping[str, Any] | None = None) -> None:
        self.path = Path(path)
        self.defaults = dict(defaults or {})

    async def __call__(self, records: list[MappedRecord]) -> int:
        return await asyncio.to_thread(self._write, records)

    def _write(self, records: list[MappedRecord]) -> int:
        rows = apply_defaults(records, self.defaults)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            for row in rows:
                f.write(json.dumps(row, ensure_ascii=False) + "\n")
        logger.debug("path=%s written=%d", self.path, len(rows))
        return len(rows)
