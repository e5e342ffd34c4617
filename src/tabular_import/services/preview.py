from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import pandas as pd

from ..models.schema import ColumnDefinition, ColumnMapping
from ..models.table import RawTable
from .committer import MappedRecord, materialize

"""Preview of the transformation before commit.

Shows the first ``limit`` materialized records under the mapped target
columns plus a count of the source rows left out ("...and N more rows").
"""

__all__ = [
    "DEFAULT_PREVIEW_ROWS",
    "Preview",
    "build_preview",
    "render_preview",
]

DEFAULT_PREVIEW_ROWS = 10
EMPTY_CELL = "-"


@dataclass(frozen=True)
class Preview:
    columns: tuple[str, ...]  # mapped target keys, first-seen order
    labels: tuple[str, ...]
    rows: tuple[MappedRecord, ...]
    total_records: int
    source_rows: int

    @property
    def remaining(self) -> int:
        return max(self.source_rows - len(self.rows), 0)

    def to_frame(self) -> pd.DataFrame:
        data = [
            [EMPTY_CELL if row.get(key) is None else row[key] for key in self.columns]
            for row in self.rows
        ]
        return pd.DataFrame(data, columns=list(self.labels), dtype=object)


def build_preview(
    table: RawTable,
    mapping: Sequence[ColumnMapping],
    column_defs: Sequence[ColumnDefinition],
    limit: int = DEFAULT_PREVIEW_ROWS,
) -> Preview:
    labels_by_key = {d.key: d.label for d in column_defs}
    columns: list[str] = []
    for m in mapping:
        if not m.is_skipped and m.target_key not in columns:
            columns.append(m.target_key)
    records = materialize(table, mapping, column_defs)
    return Preview(
        columns=tuple(columns),
        labels=tuple(labels_by_key.get(key, key) for key in columns),
        rows=tuple(records[:limit]),
        total_records=len(records),
        source_rows=table.row_count,
    )


def render_preview(preview: Preview) -> str:
    if not preview.columns:
        return "(no mapped columns)"
    text = preview.to_frame().to_string(index=False)
    if preview.remaining:
        text += f"\n...and {preview.remaining} more rows"
    return text
