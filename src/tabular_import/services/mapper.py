from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from ..models.schema import SKIP, ColumnDefinition, ColumnMapping

"""Column mapping service.

auto_map() proposes a target for every source header by exact comparison
after normalization (lowercase, '_' / whitespace / '-' removed) against each
target's key and label. No fuzzy matching, plurals or synonyms.

update_mapping() is the manual override; it never mutates its input.
"""

__all__ = [
    "auto_map",
    "duplicate_targets",
    "normalize_name",
    "update_mapping",
]

_SEPARATORS = re.compile(r"[_\s-]")


def normalize_name(name: str) -> str:
    return _SEPARATORS.sub("", name.lower())


def auto_map(
    headers: Iterable[str], column_defs: Sequence[ColumnDefinition]
) -> list[ColumnMapping]:
    """Propose one mapping entry per header, in header order.

    The first definition (in definition order) whose normalized key or label
    equals the normalized header wins. Unmatched headers map to SKIP.
    Deterministic and idempotent for the same inputs.
    """
    candidates = [
        (normalize_name(d.key), normalize_name(d.label), d.key) for d in column_defs
    ]
    mapping: list[ColumnMapping] = []
    for header in headers:
        wanted = normalize_name(header)
        target = next(
            (key for norm_key, norm_label, key in candidates if wanted in (norm_key, norm_label)),
            SKIP,
        )
        mapping.append(ColumnMapping(source_column=header, target_key=target))
    return mapping


def update_mapping(
    mapping: Sequence[ColumnMapping], source_column: str, target_key: str
) -> list[ColumnMapping]:
    """Return a new mapping with ``source_column`` pointed at ``target_key``.

    SKIP ("") unmaps the column. Every entry sharing that source name is
    updated (duplicate headers share one selector); other entries and the
    header order are preserved.
    """
    return [
        ColumnMapping(source_column=m.source_column, target_key=target_key)
        if m.source_column == source_column
        else m
        for m in mapping
    ]


def duplicate_targets(mapping: Iterable[ColumnMapping]) -> dict[str, list[str]]:
    """Target keys chosen by more than one source column.

    During materialization the later column wins for such keys.
    """
    sources: dict[str, list[str]] = {}
    for m in mapping:
        if not m.is_skipped:
            sources.setdefault(m.target_key, []).append(m.source_column)
    return {key: cols for key, cols in sources.items() if len(cols) > 1}
