from __future__ import annotations

from collections.abc import Iterable, Sequence

from ..models.schema import ColumnDefinition, ColumnMapping

"""Required-field validation.

missing_required() = {required keys} - {non-empty targets in the mapping}.
Users are shown labels, never raw keys.
"""

__all__ = [
    "MissingRequiredFieldsError",
    "ensure_required",
    "missing_required",
    "missing_required_labels",
]


class MissingRequiredFieldsError(Exception):
    """Raised when leaving the Map step with unmapped required fields."""

    def __init__(self, keys: Iterable[str], labels: Iterable[str]) -> None:
        self.keys = tuple(keys)
        self.labels = tuple(labels)
        super().__init__(f"missing required columns: {', '.join(self.labels)}")


def missing_required(
    column_defs: Sequence[ColumnDefinition], mapping: Iterable[ColumnMapping]
) -> set[str]:
    mapped = {m.target_key for m in mapping if not m.is_skipped}
    return {d.key for d in column_defs if d.required} - mapped


def missing_required_labels(
    column_defs: Sequence[ColumnDefinition], mapping: Iterable[ColumnMapping]
) -> list[str]:
    """Labels of missing required fields, in definition order."""
    missing = missing_required(column_defs, mapping)
    return [d.label for d in column_defs if d.key in missing]


def ensure_required(
    column_defs: Sequence[ColumnDefinition], mapping: Iterable[ColumnMapping]
) -> None:
    mapping = list(mapping)
    missing = missing_required(column_defs, mapping)
    if missing:
        keys = [d.key for d in column_defs if d.key in missing]
        raise MissingRequiredFieldsError(keys, missing_required_labels(column_defs, mapping))
