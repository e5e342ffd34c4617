from __future__ import annotations

import pytest

from tabular_import.models.schema import SKIP, ColumnDefinition, ColumnMapping
from tabular_import.services.mapper import auto_map, update_mapping
from tabular_import.services.validator import (
    MissingRequiredFieldsError,
    ensure_required,
    missing_required,
    missing_required_labels,
)

DEFS = [
    ColumnDefinition(key="name", label="Name", required=True),
    ColumnDefinition(key="email", label="Email", required=True),
    ColumnDefinition(key="notes", label="Notes"),
]


def test_all_required_mapped():
    mapping = auto_map(["Name", "Email"], DEFS)
    assert missing_required(DEFS, mapping) == set()
    ensure_required(DEFS, mapping)


def test_skipped_required_field_is_missing():
    mapping = update_mapping(auto_map(["Name", "Email"], DEFS), "Email", SKIP)
    assert missing_required(DEFS, mapping) == {"email"}
    assert missing_required_labels(DEFS, mapping) == ["Email"]


def test_labels_follow_definition_order():
    mapping = [ColumnMapping("Notes", "notes")]
    assert missing_required_labels(DEFS, mapping) == ["Name", "Email"]


def test_optional_fields_never_missing():
    defs = [ColumnDefinition(key="notes", label="Notes")]
    assert missing_required(defs, []) == set()


def test_ensure_required_raises_with_labels():
    with pytest.raises(MissingRequiredFieldsError) as ei:
        ensure_required(DEFS, [ColumnMapping("Name", "name")])
    assert ei.value.keys == ("email",)
    assert ei.value.labels == ("Email",)
    assert "Email" in str(ei.value)


def test_ensure_required_accepts_generator():
    ensure_required(DEFS, (m for m in auto_map(["Name", "Email"], DEFS)))
