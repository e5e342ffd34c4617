from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from tabular_import.models import (
    ColumnDefinition,
    ColumnMapping,
    ImportSession,
    ImportStep,
    RawTable,
    TargetSchema,
)


def test_raw_table_counts_and_sample():
    table = RawTable(headers=("A", "B", "C"), rows=(("1", "2"), ("3", "4", "5")))
    assert table.row_count == 2
    assert table.column_count == 3
    assert table.sample(0) == "1"
    # first row is short, no sample for the third column
    assert table.sample(2) is None
    assert RawTable().sample(0) is None


def test_session_defaults():
    session = ImportSession()
    assert session.step is ImportStep.UPLOAD
    assert session.mapping == ()
    assert not session.committing
    assert session.file_name is None
    assert session.token == 0


def test_session_is_immutable():
    with pytest.raises(FrozenInstanceError):
        ImportSession().step = ImportStep.MAP  # type: ignore[misc]


def test_column_mapping_skip():
    assert ColumnMapping("Notes").is_skipped
    assert not ColumnMapping("Name", "name").is_skipped


def test_target_schema_lookup():
    schema = TargetSchema(
        name="employees",
        table="employees",
        columns=(
            ColumnDefinition(key="name", label="Name", required=True),
            ColumnDefinition(key="hire_date", label="Hire Date"),
        ),
        label="Employees",
    )
    assert schema.title == "Employees"
    assert schema.column("hire_date").label == "Hire Date"
    assert schema.column("missing") is None
    assert schema.label_for("name") == "Name"
    assert schema.label_for("missing") == "missing"
