from __future__ import annotations

import json
from pathlib import Path

import pytest

from tabular_import.config.loader import ImportConfig, load_config
from tabular_import.logging.error_log import ErrorLogBuffer
from tabular_import.services.runner import import_file, run_imports

PEOPLE = "Full Name,Email,Age,Zip Code\nAnn,ann@example.com,30,02135\nBob,,41,\nCid,cid@example.com,,10001\n"


@pytest.fixture
def config(write_config: Path) -> ImportConfig:
    return load_config(write_config)


class RecordingWriter:
    def __init__(self) -> None:
        self.batches: list[list[dict]] = []

    async def __call__(self, records):
        self.batches.append(records)


@pytest.mark.asyncio
async def test_import_file_success(config, write_csv, tmp_path):
    writer = RecordingWriter()
    log = ErrorLogBuffer(logs_dir=tmp_path)
    result = await import_file(
        write_csv("people.csv", PEOPLE), config.schema("people"), config, writer=writer, error_log=log
    )
    assert result.success
    assert result.parsed_rows == 3
    assert result.previewed_rows == 2  # preview_rows from config
    assert result.submitted_records == 3
    assert result.error is None
    assert len(writer.batches) == 1
    assert writer.batches[0][0] == {"name": "Ann", "email": "ann@example.com", "age": 30.0, "zip": "02135"}
    assert writer.batches[0][1]["email"] is None
    assert log.records == ()


@pytest.mark.asyncio
async def test_dry_run_submits_nothing(config, write_csv, tmp_path):
    result = await import_file(
        write_csv("people.csv", PEOPLE),
        config.schema("people"),
        config,
        writer=None,
        error_log=ErrorLogBuffer(logs_dir=tmp_path),
    )
    assert result.success
    assert result.submitted_records == 0
    assert result.previewed_rows == 2


@pytest.mark.asyncio
async def test_overrides_applied(config, write_csv, tmp_path):
    writer = RecordingWriter()
    path = write_csv("people.csv", "Person,Mail\nAnn,a@example.com\n")
    result = await import_file(
        path,
        config.schema("people"),
        config,
        writer=writer,
        overrides=[("Person", "name"), ("Mail", "email")],
        error_log=ErrorLogBuffer(logs_dir=tmp_path),
    )
    assert result.success
    assert writer.batches == [[{"name": "Ann", "email": "a@example.com"}]]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name, content, error_type, message",
    [
        ("people.txt", PEOPLE, "UNSUPPORTED_FILE_KIND", "unsupported file type"),
        ("people.csv", "", "PARSE_ERROR", "file is empty"),
        ("people.csv", "Full Name,Email\n", "PARSE_ERROR", "no data rows"),
        ("people.csv", "Email\na@example.com\n", "MISSING_REQUIRED_FIELDS", "missing required: Full Name"),
    ],
)
async def test_file_level_failures(config, write_csv, tmp_path, name, content, error_type, message):
    log = ErrorLogBuffer(logs_dir=tmp_path)
    writer = RecordingWriter()
    result = await import_file(
        write_csv(name, content), config.schema("people"), config, writer=writer, error_log=log
    )
    assert not result.success
    assert message in result.error
    assert writer.batches == []
    assert [(r.row, r.error_type) for r in log.records] == [(-1, error_type)]


@pytest.mark.asyncio
async def test_missing_labels_reported(config, write_csv, tmp_path):
    result = await import_file(
        write_csv("people.csv", "Email\na@example.com\n"),
        config.schema("people"),
        config,
        error_log=ErrorLogBuffer(logs_dir=tmp_path),
    )
    assert result.missing_labels == ("Full Name",)
    assert result.parsed_rows == 1


@pytest.mark.asyncio
async def test_unreadable_file(config, temp_workdir, tmp_path):
    log = ErrorLogBuffer(logs_dir=tmp_path)
    result = await import_file(
        temp_workdir / "data" / "missing.csv", config.schema("people"), config, error_log=log
    )
    assert not result.success
    assert log.records[0].error_type == "READ_ERROR"


@pytest.mark.asyncio
async def test_unknown_override_column(config, write_csv, tmp_path):
    log = ErrorLogBuffer(logs_dir=tmp_path)
    result = await import_file(
        write_csv("people.csv", PEOPLE),
        config.schema("people"),
        config,
        overrides=[("Phone", "name")],
        error_log=log,
    )
    assert not result.success
    assert "unknown source column: Phone" in result.error
    assert log.records[0].error_type == "MAPPING_ERROR"


@pytest.mark.asyncio
async def test_writer_failure(config, write_csv, tmp_path):
    async def failing(records):
        raise RuntimeError("relation \"people\" does not exist")

    log = ErrorLogBuffer(logs_dir=tmp_path)
    result = await import_file(
        write_csv("people.csv", PEOPLE), config.schema("people"), config, writer=failing, error_log=log
    )
    assert not result.success
    assert result.error == 'import failed: relation "people" does not exist'
    assert result.submitted_records == 0
    assert result.previewed_rows == 2
    assert log.records[0].error_type == "COMMIT_ERROR"


@pytest.mark.asyncio
async def test_parse_diagnostics_are_logged_but_import_succeeds(config, write_csv, tmp_path):
    log = ErrorLogBuffer(logs_dir=tmp_path)
    path = write_csv("people.csv", "Full Name,Email\nAnn,a@example.com,extra\nBob,b@example.com\n")
    result = await import_file(path, config.schema("people"), config, error_log=log)
    assert result.success
    assert result.warning_count == 1
    assert [(r.row, r.error_type) for r in log.records] == [(2, "RAGGED_ROW")]


@pytest.mark.asyncio
async def test_run_imports_aggregates_and_flushes(config, write_csv, temp_workdir):
    good = write_csv("people.csv", PEOPLE)
    bad = write_csv("broken.csv", "")
    writer = RecordingWriter()

    run = await run_imports([good, bad], config.schema("people"), config, writer=writer)

    assert run.success_files == 1
    assert run.failed_files == 1
    assert run.parsed_rows == 3
    assert run.submitted_records == 3
    assert [r.file_name for r in run.file_results] == ["people.csv", "broken.csv"]

    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    entries = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert [(e["file"], e["error_type"]) for e in entries] == [("broken.csv", "PARSE_ERROR")]


@pytest.mark.asyncio
async def test_run_imports_without_errors_writes_no_log(config, write_csv, temp_workdir):
    run = await run_imports([write_csv("people.csv", PEOPLE)], config.schema("people"), config)
    assert run.success_files == 1
    assert list((temp_workdir / "logs").glob("errors-*.log")) == []
