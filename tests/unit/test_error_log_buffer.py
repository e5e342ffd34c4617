from __future__ import annotations

import json
import re
from pathlib import Path

from tabular_import.logging.error_log import ErrorLogBuffer, ErrorRecord
from tabular_import.models.error_record import ErrorType
from tabular_import.models.table import (
    DiagnosticKind,
    ParseDiagnostic,
    ParseOutcome,
    RawTable,
)

FIELDS = {"timestamp", "file", "row", "error_type", "message"}


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("a.csv", -1, "MISSING_REQUIRED_FIELDS", "missing required: Email"))
    buf.record("a.csv", 3, "RAGGED_ROW", "line 3: 1 cells, header has 2")
    path = buf.flush()
    assert path is not None and path.exists()
    assert path.parent == Path("./logs")
    assert path.name.startswith("errors-") and path.suffix == ".log"
    # ファイル内容検証
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        assert set(json.loads(raw)) == FIELDS
    # flush 後バッファクリア
    assert len(buf) == 0
    assert buf.records == ()


def test_flush_empty_buffer_writes_nothing(temp_workdir: Path):
    buf = ErrorLogBuffer(logs_dir=temp_workdir / "out")
    assert buf.flush() is None
    assert not (temp_workdir / "out").exists()


def test_flush_appends_to_same_file(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.record("a.csv", -1, "PARSE_ERROR", "file is empty")
    first = buf.flush()
    buf.record("b.csv", -1, "PARSE_ERROR", "file is empty")
    second = buf.flush()
    assert first == second
    assert len(first.read_text(encoding="utf-8").splitlines()) == 2


def test_record_diagnostics(tmp_path: Path):
    outcome = ParseOutcome(
        table=RawTable(headers=("A",), rows=(("1",),)),
        diagnostics=(
            ParseDiagnostic(line=2, kind=DiagnosticKind.UNBALANCED_QUOTES, message="line 2: unbalanced"),
            ParseDiagnostic(line=4, kind=DiagnosticKind.RAGGED_ROW, message="line 4: ragged"),
        ),
    )
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.record_diagnostics("a.csv", outcome)
    assert [(r.row, r.error_type) for r in buf.records] == [
        (2, "UNBALANCED_QUOTES"),
        (4, "RAGGED_ROW"),
    ]


def test_file_error_and_path_naming(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "nested")
    assert buf.file_path is None
    buf.file_error("a.csv", ErrorType.UNSUPPORTED_FILE_KIND, "unsupported file type: a.xlsx")
    assert buf.records[0].row == -1
    path = buf.flush()
    assert buf.file_path == path
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)
