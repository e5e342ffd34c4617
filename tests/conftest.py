# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from tabular_import.logging.init import reset_logging
from tabular_import.models.schema import ColumnDefinition, ColumnKind


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _fresh_logging():
    # setup_logging() binds sys.stdout at creation; capsys swaps it per test
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """preview_rows: 2
schemas:
  people:
    table: people
    label: People
    columns:
      - {key: name, label: Full Name, required: true}
      - {key: email, label: Email}
      - {key: age, label: Age}
      - {key: zip, label: Zip Code, kind: text}
    defaults:
      status: active
  equipment:
    table: equipment
    columns:
      - {key: name, label: Name, required: true}
      - {key: type, label: Type, required: true}
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def people_columns() -> tuple[ColumnDefinition, ...]:
    return (
        ColumnDefinition(key="name", label="Full Name", required=True),
        ColumnDefinition(key="email", label="Email"),
        ColumnDefinition(key="age", label="Age"),
        ColumnDefinition(key="zip", label="Zip Code", kind=ColumnKind.TEXT),
    )


@pytest.fixture()
def write_csv(temp_workdir: Path):
    """Write ``text`` into data/<name> and return the path."""
    def _write(name: str, text: str, encoding: str = "utf-8") -> Path:
        path = temp_workdir / "data" / name
        path.write_text(text, encoding=encoding)
        return path
    return _write
