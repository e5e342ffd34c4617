from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord, ErrorType
from ..models.table import ParseOutcome

"""Per-run JSON Lines error log.

Records are collected in memory while files are imported and written in one
append on flush(). The file ``errors-YYYYMMDD-HHMMSS.log`` (UTC, named when
the first record is flushed) lives under ``./logs`` unless another directory
is given. A run without errors leaves no file behind.
"""

__all__ = [
    "ErrorLogBuffer",
    "ErrorRecord",
]

LOGS_DIR = Path("./logs")
FILE_NAME_FMT = "errors-%Y%m%d-%H%M%S.log"


class ErrorLogBuffer:
    def __init__(self, logs_dir: Path | None = None) -> None:
        self.logs_dir = Path(logs_dir) if logs_dir is not None else LOGS_DIR
        self._pending: list[ErrorRecord] = []
        self._path: Path | None = None

    @property
    def file_path(self) -> Path | None:
        """Log file of this run; None until something has been flushed."""
        return self._path

    @property
    def records(self) -> tuple[ErrorRecord, ...]:
        return tuple(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def extend(self, records: Iterable[ErrorRecord]) -> None:
        self._pending.extend(records)

    def record(self, file: str, row: int, error_type: ErrorType | str, message: str) -> None:
        self.append(ErrorRecord.create(file, row, error_type, message))

    def file_error(self, file: str, error_type: ErrorType | str, message: str) -> None:
        self.append(ErrorRecord.for_file(file, error_type, message))

    def record_diagnostics(self, file: str, outcome: ParseOutcome) -> None:
        self.extend(ErrorRecord.for_diagnostic(file, d) for d in outcome.diagnostics)

    def _target(self) -> Path:
        if self._path is None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            self._path = self.logs_dir / datetime.now(UTC).strftime(FILE_NAME_FMT)
        return self._path

    def flush(self) -> Path | None:
        """Write pending records; returns the log path or None when nothing was pending."""
        if not self._pending:
            return None
        path = self._target()
        lines = "".join(r.to_json_line() + "\n" for r in self._pending)
        with path.open("a", encoding="utf-8") as f:
            f.write(lines)
        self._pending.clear()
        return path
