from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Result models for CLI runs.

ImportResult captures the caller-visible outputs of one import session
(rows parsed, rows previewed, records submitted, missing labels, error).
RunResult aggregates them for the SUMMARY line.
"""

__all__ = [
    "ImportResult",
    "RunResult",
]


@dataclass(frozen=True)
class ImportResult:
    """Outcome of importing a single file."""
    file_name: str
    success: bool
    parsed_rows: int = 0
    previewed_rows: int = 0
    submitted_records: int = 0
    warning_count: int = 0  # parser diagnostics
    missing_labels: tuple[str, ...] = ()
    error: str | None = None
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class RunResult:
    """Aggregated results across every file given on the command line."""
    success_files: int
    failed_files: int
    parsed_rows: int
    previewed_rows: int
    submitted_records: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_results: list[ImportResult] | None = None

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files

    @classmethod
    def from_results(
        cls, results: list[ImportResult], start_time: datetime, end_time: datetime
    ) -> RunResult:
        success = sum(1 for r in results if r.success)
        return cls(
            success_files=success,
            failed_files=len(results) - success,
            parsed_rows=sum(r.parsed_rows for r in results),
            previewed_rows=sum(r.previewed_rows for r in results),
            submitted_records=sum(r.submitted_records for r in results),
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=(end_time - start_time).total_seconds(),
            file_results=results,
        )
