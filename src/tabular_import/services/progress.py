from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from tqdm import tqdm

from ..models.result import ImportResult

"""File-level progress for CLI runs.

A tqdm bar advances once per imported file and shows running totals
(ok / failed / records) as its postfix. Without a TTY no bar is drawn so
that piped logs stay clean; the totals are still kept.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]

BAR_FORMAT = "{desc} {n_fmt}/{total_fmt} |{bar}| {postfix}"


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    def __init__(self, total_files: int, *, description: str = "Importing files") -> None:
        self.total_files = total_files
        self.description = description
        self.ok = 0
        self.failed = 0
        self.records = 0
        self.bar: Any | None = None
        if is_tty_enabled():
            self.bar = tqdm(
                total=total_files,
                desc=description,
                unit="file",
                bar_format=BAR_FORMAT,
                ascii=True,
                leave=True,
            )

    @property
    def done(self) -> int:
        return self.ok + self.failed

    @contextmanager
    def track(self, path: Path) -> Iterator[None]:
        """Show ``path`` as the current file; the bar advances on exit."""
        if self.bar is not None:
            self.bar.set_description_str(f"{self.description} [{path.name}]")
        try:
            yield
        finally:
            if self.bar is not None:
                self.bar.set_description_str(self.description)
                self.bar.update(1)

    def add(self, result: ImportResult) -> None:
        if result.success:
            self.ok += 1
        else:
            self.failed += 1
        self.records += result.submitted_records
        if self.bar is not None:
            self.bar.set_postfix(ok=self.ok, failed=self.failed, records=self.records)

    def close(self) -> None:
        if self.bar is not None:
            self.bar.close()
            self.bar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
