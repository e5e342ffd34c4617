from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from .table import ParseDiagnostic

"""Error log entries.

Every problem reported to the user during a run (rejected file, parser
diagnostic, unmapped required field, writer failure) is also kept as one
ErrorRecord so that batch runs leave a machine-readable JSON Lines trail.
"""

__all__ = [
    "FILE_LEVEL_ROW",
    "ErrorRecord",
    "ErrorType",
]

# row value for problems that concern the whole file
FILE_LEVEL_ROW = -1


class ErrorType(str, Enum):
    UNSUPPORTED_FILE_KIND = "UNSUPPORTED_FILE_KIND"
    READ_ERROR = "READ_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    UNBALANCED_QUOTES = "UNBALANCED_QUOTES"
    RAGGED_ROW = "RAGGED_ROW"
    MAPPING_ERROR = "MAPPING_ERROR"
    MISSING_REQUIRED_FIELDS = "MISSING_REQUIRED_FIELDS"
    COMMIT_ERROR = "COMMIT_ERROR"


def _utc_stamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ErrorRecord:
    """One JSON Lines entry.

    Attributes:
        timestamp: ISO8601 UTC, millisecond precision, 'Z' suffix
        file: Source file name (no directory)
        row: Physical line number in the file (header = 1), FILE_LEVEL_ROW otherwise
        error_type: ErrorType value
        message: Text shown to the user for the same problem
    """
    timestamp: str
    file: str
    row: int
    error_type: str
    message: str

    @classmethod
    def create(cls, file: str, row: int, error_type: ErrorType | str, message: str) -> ErrorRecord:
        return cls(
            timestamp=_utc_stamp(),
            file=file,
            row=row,
            error_type=ErrorType(error_type).value,
            message=message,
        )

    @classmethod
    def for_file(cls, file: str, error_type: ErrorType | str, message: str) -> ErrorRecord:
        return cls.create(file, FILE_LEVEL_ROW, error_type, message)

    @classmethod
    def for_diagnostic(cls, file: str, diagnostic: ParseDiagnostic) -> ErrorRecord:
        return cls.create(file, diagnostic.line, diagnostic.kind.value, diagnostic.message)

    def to_json_line(self) -> str:
        # キー順固定 (timestamp, file, row, error_type, message)
        payload = {
            "timestamp": self.timestamp,
            "file": self.file,
            "row": self.row,
            "error_type": self.error_type,
            "message": self.message,
        }
        return json.dumps(payload, ensure_ascii=False)
