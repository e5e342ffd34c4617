"""Domain models for the tabular import pipeline.

This package contains the value types passed between the parser, mapper,
workflow and committer.
"""

from .error_record import FILE_LEVEL_ROW, ErrorRecord, ErrorType
from .result import ImportResult, RunResult
from .schema import SKIP, ColumnDefinition, ColumnKind, ColumnMapping, TargetSchema
from .session import ImportSession, ImportStep
from .table import DiagnosticKind, FailureReason, ParseDiagnostic, ParseOutcome, RawTable

__all__ = [
    # Schema models
    "ColumnDefinition",
    "ColumnKind",
    "ColumnMapping",
    "SKIP",
    "TargetSchema",
    # Parsed table models
    "DiagnosticKind",
    "FailureReason",
    "ParseDiagnostic",
    "ParseOutcome",
    "RawTable",
    # Session models
    "ImportSession",
    "ImportStep",
    # Reporting models
    "ErrorRecord",
    "ErrorType",
    "FILE_LEVEL_ROW",
    "ImportResult",
    "RunResult",
]
