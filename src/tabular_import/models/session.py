from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .schema import ColumnMapping
from .table import RawTable

"""ImportSession value and ImportStep enum.

The session is an immutable value; every workflow transition returns a new
session built with dataclasses.replace(). State transitions:

    UPLOAD -> MAP -> PREVIEW -> (commit) -> UPLOAD
              MAP -> UPLOAD            (Back, full reset)
                     PREVIEW -> MAP    (Back, mapping kept)
"""

__all__ = [
    "ImportSession",
    "ImportStep",
]


class ImportStep(Enum):
    UPLOAD = "upload"
    MAP = "map"
    PREVIEW = "preview"


@dataclass(frozen=True)
class ImportSession:
    step: ImportStep = ImportStep.UPLOAD
    table: RawTable = RawTable()
    mapping: tuple[ColumnMapping, ...] = ()
    committing: bool = False
    file_name: str | None = None
    token: int = 0  # read request tag; stale reads are discarded
