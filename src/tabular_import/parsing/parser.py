from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

from ..models.table import (
    DiagnosticKind,
    FailureReason,
    ParseDiagnostic,
    ParseOutcome,
    RawTable,
)

"""Delimited text parser.

- Input is split on "\\n"; lines that are empty or whitespace-only are dropped.
- First surviving line is the header row, every later line a data row.
- Row tokenizer keeps a single in_quotes flag: '"' toggles it and ',' ends a
  cell only outside quotes. Cells are stripped after accumulation.
- Multi-line quoted fields are not supported (lines are split first).
- By default '""' inside quotes is close-then-open, not a literal quote.
  doubled_quote_escape=True switches to the RFC 4180 reading.

parse() never raises on malformed content. parse_outcome() wraps it with
diagnostics and an explicit failure reason for empty / header-only input.
"""

__all__ = [
    "DEFAULT_ALLOWED_EXTENSIONS",
    "ParseError",
    "UnsupportedFileKindError",
    "check_file_kind",
    "decode_bytes",
    "parse",
    "parse_outcome",
    "read_text",
    "tokenize_row",
]

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_EXTENSIONS: tuple[str, ...] = (".csv",)

# Tried in order; latin-1 never fails so it is the last resort
_ENCODINGS = ("utf-8-sig", "utf-8", "latin-1")


class UnsupportedFileKindError(Exception):
    """Raised before any read when the file extension is not accepted."""

    def __init__(self, file_name: str, allowed: Iterable[str]) -> None:
        self.file_name = file_name
        self.allowed = tuple(allowed)
        super().__init__(
            f"unsupported file type: {file_name} (expected {', '.join(self.allowed)})"
        )


class ParseError(Exception):
    """Raised when content yields no header or no data rows."""

    def __init__(self, reason: FailureReason, file_name: str | None = None) -> None:
        self.reason = reason
        self.file_name = file_name
        where = f"{file_name}: " if file_name else ""
        if reason is FailureReason.EMPTY:
            text = "file is empty"
        else:
            text = "file has a header row but no data rows"
        super().__init__(f"{where}{text}")


def _scan(line: str, doubled_quote_escape: bool) -> tuple[list[str], bool]:
    """Tokenize one line. Returns (cells, still_in_quotes)."""
    cells: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        char = line[i]
        if char == '"':
            if doubled_quote_escape and in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    cells.append("".join(current).strip())
    return cells, in_quotes


def tokenize_row(line: str, *, doubled_quote_escape: bool = False) -> list[str]:
    """Split one line into trimmed cells honoring double-quoted fields."""
    cells, _ = _scan(line, doubled_quote_escape)
    return cells


def _surviving_lines(text: str) -> list[tuple[int, str]]:
    return [
        (lineno, line)
        for lineno, line in enumerate(text.split("\n"), start=1)
        if line.strip()
    ]


def parse(text: str, *, doubled_quote_escape: bool = False) -> RawTable:
    """Parse delimited text into a RawTable (best effort, never raises)."""
    lines = _surviving_lines(text)
    if not lines:
        return RawTable(headers=(), rows=())
    headers = tuple(tokenize_row(lines[0][1], doubled_quote_escape=doubled_quote_escape))
    rows = tuple(
        tuple(tokenize_row(line, doubled_quote_escape=doubled_quote_escape))
        for _, line in lines[1:]
    )
    return RawTable(headers=headers, rows=rows)


def parse_outcome(text: str, *, doubled_quote_escape: bool = False) -> ParseOutcome:
    """Parse and report.

    Failure reasons:
        EMPTY: no non-blank line
        NO_DATA_ROWS: header present but nothing below it

    Diagnostics (do not change the table):
        UNBALANCED_QUOTES: a line ends inside a quoted field
        RAGGED_ROW: a data row's cell count differs from the header's
    """
    lines = _surviving_lines(text)
    if not lines:
        return ParseOutcome(table=RawTable(), failure=FailureReason.EMPTY)

    diagnostics: list[ParseDiagnostic] = []
    parsed: list[list[str]] = []
    for lineno, line in lines:
        cells, open_quote = _scan(line, doubled_quote_escape)
        if open_quote:
            diagnostics.append(
                ParseDiagnostic(
                    line=lineno,
                    kind=DiagnosticKind.UNBALANCED_QUOTES,
                    message=f"line {lineno}: unbalanced quote, cell boundaries are best effort",
                )
            )
        parsed.append(cells)

    headers = tuple(parsed[0])
    rows = tuple(tuple(cells) for cells in parsed[1:])
    for (lineno, _), row in zip(lines[1:], rows, strict=True):
        if len(row) != len(headers):
            diagnostics.append(
                ParseDiagnostic(
                    line=lineno,
                    kind=DiagnosticKind.RAGGED_ROW,
                    message=f"line {lineno}: {len(row)} cells, header has {len(headers)}",
                )
            )

    table = RawTable(headers=headers, rows=rows)
    failure = FailureReason.NO_DATA_ROWS if not rows else None
    logger.debug(
        "parsed headers=%d rows=%d warnings=%d failure=%s",
        len(headers),
        len(rows),
        len(diagnostics),
        failure.value if failure else None,
    )
    return ParseOutcome(table=table, diagnostics=tuple(diagnostics), failure=failure)


def check_file_kind(
    file_name: str, allowed: Iterable[str] = DEFAULT_ALLOWED_EXTENSIONS
) -> None:
    """Advisory extension check performed before reading.

    Raises:
        UnsupportedFileKindError: suffix not in ``allowed`` (case-insensitive)
    """
    allowed = tuple(ext.lower() for ext in allowed)
    if Path(file_name).suffix.lower() not in allowed:
        raise UnsupportedFileKindError(Path(file_name).name, allowed)


def decode_bytes(raw: bytes) -> str:
    """Decode file content, dropping a UTF-8 BOM if present."""
    for encoding in _ENCODINGS:
        try:
            text = raw.decode(encoding)
        except UnicodeDecodeError:
            continue
        return text.lstrip("\ufeff")
    raise ValueError("could not decode file content")  # pragma: no cover (latin-1 accepts all)


async def read_text(path: Path) -> str:
    """Read a whole file off the event loop and decode it."""
    raw = await asyncio.to_thread(path.read_bytes)
    return decode_bytes(raw)
