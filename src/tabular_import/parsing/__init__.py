from .parser import (
    ParseError,
    UnsupportedFileKindError,
    check_file_kind,
    parse,
    parse_outcome,
    tokenize_row,
)

__all__ = [
    "ParseError",
    "UnsupportedFileKindError",
    "check_file_kind",
    "parse",
    "parse_outcome",
    "tokenize_row",
]
