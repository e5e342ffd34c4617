from __future__ import annotations

import math

from ..models.schema import ColumnKind

"""Cell coercion.

coerce() turns a raw cell into None, a float, or the unchanged string.

Numeric grammar under ColumnKind.AUTO is Python's float() on the stripped
cell: optional sign, digits with optional fraction and exponent ("1e3",
".5", "5."), '_' between digits ("1_000"), and case-insensitive "inf" /
"infinity". "nan" is not treated as a number and stays a string.

The heuristic cannot tell an identifier from a number: "02135" becomes
2135.0 under AUTO. Columns declared ColumnKind.TEXT skip numeric parsing.
"""

__all__ = [
    "coerce",
]

Cell = float | str | None


def _to_number(raw: str) -> float | None:
    stripped = raw.strip()
    if not stripped:
        return None
    try:
        value = float(stripped)
    except ValueError:
        return None
    if math.isnan(value):
        return None
    return value


def coerce(raw: str, kind: ColumnKind = ColumnKind.AUTO) -> Cell:
    if raw == "":
        return None
    if kind is ColumnKind.TEXT:
        return raw
    number = _to_number(raw)
    return raw if number is None else number
