"""
Per-cell type inference.

normalize_cell is total: whatever string comes in, a Cell comes out. Rules are
evaluated in a fixed precedence order because several inputs are ambiguous
(e.g. "2024-01-01 (est.)" must stay text, "1,234" must become a number).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union

_NUMBER_RE = re.compile(r"^-?[\d,]+\.?\d*$", re.ASCII)
_PERCENT_RE = re.compile(r"^(-?[\d,]+\.?\d*)\s*%$", re.ASCII)
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)

TRUE_TOKENS = frozenset({"true", "yes", "참"})
FALSE_TOKENS = frozenset({"false", "no", "거짓"})


class CellKind(str, Enum):
    EMPTY = "empty"
    NUMBER = "number"
    PERCENT = "percent"
    BOOLEAN = "boolean"
    DATE = "date"
    TEXT = "text"


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    value: Any = None

    @classmethod
    def number(cls, value: float) -> "Cell":
        return cls(CellKind.NUMBER, float(value))

    @classmethod
    def percent(cls, fraction: float) -> "Cell":
        return cls(CellKind.PERCENT, float(fraction))

    @classmethod
    def boolean(cls, value: bool) -> "Cell":
        return cls(CellKind.BOOLEAN, bool(value))

    @classmethod
    def date(cls, value: date) -> "Cell":
        if isinstance(value, datetime):
            value = value.date()
        return cls(CellKind.DATE, value)

    @classmethod
    def text(cls, value: str) -> "Cell":
        return cls(CellKind.TEXT, value)

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    def to_excel(self) -> Any:
        """Value handed to the xlsx writer (None leaves the cell unwritten)."""
        if self.kind is CellKind.EMPTY:
            return None
        return self.value

    def display(self) -> str:
        if self.kind is CellKind.EMPTY:
            return ""
        if self.kind is CellKind.DATE:
            return self.value.isoformat()
        if self.kind is CellKind.BOOLEAN:
            return "TRUE" if self.value else "FALSE"
        if self.kind in (CellKind.NUMBER, CellKind.PERCENT):
            number = self.value * 100 if self.kind is CellKind.PERCENT else self.value
            text = str(int(number)) if float(number).is_integer() else repr(number)
            return text + "%" if self.kind is CellKind.PERCENT else text
        return str(self.value)


EMPTY = Cell(CellKind.EMPTY)


def _parse_number(token: str) -> Optional[float]:
    cleaned = token.replace(",", "")
    try:
        value = float(cleaned)
    except ValueError:
        # separators only, e.g. ",,"
        return None
    if not math.isfinite(value):
        return None
    return value


def _parse_date(token: str) -> Optional[date]:
    try:
        return datetime.strptime(token, "%Y-%m-%d").date()
    except ValueError:
        return None


def normalize_cell(value: Union[str, Cell, None]) -> Cell:
    """
    Infer the type of one raw cell.

    Precedence:
    1. blank -> EMPTY
    2. contains both "(" and ")" -> text, unconditionally
    3. plain number with optional thousands separators -> number
    4. number followed by "%" -> percent (value / 100)
    5. strict YYYY-MM-DD that is a real calendar date -> date
    6. true/yes/참, false/no/거짓 (case-insensitive) -> boolean
    7. anything else -> trimmed text

    A Cell is returned unchanged, so normalizing twice is a no-op.
    """
    if isinstance(value, Cell):
        return value
    if value is None:
        return EMPTY

    trimmed = str(value).strip()
    if not trimmed:
        return EMPTY

    # Labels with units in parentheses, e.g. "Revenue (USD)", are never coerced.
    if "(" in trimmed and ")" in trimmed:
        return Cell.text(trimmed)

    if _NUMBER_RE.match(trimmed):
        number = _parse_number(trimmed)
        if number is not None:
            return Cell.number(number)

    match = _PERCENT_RE.match(trimmed)
    if match:
        number = _parse_number(match.group(1))
        if number is not None:
            return Cell.percent(number / 100)

    if _DATE_RE.match(trimmed):
        parsed = _parse_date(trimmed)
        if parsed is not None:
            return Cell.date(parsed)

    lowered = trimmed.lower()
    if lowered in TRUE_TOKENS:
        return Cell.boolean(True)
    if lowered in FALSE_TOKENS:
        return Cell.boolean(False)

    return Cell.text(trimmed)
