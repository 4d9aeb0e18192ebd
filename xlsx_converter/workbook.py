"""
Workbook model and workbook-level normalization.

Both conversion paths end here. The structured reader leaves text cells as
plain strings; recovery already produces typed Cells. normalize_workbook types
whatever is still a string, keeps headers as text, pads every grid to a
rectangle and gives every sheet a safe, unique name.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Set

from .cells import EMPTY, Cell, CellKind, normalize_cell
from .rules import HEADER_PLACEHOLDER, PLACEHOLDER_NAME, SHEET_NAME_MAX_LENGTH

# Word characters (ASCII), Hangul syllables, "." and "-"; everything else -> "_".
_UNSAFE_NAME_RE = re.compile(r"[^\w가-힣.\-]", re.ASCII)
_REPEATED_UNDERSCORE_RE = re.compile(r"_{2,}")


@dataclass
class Sheet:
    name: str
    rows: List[List[Any]] = field(default_factory=list)

    @property
    def width(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    @property
    def header(self) -> List[Any]:
        return self.rows[0] if self.rows else []


@dataclass
class Workbook:
    sheets: List[Sheet] = field(default_factory=list)

    @property
    def sheet_names(self) -> List[str]:
        return [sheet.name for sheet in self.sheets]


def sanitize_name(name: str, max_length: Optional[int] = SHEET_NAME_MAX_LENGTH) -> str:
    sanitized = _UNSAFE_NAME_RE.sub("_", name)
    sanitized = _REPEATED_UNDERSCORE_RE.sub("_", sanitized).strip()
    if max_length is not None:
        sanitized = sanitized[:max_length]
    return sanitized or PLACEHOLDER_NAME


def _unique_name(name: str, taken: Set[str], max_length: int) -> str:
    candidate = name
    suffix = 2
    while candidate.lower() in taken:
        tail = f"_{suffix}"
        candidate = name[: max_length - len(tail)] + tail
        suffix += 1
    taken.add(candidate.lower())
    return candidate


def header_placeholder(index: int) -> Cell:
    """Label for a blank header cell at 0-based column ``index``."""
    return Cell.text(HEADER_PLACEHOLDER.format(index + 1))


def header_cell(value: Any, index: int) -> Cell:
    """Header cells are always text, verbatim; blanks get a positional label."""
    if isinstance(value, Cell):
        if value.kind is CellKind.TEXT and value.value.strip():
            return value
        text = value.display()
    else:
        text = "" if value is None else str(value).strip()
    if not text:
        return header_placeholder(index)
    return Cell.text(text)


def is_blank(value: Any) -> bool:
    if isinstance(value, Cell):
        return value.is_empty or (value.kind is CellKind.TEXT and not value.value.strip())
    return value is None or not str(value).strip()


def pad_rows(rows: List[List[Cell]], width: int) -> None:
    """Right-pad in place; the header row gets placeholders, data rows EMPTY."""
    for index, row in enumerate(rows):
        missing = width - len(row)
        if missing <= 0:
            continue
        if index == 0:
            row.extend(header_placeholder(col) for col in range(len(row), width))
        else:
            row.extend([EMPTY] * missing)


def normalize_rows(rows: Sequence[Sequence[Any]]) -> List[List[Cell]]:
    normalized: List[List[Cell]] = []
    for index, row in enumerate(rows):
        if index == 0:
            normalized.append([header_cell(value, col) for col, value in enumerate(row)])
        else:
            normalized.append([normalize_cell(value) for value in row])
    width = max((len(row) for row in normalized), default=0)
    pad_rows(normalized, width)
    return normalized


def normalize_workbook(
    workbook: Workbook, max_name_length: int = SHEET_NAME_MAX_LENGTH
) -> Workbook:
    """
    Return a new workbook with every cell typed and every sheet name safe.

    Idempotent: running it on its own output changes nothing.
    """
    taken: Set[str] = set()
    sheets: List[Sheet] = []
    for sheet in workbook.sheets:
        name = _unique_name(sanitize_name(sheet.name, max_name_length), taken, max_name_length)
        sheets.append(Sheet(name=name, rows=normalize_rows(sheet.rows)))
    return Workbook(sheets=sheets)
