"""
Text-based recovery.

Used when the structured reader is unavailable or cannot be trusted:
decode the bytes, infer the delimiter, split every non-blank line and type the
cells. The result is always a single rectangular sheet.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, List, Optional, Sequence

from .cells import Cell, normalize_cell
from .dialect import infer_delimiter, parse_row
from .encoding import decode_bytes
from .errors import EmptyResultError, MalformedRowError
from .rules import DEFAULT_SETTINGS, RECOVERY_SHEET_NAME, ConversionSettings
from .workbook import Sheet, Workbook, header_cell, pad_rows

logger = logging.getLogger("xlsx_converter")

RowStrategy = Callable[[str, str], Optional[List[str]]]

_WHITESPACE_RE = re.compile(r"\s+")


def _quote_aware(line: str, delimiter: str) -> Optional[List[str]]:
    return parse_row(line, delimiter)


def _split_on_delimiter(line: str, delimiter: str) -> Optional[List[str]]:
    if not delimiter:
        return None
    return [cell.strip() for cell in line.split(delimiter)]


def _split_on(separator: str) -> RowStrategy:
    def split(line: str, delimiter: str) -> Optional[List[str]]:
        return [cell.strip() for cell in line.split(separator)]

    split.__name__ = f"split_on_{separator!r}"
    return split


def _split_whitespace(line: str, delimiter: str) -> Optional[List[str]]:
    cells = [cell for cell in _WHITESPACE_RE.split(line.strip()) if cell]
    return cells or None


def _whole_line(line: str, delimiter: str) -> Optional[List[str]]:
    return [line.strip()]


# Ordered; the first strategy that returns a row wins.
ROW_STRATEGIES: Sequence[RowStrategy] = (
    _quote_aware,
    _split_on_delimiter,
    _split_on(","),
    _split_on("\t"),
    _split_whitespace,
    _whole_line,
)


def split_line(
    line: str, delimiter: str, strategies: Sequence[RowStrategy] = ROW_STRATEGIES
) -> List[str]:
    for position, strategy in enumerate(strategies):
        cells = strategy(line, delimiter)
        if cells is not None:
            if position:
                logger.warning(
                    "Line parsed with fallback strategy %s: %.100s",
                    getattr(strategy, "__name__", strategy),
                    line,
                )
            return cells
    raise MalformedRowError(f"No strategy could split line: {line[:100]}")


def recover(raw: bytes, settings: ConversionSettings = DEFAULT_SETTINGS) -> Workbook:
    """
    Rebuild a single-sheet workbook from raw bytes.

    The header line is kept as text verbatim; every later line is typed and
    dropped when all of its cells are empty. Rows are padded to the widest row.
    """
    decoded = decode_bytes(raw, settings.charset_confidence)
    text = decoded.text
    delimiter = infer_delimiter(text, settings.delimiter_sample_lines)
    lines = [line for line in text.split("\n") if line.strip()]
    logger.info(
        "Text recovery: encoding=%s (%s), delimiter=%r, lines=%d",
        decoded.encoding,
        decoded.method,
        delimiter,
        len(lines),
    )

    rows: List[List[Cell]] = []
    width = 0
    for index, line in enumerate(lines):
        try:
            raw_cells = split_line(line, delimiter)
        except MalformedRowError:
            logger.warning("Skipping unparseable line %d", index + 1)
            continue

        if not rows:
            row = [header_cell(value, col) for col, value in enumerate(raw_cells)]
        else:
            row = [normalize_cell(value) for value in raw_cells]
            if all(cell.is_empty for cell in row):
                continue

        width = max(width, len(row))
        rows.append(row)

    if not rows:
        raise EmptyResultError("No data could be parsed. Please check the file format.")

    pad_rows(rows, width)
    logger.info("Text recovery finished: %d rows, %d columns", len(rows), width)
    return Workbook(sheets=[Sheet(name=RECOVERY_SHEET_NAME, rows=rows)])
