"""
Delimiter inference and quote-aware row parsing for delimited text.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from .rules import (
    DEFAULT_DELIMITER,
    DELIMITER_CANDIDATES,
    DELIMITER_SAMPLE_LINES,
    WIDE_HEADER_COLUMNS,
)

logger = logging.getLogger("xlsx_converter")

QUOTE_CHARS = ('"', "'")


def parse_row(line: str, delimiter: str) -> List[str]:
    """
    Split one line into trimmed cells.

    Two states: unquoted, and quoted by the character that opened the span.
    Inside a span a doubled quote is a literal quote and a single one closes
    the span. An unterminated span is flushed as-is; this never raises.
    """
    cells: List[str] = []
    current: List[str] = []
    quote = ""
    i = 0
    n = len(line)

    while i < n:
        char = line[i]
        if not quote:
            if char in QUOTE_CHARS:
                quote = char
            elif char == delimiter:
                cells.append("".join(current).strip())
                current = []
            else:
                current.append(char)
        elif char == quote:
            if i + 1 < n and line[i + 1] == quote:
                current.append(char)
                i += 1
            else:
                quote = ""
        else:
            current.append(char)
        i += 1

    cells.append("".join(current).strip())
    return cells


def sample_lines(text: str, limit: int = DELIMITER_SAMPLE_LINES) -> List[str]:
    sample: List[str] = []
    for line in text.split("\n"):
        if line.strip():
            sample.append(line)
            if len(sample) >= limit:
                break
    return sample


def score_delimiter(lines: Sequence[str], delimiter: str) -> float:
    counts = [c for c in (len(parse_row(line, delimiter)) for line in lines) if c > 1]
    if not counts:
        return 0.0

    avg = sum(counts) / len(counts)
    highest, lowest = max(counts), min(counts)
    # Wide headers are often ragged; relax the consistency requirement for them.
    if highest > WIDE_HEADER_COLUMNS:
        consistency = 0.8
    else:
        consistency = 1 - (highest - lowest) / max(avg, 1)
    return avg * max(consistency, 0.5) * len(counts)


def infer_delimiter(
    text: str,
    sample_size: int = DELIMITER_SAMPLE_LINES,
    candidates: Sequence[str] = DELIMITER_CANDIDATES,
) -> str:
    """
    Pick the field separator from the first non-blank lines of text.

    Earlier candidates win ties; if nothing splits anything, comma.
    """
    lines = sample_lines(text, sample_size)
    best, best_score = DEFAULT_DELIMITER, 0.0

    for delimiter in candidates:
        score = score_delimiter(lines, delimiter)
        logger.debug("Delimiter %r scored %.1f", delimiter, score)
        if score > best_score:
            best, best_score = delimiter, score

    logger.debug("Selected delimiter %r", best)
    return best
