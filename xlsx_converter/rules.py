"""
Deterministic conversion rules.

Fixed lists and ceilings live here as immutable values; the converter receives
them through ConversionSettings and never mutates them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Tuple

SUPPORTED_EXTENSIONS: Tuple[str, ...] = (".xls", ".xlsx", ".csv", ".tsv", ".txt")
CANONICAL_EXTENSION = ".xlsx"
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB, wide headers included

# Encoding resolution
CHARSET_CONFIDENCE = 0.7
KOREAN_ENCODING = "euc_kr"
ENCODING_CANDIDATES: Tuple[str, ...] = ("euc_kr", "cp949", "utf-8", "latin-1")
FALLBACK_ENCODING = "latin-1"

# Delimiter inference
DELIMITER_CANDIDATES: Tuple[str, ...] = ("\t", ",", ";", "|")
DEFAULT_DELIMITER = ","
DELIMITER_SAMPLE_LINES = 10
WIDE_HEADER_COLUMNS = 10

# Naming
SHEET_NAME_MAX_LENGTH = 31
RECOVERY_SHEET_NAME = "Sheet1"
PLACEHOLDER_NAME = "converted_file"
HEADER_PLACEHOLDER = "Column{}"
OUTPUT_SUFFIX = "_converted"

# Size-ratio warnings
RATIO_TOO_LARGE = 3.0
RATIO_TOO_SMALL = 0.1
RATIO_TOO_SMALL_MIN_BYTES = 1000


@dataclass(frozen=True)
class ConversionSettings:
    supported_extensions: Tuple[str, ...] = SUPPORTED_EXTENSIONS
    canonical_extension: str = CANONICAL_EXTENSION
    max_file_size: int = MAX_FILE_SIZE
    charset_confidence: float = CHARSET_CONFIDENCE
    delimiter_sample_lines: int = DELIMITER_SAMPLE_LINES
    sheet_name_max_length: int = SHEET_NAME_MAX_LENGTH
    ratio_too_large: float = RATIO_TOO_LARGE
    ratio_too_small: float = RATIO_TOO_SMALL
    ratio_too_small_min_bytes: int = RATIO_TOO_SMALL_MIN_BYTES

    @classmethod
    def from_env(cls) -> "ConversionSettings":
        return cls(
            max_file_size=int(os.getenv("MAX_UPLOAD_BYTES", str(MAX_FILE_SIZE))),
        )


DEFAULT_SETTINGS = ConversionSettings()
