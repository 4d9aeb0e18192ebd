"""
Top-level conversion.

Responsibilities:
- pass canonical (.xlsx) input through untouched
- structured parse first, text recovery when it fails or cannot be trusted
- workbook normalization + xlsx serialization
- input validation, output naming and size-ratio warnings
- a structured ConversionResult for every expected failure
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional

from .errors import (
    ConversionError,
    OversizeInputError,
    StandardParseError,
    UnsupportedExtensionError,
)
from .models import ConversionResult
from .recovery import recover
from .rules import DEFAULT_SETTINGS, OUTPUT_SUFFIX, ConversionSettings
from .serializer import write_xlsx
from .standard import try_standard_parse
from .workbook import Workbook, normalize_workbook, sanitize_name

logger = logging.getLogger("xlsx_converter")


def file_extension(filename: str) -> str:
    return os.path.splitext(filename)[1].lower()


class XlsxConverter:
    def __init__(self, settings: ConversionSettings = DEFAULT_SETTINGS):
        self.settings = settings

    def validate(self, raw: bytes, filename: str) -> None:
        if file_extension(filename) not in self.settings.supported_extensions:
            raise UnsupportedExtensionError(
                "Unsupported file type. Supported: "
                + ", ".join(self.settings.supported_extensions)
            )
        if len(raw) > self.settings.max_file_size:
            raise OversizeInputError(
                f"File is too large. Maximum size: "
                f"{self.settings.max_file_size / 1024 / 1024:g}MB"
            )

    def output_filename(self, filename: str) -> str:
        base = os.path.splitext(os.path.basename(filename))[0]
        safe = sanitize_name(base, self.settings.sheet_name_max_length)
        return f"{safe}{OUTPUT_SUFFIX}{self.settings.canonical_extension}"

    def build_workbook(self, raw: bytes, filename: str, force_text_recovery: bool = False) -> Workbook:
        if force_text_recovery:
            logger.info("Text recovery forced for %s", filename)
            return recover(raw, self.settings)
        try:
            return try_standard_parse(raw, filename)
        except StandardParseError as exc:
            logger.info("Standard parser failed, trying text recovery: %s", exc)
            return recover(raw, self.settings)

    def convert(self, raw: bytes, filename: str, force_text_recovery: bool = False) -> bytes:
        """Convert raw bytes to xlsx bytes; canonical input comes back as-is."""
        if file_extension(filename) == self.settings.canonical_extension:
            logger.info("%s is already %s; returning input unchanged", filename, file_extension(filename))
            return raw

        workbook = self.build_workbook(raw, filename, force_text_recovery)
        return write_xlsx(normalize_workbook(workbook, self.settings.sheet_name_max_length))

    def size_warnings(self, original_size: int, converted_size: int) -> List[str]:
        warnings: List[str] = []
        if original_size <= 0:
            return warnings
        ratio = converted_size / original_size
        if ratio > self.settings.ratio_too_large:
            warnings.append(
                "The converted file is much larger than the original. Please review the data."
            )
        if ratio < self.settings.ratio_too_small and original_size > self.settings.ratio_too_small_min_bytes:
            warnings.append(
                "The converted file is much smaller than the original. Some data may have been lost."
            )
        return warnings

    def process(self, raw: bytes, filename: str, force_text_recovery: bool = False) -> ConversionResult:
        """Validate, convert and describe the outcome. Never raises for expected failures."""
        try:
            self.validate(raw, filename)
            converted = self.convert(raw, filename, force_text_recovery)
        except ConversionError as exc:
            logger.warning("Conversion of %s failed: %s", filename, exc)
            return ConversionResult(
                success=False,
                filename=filename,
                original_size=len(raw),
                message=str(exc),
            )
        except Exception as exc:
            logger.exception("Unexpected error while converting %s", filename)
            return ConversionResult(
                success=False,
                filename=filename,
                original_size=len(raw),
                message=f"File conversion failed: {exc}",
            )

        warnings = self.size_warnings(len(raw), len(converted))
        return ConversionResult(
            success=True,
            filename=self.output_filename(filename),
            original_size=len(raw),
            converted_size=len(converted),
            warnings=warnings or None,
            content=converted,
        )


def process_file(
    raw: bytes,
    filename: str,
    force_text_recovery: bool = False,
    settings: Optional[ConversionSettings] = None,
) -> ConversionResult:
    return XlsxConverter(settings or DEFAULT_SETTINGS).process(raw, filename, force_text_recovery)
