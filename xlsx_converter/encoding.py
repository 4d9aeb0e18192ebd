"""
Byte-encoding resolution for text inputs of unknown origin.

Strategy order (first success wins):
- UTF-8, accepted only when nothing had to be replaced.
- charset-normalizer's chardet-compatible guess when it is confident enough;
  Korean variants collapse onto a single EUC-KR codec.
- A fixed list of legacy candidates.
- Latin-1, which maps every byte and therefore always succeeds.
"""

from __future__ import annotations

import codecs
import logging
from dataclasses import dataclass

from charset_normalizer import detect as detect_charset

from .rules import (
    CHARSET_CONFIDENCE,
    ENCODING_CANDIDATES,
    FALLBACK_ENCODING,
    KOREAN_ENCODING,
)

logger = logging.getLogger("xlsx_converter")

REPLACEMENT_CHAR = "\ufffd"
UTF8_BOM = codecs.BOM_UTF8


@dataclass(frozen=True)
class DecodedText:
    text: str
    encoding: str
    method: str


def _clean(text: str) -> str:
    if text.startswith("\ufeff"):
        text = text[1:]
    # Newline normalization: CRLF/CR -> LF
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _decode_replacing(raw: bytes, encoding: str) -> str:
    if encoding.lower().replace("-", "_") in ("utf_8", "utf8") and raw.startswith(UTF8_BOM):
        encoding = "utf-8-sig"
    return raw.decode(encoding, errors="replace")


def _map_detected(name: str) -> str | None:
    lowered = name.lower().replace("_", "-")
    if "euc-kr" in lowered or "cp949" in lowered:
        return KOREAN_ENCODING
    try:
        codecs.lookup(name)
    except LookupError:
        return None
    return name


def decode_bytes(raw: bytes, confidence_threshold: float = CHARSET_CONFIDENCE) -> DecodedText:
    """Decode raw bytes to text. Never raises; the last stage is Latin-1."""
    text = _decode_replacing(raw, "utf-8")
    if REPLACEMENT_CHAR not in text:
        logger.debug("Decoded input as utf-8")
        return DecodedText(_clean(text), "utf-8", "utf-8")

    detected = detect_charset(raw) or {}
    name = detected.get("encoding")
    confidence = detected.get("confidence") or 0.0
    logger.debug("Charset detector guessed %s (confidence %.2f)", name, confidence)
    if name and confidence > confidence_threshold:
        codec = _map_detected(name)
        if codec is not None:
            return DecodedText(_clean(_decode_replacing(raw, codec)), codec, "detected")

    for candidate in ENCODING_CANDIDATES:
        text = _decode_replacing(raw, candidate)
        if text and REPLACEMENT_CHAR not in text:
            logger.debug("Decoded input with candidate encoding %s", candidate)
            return DecodedText(_clean(text), candidate, "candidate")

    logger.warning("No encoding decoded cleanly; falling back to %s", FALLBACK_ENCODING)
    return DecodedText(_clean(raw.decode(FALLBACK_ENCODING)), FALLBACK_ENCODING, "fallback")
