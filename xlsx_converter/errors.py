"""Error taxonomy for the conversion pipeline."""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for every expected conversion failure."""


class EmptyResultError(ConversionError):
    """Recovery produced no rows at all."""


class StandardParseError(ConversionError):
    """The structured reader failed or returned nothing usable."""


class InvalidHeaderError(StandardParseError):
    """The structured reader succeeded but the header row is entirely blank."""


class MalformedRowError(ConversionError):
    """A line could not be split by any row strategy."""


class SerializationFailure(ConversionError):
    """The xlsx writer failed."""


class UnsupportedExtensionError(ConversionError):
    pass


class OversizeInputError(ConversionError):
    pass
