"""Exceptions raised while decoding Tecplot datasets.

Every decode failure is a :class:`ParseError`; the decoders never return a
partial dataset. Low-level failures (short reads, ``OSError``, NumPy
conversion errors) are chained onto the most specific class below.
"""

from __future__ import annotations


class TecioError(Exception):
    """Base class for all interTecplot errors."""


class ParseError(TecioError):
    """A file could not be decoded.

    Attributes
    ----------
    offset
        Byte offset (binary) or character offset (text) where decoding
        stopped, when known.
    """

    def __init__(self, message: str, offset: int | None = None):
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)
        self.offset = offset


# structure


class StructureError(ParseError):
    """The record layout does not match the format."""


class WrongMagicError(StructureError):
    pass


class ByteOrderError(StructureError):
    """The integer sentinel after the version does not read as 1."""


class WrongHeaderTagError(StructureError):
    pass


class WrongDataTagError(StructureError):
    pass


class EndOfHeaderError(StructureError):
    """The header/data boundary marker is missing."""


class UnknownBlockError(StructureError):
    def __init__(self, tag: float, offset: int | None = None):
        super().__init__(f"unknown header block tag {tag!r}", offset)
        self.tag = tag


class UnexpectedEOFError(StructureError):
    """Input ended before a record or token run was complete."""


class GrammarError(StructureError):
    """ASCII keyword grammar violation."""


# version


class HeaderVersionMissingError(ParseError):
    pass


class VersionMismatchError(ParseError):
    def __init__(self, minimum: int, current: int, offset: int | None = None):
        super().__init__(
            f"version mismatch (minimum: {minimum}, current: {current})", offset
        )
        self.minimum = minimum
        self.current = current


# encoding


class EncodingError(ParseError):
    pass


# unsupported


class NotSupportedFeatureError(ParseError):
    """A recognized construct that this library does not decode."""

    def __init__(self, feature: str, offset: int | None = None):
        super().__init__(f"unsupported feature: {feature}", offset)
        self.feature = feature


# values


class InvalidValueError(ParseError):
    pass


class VarLocationRangeError(InvalidValueError):
    """A VARLOCATION index or range falls outside the variable list."""


class NumberFormatError(InvalidValueError):
    def __init__(self, token: str, kind: str, offset: int | None = None):
        super().__init__(f"cannot parse {token!r} as {kind}", offset)
        self.token = token
        self.kind = kind


# outside the decoders


class TecIOError(TecioError):
    """Reading the underlying storage failed."""


class WrongFileExtensionError(TecioError):
    def __init__(self, suffix: str):
        super().__init__(
            f"wrong file extension {suffix!r}, expected one of: 'szplt', 'plt', 'dat'"
        )
        self.suffix = suffix


class UnsupportedConversionError(TecioError, TypeError):
    """A numeric conversion was requested from a variant that has none."""

    def __init__(self, source: str, target: str):
        super().__init__(f"cannot convert {source} data to {target}")
        self.source = source
        self.target = target


__all__ = [
    "ByteOrderError",
    "EncodingError",
    "EndOfHeaderError",
    "GrammarError",
    "HeaderVersionMissingError",
    "InvalidValueError",
    "NotSupportedFeatureError",
    "NumberFormatError",
    "ParseError",
    "StructureError",
    "TecIOError",
    "TecioError",
    "UnexpectedEOFError",
    "UnknownBlockError",
    "UnsupportedConversionError",
    "VarLocationRangeError",
    "VersionMismatchError",
    "WrongDataTagError",
    "WrongFileExtensionError",
    "WrongHeaderTagError",
    "WrongMagicError",
]
