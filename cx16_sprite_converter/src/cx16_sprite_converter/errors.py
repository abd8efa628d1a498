"""Exceptions and warning categories shared by the converter modules."""

from __future__ import annotations


class ConversionError(Exception):
    """Custom exception for conversion errors."""


class ByteRangeError(ConversionError):
    """Raised when a computed value cannot be stored in a single byte."""

    def __init__(self, value: int, message: str | None = None):
        super().__init__(message or f"Value {value} out of one byte range.")
        self.value = value


class SpriteConversionWarning(UserWarning):
    """Non-fatal conversion problem; processing continues."""


def to_byte(value: int) -> int:
    if value < 0 or value > 255:
        raise ByteRangeError(value)
    return value
