"""Exceptions raised by the dithering core."""

from __future__ import annotations


class DitherError(ValueError):
    """Base class for precondition failures in the dithering core."""


class EmptyPaletteError(DitherError):
    """A palette with no levels was supplied."""

    def __init__(self, message: str = "Palette must contain at least one level") -> None:
        super().__init__(message)


class InvalidDimensionsError(DitherError):
    """Buffer dimensions are negative or disagree with the buffer length."""


class OutputError(OSError):
    """An output image could not be written."""
