"""Exception hierarchy for palette extraction."""
from __future__ import annotations

from typing import Optional


class ColorSuckerError(Exception):
    """Base exception for all colorsucker errors."""

    def __init__(self, message: str, suggestion: Optional[str] = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class InputDiscoveryError(ColorSuckerError):
    """Images directory could not be enumerated. Fatal for the whole batch."""

    def __init__(self, directory: str, reason: str) -> None:
        super().__init__(
            f"Cannot read images directory '{directory}': {reason}",
            "Check that the directory exists and is readable",
        )
        self.directory = directory


class DecodeError(ColorSuckerError):
    """Image or animation container could not be parsed."""

    pass


class EmptyAnimationError(DecodeError):
    """Animated image contained no frames."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No frames found in '{path}'")
        self.path = path


class InconsistentDimensionsError(ColorSuckerError):
    """Frames passed to the compositor do not share a height."""

    def __init__(self, expected: int, actual: int, frame_index: int) -> None:
        super().__init__(
            f"Frame {frame_index} has height {actual}, expected {expected}"
        )
        self.expected = expected
        self.actual = actual
        self.frame_index = frame_index


class NoInputProvidedError(ColorSuckerError):
    """Extraction request carried neither a path nor a buffer."""

    def __init__(self) -> None:
        super().__init__("Either a path or an image buffer must be provided")


class ExtractionError(ColorSuckerError):
    """Palette quantization failed."""

    pass


class TransientStorageError(ColorSuckerError):
    """Staging or cleanup of temporary frame files failed. Never fatal."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Transient storage error at '{path}': {reason}")
        self.path = path
