"""Protocol definitions (interfaces) for dependency injection."""
from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Iterator, Optional, Protocol, Sequence

from .models import FrameBuffer


class PaletteExtractor(Protocol):
    """Interface for colour quantization.

    Implementations:
    - MedianCutExtractor: Pillow median cut, exact colours for small images
    """

    @abstractmethod
    def extract(self, pixels: bytes, width: int, height: int, k: int) -> list[str]:
        """Return up to ``k`` hex colours, dominant first.

        ``pixels`` is RGBA row-major. Must be deterministic for identical
        input and free of side effects.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Extractor name for logging."""
        ...


class ImageCodec(Protocol):
    """Interface for raster decode/encode."""

    @abstractmethod
    def decode(self, data: bytes) -> FrameBuffer:
        """Decode a still image into RGBA pixels."""
        ...

    @abstractmethod
    def decode_path(self, path: Path) -> FrameBuffer:
        """Read and decode a still image from disk."""
        ...

    @abstractmethod
    def encode(self, frame: FrameBuffer) -> bytes:
        """Encode pixels as PNG."""
        ...

    @abstractmethod
    def iter_frames(self, path: Path, limit: Optional[int] = None) -> Iterator[FrameBuffer]:
        """Yield decoded frames of an animated image in native order."""
        ...


class ProgressReporter(Protocol):
    """Interface for progress reporting."""

    @abstractmethod
    def start_phase(self, name: str, total: int) -> None:
        """Start a new processing phase."""
        ...

    @abstractmethod
    def advance_phase(self, amount: int = 1) -> None:
        """Advance the current phase by an amount."""
        ...

    @abstractmethod
    def end_phase(self) -> None:
        """Complete current phase."""
        ...

    @abstractmethod
    def info(self, message: str) -> None:
        """Log an info message."""
        ...

    @abstractmethod
    def success(self, message: str) -> None:
        """Log a success message."""
        ...

    @abstractmethod
    def warning(self, message: str) -> None:
        """Log a warning message."""
        ...

    @abstractmethod
    def error(self, message: str) -> None:
        """Log an error message."""
        ...

    @abstractmethod
    def debug(self, message: str) -> None:
        """Log a debug message."""
        ...

    @abstractmethod
    def print_palette(self, image_name: str, colors: Sequence[str]) -> None:
        """Show an extracted palette."""
        ...
