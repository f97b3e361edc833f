"""Domain models - immutable data classes."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from .errors import (
    DecodeError,
    InconsistentDimensionsError,
    NoInputProvidedError,
)


class ImageKind(Enum):
    """Whether an input needs frame sampling before extraction."""
    STILL = "still"
    ANIMATED = "animated"


class ErrorKind(Enum):
    """Why a single image failed."""
    NO_INPUT_PROVIDED = "no_input_provided"
    DECODE_FAILURE = "decode_failure"
    INCONSISTENT_DIMENSIONS = "inconsistent_dimensions"
    EXTRACTION_FAILURE = "extraction_failure"


def error_kind_for(exc: BaseException) -> ErrorKind:
    """Map an exception raised inside a task to its ErrorKind."""
    if isinstance(exc, NoInputProvidedError):
        return ErrorKind.NO_INPUT_PROVIDED
    if isinstance(exc, DecodeError):
        return ErrorKind.DECODE_FAILURE
    if isinstance(exc, InconsistentDimensionsError):
        return ErrorKind.INCONSISTENT_DIMENSIONS
    return ErrorKind.EXTRACTION_FAILURE


@dataclass(frozen=True, slots=True)
class ImageTask:
    """An image discovered in the input directory."""
    source_path: Path
    kind: ImageKind
    index: int = 0  # Discovery order

    @property
    def name(self) -> str:
        return self.source_path.name

    @property
    def stem(self) -> str:
        return self.source_path.stem

    @property
    def is_animated(self) -> bool:
        return self.kind == ImageKind.ANIMATED


@dataclass(frozen=True, slots=True)
class FrameBuffer:
    """Decoded RGBA pixels, row-major, 4 bytes per pixel."""
    width: int
    height: int
    pixels: bytes

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError(f"Invalid frame size {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise ValueError(
                f"Pixel buffer has {len(self.pixels)} bytes, expected {expected}"
            )

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height


@dataclass(frozen=True, slots=True)
class PaletteResult:
    """Palette (or failure) for one image.

    Exactly one of ``colors`` and ``error`` is set.
    """
    image_name: str
    colors: tuple[str, ...] = field(default_factory=tuple)
    error: Optional[ErrorKind] = None
    reason: Optional[str] = None
    index: int = 0

    def __post_init__(self) -> None:
        if self.error is not None and self.colors:
            raise ValueError("PaletteResult cannot carry both colors and an error")
        if self.error is None and not self.colors:
            raise ValueError("PaletteResult needs colors or an error")

    @property
    def is_success(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        """Output-JSON shape."""
        if self.is_success:
            return {"imageName": self.image_name, "colors": list(self.colors)}
        return {
            "imageName": self.image_name,
            "error": self.error.value,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class Success:
    result: PaletteResult


@dataclass(frozen=True, slots=True)
class Failure:
    result: PaletteResult

    @property
    def kind(self) -> ErrorKind:
        return self.result.error


Outcome = Union[Success, Failure]


def failure(image_name: str, exc: BaseException, index: int = 0) -> Failure:
    """Build a Failure outcome from a captured exception."""
    return Failure(PaletteResult(
        image_name=image_name,
        error=error_kind_for(exc),
        reason=str(exc) or type(exc).__name__,
        index=index,
    ))


class BatchReport:
    """Shared append target for results completing on worker threads.

    Appends are serialized; iteration order is completion order until
    ``sorted()`` is used.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: list[PaletteResult] = []

    def append(self, result: PaletteResult) -> None:
        with self._lock:
            self._results.append(result)

    def record(self, outcome: Outcome) -> None:
        self.append(outcome.result)

    @property
    def results(self) -> list[PaletteResult]:
        with self._lock:
            return list(self._results)

    @property
    def successes(self) -> list[PaletteResult]:
        return [r for r in self.results if r.is_success]

    @property
    def failures(self) -> list[PaletteResult]:
        return [r for r in self.results if not r.is_success]

    def sorted(self) -> list[PaletteResult]:
        """Results in discovery order."""
        return sorted(self.results, key=lambda r: (r.index, r.image_name))

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)


@dataclass(slots=True)
class BatchStats:
    """Mutable statistics for a batch run."""
    total_images: int = 0
    still_images: int = 0
    animated_images: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped_duplicates: int = 0
    peak_concurrency: int = 0
    elapsed_seconds: float = 0.0
    output_path: Optional[Path] = None
    failures_path: Optional[Path] = None

    def record(self, result: PaletteResult) -> None:
        if result.is_success:
            self.succeeded += 1
        else:
            self.failed += 1

    def summary(self) -> dict[str, int]:
        return {
            "total": self.total_images,
            "still": self.still_images,
            "animated": self.animated_images,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped_duplicates": self.skipped_duplicates,
        }
