"""Extraction unit - fault-isolated decode + quantize for one image.

Every failure inside a unit (missing input, undecodable bytes, quantizer
errors, a crashed worker process) is converted into a ``Failure`` outcome.
Nothing raised inside a unit reaches the caller.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..core.config import IsolationMode
from ..core.errors import DecodeError, ExtractionError, NoInputProvidedError
from ..core.models import (
    ErrorKind,
    Failure,
    Outcome,
    PaletteResult,
    Success,
    error_kind_for,
    failure,
)
from ..core.protocols import ImageCodec, PaletteExtractor
from ..engines.codec import PillowCodec
from ..engines.quantizer import MedianCutExtractor


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExtractionRequest:
    """One still image to extract a palette from.

    Exactly one of ``path`` and ``data`` should be set; ``path`` wins if both are.
    """
    image_name: str
    path: Optional[Path] = None
    data: Optional[bytes] = None
    palette_size: int = 5
    index: int = 0


def extract_colors(
    request: ExtractionRequest,
    codec: ImageCodec,
    extractor: PaletteExtractor,
) -> list[str]:
    """Decode the request's image and run the extractor. Raises on failure."""
    if request.palette_size < 1:
        raise ExtractionError(f"Palette size must be at least 1, got {request.palette_size}")

    if request.path is not None:
        frame = codec.decode_path(request.path)
    elif request.data is not None:
        frame = codec.decode(request.data)
    else:
        raise NoInputProvidedError()

    try:
        colors = extractor.extract(frame.pixels, frame.width, frame.height, request.palette_size)
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(f"{extractor.name} failed: {e}") from e

    if not colors:
        raise ExtractionError("Extractor returned no colors")
    return list(colors[:request.palette_size])


def _extract_worker(payload: dict) -> dict:
    """Worker function for extracting one palette in a child process.

    Takes and returns dicts for pickling across processes.
    """
    import sys

    # Suppress KeyboardInterrupt tracebacks in workers
    sys.tracebacklimit = 0

    request = ExtractionRequest(
        image_name=payload["image_name"],
        path=Path(payload["path"]) if payload.get("path") else None,
        data=payload.get("data"),
        palette_size=payload["palette_size"],
        index=payload.get("index", 0),
    )
    codec = payload.get("codec") or PillowCodec()
    extractor = payload.get("extractor") or MedianCutExtractor()

    try:
        return {"colors": extract_colors(request, codec, extractor)}
    except Exception as e:
        return {
            "error": error_kind_for(e).value,
            "reason": str(e) or type(e).__name__,
        }


class ProcessIsolation:
    """Runs every extraction in its own single-use child process.

    Children are never shared between units, so a child that dies takes down
    only the unit it was running. Concurrency is bounded by the caller
    (the dispatcher), not here.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._active: set[ProcessPoolExecutor] = set()

    def run(self, payload: dict) -> dict:
        executor = ProcessPoolExecutor(max_workers=1)
        with self._lock:
            self._active.add(executor)
        try:
            return executor.submit(_extract_worker, payload).result()
        except BrokenProcessPool as e:
            logger.warning(f"Extraction worker crashed on {payload['image_name']}: {e}")
            return {
                "error": ErrorKind.EXTRACTION_FAILURE.value,
                "reason": "worker crashed",
            }
        finally:
            with self._lock:
                self._active.discard(executor)
            executor.shutdown(wait=True)

    def close(self) -> None:
        """Stop children that are still running (e.g. after Ctrl+C)."""
        with self._lock:
            executors, self._active = list(self._active), set()
        for executor in executors:
            executor.shutdown(wait=False, cancel_futures=True)


class ExtractionUnit:
    """Runs one extraction inside an isolated failure domain.

    Holds only read-only collaborators; one instance may be shared by all
    dispatcher threads.
    """

    def __init__(
        self,
        extractor: Optional[PaletteExtractor] = None,
        codec: Optional[ImageCodec] = None,
        isolation: IsolationMode = IsolationMode.THREAD,
    ):
        """Initialize the unit.

        Args:
            extractor: Quantization capability (default: median cut).
            codec: Raster codec (default: Pillow).
            isolation: Run in the calling thread or in a child process.
        """
        self._extractor = extractor or MedianCutExtractor()
        self._codec = codec or PillowCodec()
        self._isolation = isolation
        self._processes = ProcessIsolation() if isolation == IsolationMode.PROCESS else None

    @property
    def isolation(self) -> IsolationMode:
        return self._isolation

    def run(self, request: ExtractionRequest) -> Outcome:
        """Extract a palette. Never raises."""
        try:
            if self._processes is not None:
                return self._from_dict(request, self._processes.run(self._to_payload(request)))
            colors = extract_colors(request, self._codec, self._extractor)
            return self._success(request, colors)
        except Exception as e:
            logger.debug(f"Extraction failed for {request.image_name}: {e}", exc_info=True)
            return failure(request.image_name, e, request.index)

    def _success(self, request: ExtractionRequest, colors: list[str]) -> Success:
        return Success(PaletteResult(
            image_name=request.image_name,
            colors=tuple(colors),
            index=request.index,
        ))

    def _to_payload(self, request: ExtractionRequest) -> dict:
        return {
            "image_name": request.image_name,
            "path": str(request.path) if request.path else None,
            "data": request.data,
            "palette_size": request.palette_size,
            "index": request.index,
            "codec": self._codec,
            "extractor": self._extractor,
        }

    def _from_dict(self, request: ExtractionRequest, result: dict) -> Outcome:
        if result.get("error"):
            return Failure(PaletteResult(
                image_name=request.image_name,
                error=ErrorKind(result["error"]),
                reason=result.get("reason"),
                index=request.index,
            ))
        return self._success(request, result["colors"])

    def close(self) -> None:
        if self._processes is not None:
            self._processes.close()

    def __enter__(self) -> "ExtractionUnit":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def extract_palette(
    image_path: Optional[Path] = None,
    image_buffer: Optional[bytes] = None,
    palette_size: int = 5,
    isolation: IsolationMode = IsolationMode.THREAD,
) -> list[str]:
    """Extract a palette from a single image.

    Convenience wrapper around ExtractionUnit for one-off use.

    Raises:
        NoInputProvidedError: Neither a path nor a buffer was given.
        ColorSuckerError: Extraction failed.
    """
    if image_path is None and image_buffer is None:
        raise NoInputProvidedError()

    request = ExtractionRequest(
        image_name=image_path.name if image_path else "<buffer>",
        path=image_path,
        data=image_buffer,
        palette_size=palette_size,
    )
    with ExtractionUnit(isolation=isolation) as unit:
        outcome = unit.run(request)

    if isinstance(outcome, Failure):
        raise _ERRORS_BY_KIND.get(outcome.kind, ExtractionError)(
            outcome.result.reason or outcome.kind.value
        )
    return list(outcome.result.colors)


_ERRORS_BY_KIND = {
    ErrorKind.DECODE_FAILURE: DecodeError,
    ErrorKind.INCONSISTENT_DIMENSIONS: ExtractionError,
    ErrorKind.EXTRACTION_FAILURE: ExtractionError,
}
