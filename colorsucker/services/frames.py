"""Animated image reduction: frame sampling, staging and compositing.

An animated image is reduced to a single synthetic still by sampling up to
``max_frames`` frames and laying them out left to right on one canvas.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

from PIL import Image

from ..core.errors import (
    DecodeError,
    EmptyAnimationError,
    InconsistentDimensionsError,
    TransientStorageError,
)
from ..core.models import FrameBuffer
from ..core.protocols import ImageCodec
from ..engines.codec import PillowCodec, frame_to_image, image_to_frame


logger = logging.getLogger(__name__)

FRAME_SUFFIX = "_frame_{index}.png"
COMBINED_SUFFIX = "_combined.png"


class FrameSampler:
    """Lazy, restartable sequence of frames from an animated image.

    Every ``iter()`` re-opens the container and starts again from the first
    frame. Iteration stops after ``max_frames`` frames (None = all).
    """

    def __init__(
        self,
        path: Path,
        max_frames: Optional[int] = None,
        codec: Optional[ImageCodec] = None,
    ):
        if max_frames is not None and max_frames < 1:
            raise ValueError("max_frames must be at least 1 (or None for all)")
        self._path = path
        self._max_frames = max_frames
        self._codec = codec or PillowCodec()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def max_frames(self) -> Optional[int]:
        return self._max_frames

    def __iter__(self) -> Iterator[FrameBuffer]:
        count = 0
        for frame in self._codec.iter_frames(self._path, self._max_frames):
            count += 1
            yield frame
        if count == 0:
            raise EmptyAnimationError(str(self._path))

    def sample(self) -> list[FrameBuffer]:
        """Decode all sampled frames eagerly."""
        return list(self)


def composite_frames(frames: Sequence[FrameBuffer]) -> FrameBuffer:
    """Lay frames out side by side into one wide frame.

    Frame ``i`` lands at x = sum of widths of frames before it, y = 0.
    No scaling and no letterboxing.

    Raises:
        ValueError: No frames given.
        InconsistentDimensionsError: Frames do not share the first frame's height.
    """
    if not frames:
        raise ValueError("Cannot composite an empty frame sequence")

    height = frames[0].height
    for i, frame in enumerate(frames):
        if frame.height != height:
            raise InconsistentDimensionsError(height, frame.height, i)

    total_width = sum(frame.width for frame in frames)
    canvas = Image.new("RGBA", (total_width, height), (0, 0, 0, 0))

    offset = 0
    for frame in frames:
        canvas.paste(frame_to_image(frame), (offset, 0))
        offset += frame.width

    logger.debug(f"Composited {len(frames)} frames into {total_width}x{height}")
    return image_to_frame(canvas)


class FrameStage:
    """Stages sampled frames as PNG files and guarantees their removal.

    Usage:
        with FrameStage(staging_dir, "anim_3") as stage:
            for i, frame in enumerate(sampler):
                stage.stage(frame, i)
            composite = composite_frames(stage.load_all())
            path = stage.write_combined(composite)
            ...
        # All staged files removed here, even if the block raised

    File names are keyed by ``key`` so concurrent stages never collide.
    """

    def __init__(self, staging_dir: Path, key: str, codec: Optional[ImageCodec] = None):
        self._staging_dir = staging_dir
        self._key = key
        self._codec = codec or PillowCodec()
        self._staged: list[Path] = []
        self._combined: Optional[Path] = None
        self.cleanup_errors: list[TransientStorageError] = []

    @property
    def staged_paths(self) -> list[Path]:
        return list(self._staged)

    def frame_path(self, index: int) -> Path:
        return self._staging_dir / (self._key + FRAME_SUFFIX.format(index=index))

    def combined_path(self) -> Path:
        return self._staging_dir / (self._key + COMBINED_SUFFIX)

    def stage(self, frame: FrameBuffer, index: int) -> Path:
        """Write one frame to the staging directory."""
        path = self.frame_path(index)
        self._write(path, self._codec.encode(frame))
        self._staged.append(path)
        return path

    def stage_all(self, frames: Iterable[FrameBuffer]) -> list[Path]:
        return [self.stage(frame, i) for i, frame in enumerate(frames)]

    def load_all(self) -> list[FrameBuffer]:
        """Decode staged frames back in staging order."""
        frames = []
        for path in self._staged:
            try:
                data = path.read_bytes()
            except OSError as e:
                raise DecodeError(f"Failed to read staged frame {path.name}: {e}") from e
            frames.append(self._codec.decode(data))
        return frames

    def write_combined(self, frame: FrameBuffer) -> Path:
        """Write the composite image next to the staged frames."""
        path = self.combined_path()
        self._write(path, self._codec.encode(frame))
        self._combined = path
        return path

    def _write(self, path: Path, data: bytes) -> None:
        try:
            self._staging_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise TransientStorageError(str(path), str(e)) from e

    def cleanup(self) -> None:
        """Remove every file this stage wrote. Best effort, never raises."""
        paths = list(self._staged)
        if self._combined is not None:
            paths.append(self._combined)

        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                error = TransientStorageError(str(path), str(e))
                self.cleanup_errors.append(error)
                logger.warning(str(error))

        self._staged.clear()
        self._combined = None

    def __enter__(self) -> "FrameStage":
        return self

    def __exit__(self, *args) -> None:
        self.cleanup()
