"""Pillow-backed raster codec.

Decodes stills and animated containers into RGBA ``FrameBuffer``s and
encodes buffers back to PNG.
"""
from __future__ import annotations

import io
from pathlib import Path
from typing import Iterator, Optional

from PIL import Image, ImageFile, ImageSequence, UnidentifiedImageError

from ..core.errors import DecodeError, EmptyAnimationError
from ..core.models import FrameBuffer

# Allow loading truncated images
ImageFile.LOAD_TRUNCATED_IMAGES = True

# Decompression bomb limit, process-wide
MAX_IMAGE_PIXELS = 256 * 1024 * 1024 // 4
Image.MAX_IMAGE_PIXELS = MAX_IMAGE_PIXELS

DECODE_ERRORS = (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError)

STILL_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png"})
ANIMATED_EXTENSIONS = frozenset({".gif"})
IMAGE_EXTENSIONS = STILL_EXTENSIONS | ANIMATED_EXTENSIONS


def is_image(path: Path) -> bool:
    return path.suffix.lower() in IMAGE_EXTENSIONS


def is_animated(path: Path) -> bool:
    return path.suffix.lower() in ANIMATED_EXTENSIONS


def image_to_frame(image: Image.Image) -> FrameBuffer:
    """Convert a PIL image into an RGBA FrameBuffer."""
    rgba = image.convert("RGBA")
    return FrameBuffer(width=rgba.width, height=rgba.height, pixels=rgba.tobytes())


def frame_to_image(frame: FrameBuffer) -> Image.Image:
    """Wrap a FrameBuffer as a PIL image (copies the pixels)."""
    return Image.frombytes("RGBA", frame.size, frame.pixels)


class PillowCodec:
    """Raster codec using Pillow.

    Stateless; a single instance can be shared across threads.
    """

    @property
    def name(self) -> str:
        return "Pillow"

    def decode(self, data: bytes) -> FrameBuffer:
        """Decode a still image (first frame for multi-frame containers)."""
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                return image_to_frame(img)
        except DECODE_ERRORS as e:
            raise DecodeError(f"Failed to load image: {e}") from e

    def decode_path(self, path: Path) -> FrameBuffer:
        """Decode a still image from disk."""
        try:
            data = path.read_bytes()
        except OSError as e:
            raise DecodeError(f"Failed to read {path}: {e}") from e
        return self.decode(data)

    def encode(self, frame: FrameBuffer) -> bytes:
        """Encode a frame as PNG bytes."""
        buffer = io.BytesIO()
        frame_to_image(frame).save(buffer, format="PNG")
        return buffer.getvalue()

    def iter_frames(self, path: Path, limit: Optional[int] = None) -> Iterator[FrameBuffer]:
        """Yield frames of an animated image in native order.

        Args:
            path: Path to the animated image.
            limit: Stop after this many frames (None = all).

        Raises:
            DecodeError: Container could not be parsed.
            EmptyAnimationError: Container has no frames.
        """
        try:
            img = Image.open(path)
        except DECODE_ERRORS as e:
            raise DecodeError(f"Failed to open animation {path.name}: {e}") from e

        with img:
            count = 0
            try:
                for frame in ImageSequence.Iterator(img):
                    if limit is not None and count >= limit:
                        break
                    yield image_to_frame(frame)
                    count += 1
            except DECODE_ERRORS + (EOFError,) as e:
                raise DecodeError(f"Failed to decode frame {count} of {path.name}: {e}") from e

            if count == 0:
                raise EmptyAnimationError(str(path))
