"""Palette extraction engines.

Current: Pillow median cut (deterministic, no extra dependencies).
"""
from __future__ import annotations

from PIL import Image

from ..core.errors import ExtractionError


def rgb_to_hex(rgb: tuple[int, int, int]) -> str:
    """Convert an RGB tuple to a lowercase hex string."""
    r, g, b = rgb[:3]
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Convert a hex colour string to an RGB tuple."""
    hex_color = hex_color.lstrip("#")
    return tuple(int(hex_color[i:i + 2], 16) for i in (0, 2, 4))


class MedianCutExtractor:
    """Palette extractor built on Pillow's median cut quantizer.

    When the image has no more than ``k`` distinct colours they are returned
    exactly, ranked by pixel count. Otherwise the image is quantized to ``k``
    colours and the palette entries are ranked by how many pixels map to them.
    Ties are broken by palette index, so output is deterministic. If median
    cut leaves fewer than ``k`` distinct entries, the most frequent exact
    colours not yet present fill the gap, so the result always holds
    min(k, distinct colours) entries.
    """

    @property
    def name(self) -> str:
        return "median-cut"

    def extract(self, pixels: bytes, width: int, height: int, k: int) -> list[str]:
        if k < 1:
            raise ExtractionError(f"Palette size must be at least 1, got {k}")
        try:
            image = Image.frombytes("RGBA", (width, height), pixels).convert("RGB")
        except ValueError as e:
            raise ExtractionError(f"Invalid pixel buffer: {e}") from e

        # Every pixel may be distinct, so this never returns None
        histogram = image.getcolors(maxcolors=width * height)
        histogram.sort(key=lambda item: (-item[0], item[1]))
        ranked = [rgb_to_hex(rgb) for _, rgb in histogram]
        if len(ranked) <= k:
            return ranked

        colors = self._quantize(image, k)
        # Median cut can leave palette entries unused or merge them to one hex
        for hex_color in ranked:
            if len(colors) >= k:
                break
            if hex_color not in colors:
                colors.append(hex_color)
        return colors

    def _quantize(self, image: Image.Image, k: int) -> list[str]:
        try:
            quantized = image.quantize(
                colors=k,
                method=Image.Quantize.MEDIANCUT,
                dither=Image.Dither.NONE,
            )
        except (ValueError, OSError) as e:
            raise ExtractionError(f"Quantization failed: {e}") from e

        palette = quantized.getpalette() or []
        counts = quantized.getcolors(maxcolors=256) or []
        ranked = sorted(counts, key=lambda item: (-item[0], item[1]))

        colors: list[str] = []
        for _, index in ranked[:k]:
            rgb = tuple(palette[index * 3:index * 3 + 3])
            if len(rgb) != 3:
                raise ExtractionError(f"Palette index {index} out of range")
            hex_color = rgb_to_hex(rgb)
            if hex_color not in colors:
                colors.append(hex_color)
        return colors
