"""Codec and quantization engines."""
from .codec import PillowCodec, is_image, is_animated
from .quantizer import MedianCutExtractor, rgb_to_hex, hex_to_rgb

__all__ = [
    "PillowCodec",
    "is_image",
    "is_animated",
    "MedianCutExtractor",
    "rgb_to_hex",
    "hex_to_rgb",
]
