"""Test fixtures for integration tests.

This module provides fixture classes that generate test images,
write them to disk, and know their expected palettes.
"""
from __future__ import annotations

import io
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from PIL import Image

from colorsucker.engines.quantizer import MedianCutExtractor


RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
WHITE = (255, 255, 255)


def to_hex(rgb: tuple[int, int, int]) -> str:
    return "#{:02x}{:02x}{:02x}".format(*rgb)


def png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def save_gif(path: Path, colors: list[tuple[int, int, int]], size: tuple[int, int] = (4, 4)) -> Path:
    """Write an animated GIF with one solid-colour frame per colour."""
    frames = [Image.new("RGB", size, color=c) for c in colors]
    frames[0].save(
        path,
        save_all=True,
        append_images=frames[1:],
        duration=100,
        loop=0,
    )
    return path


@dataclass
class ImageFixture(ABC):
    """Base class for test image fixtures.

    Each fixture knows:
    - How to create its file
    - Which palette the batch should report for it (None = expected failure)
    """
    name: str

    @abstractmethod
    def create(self, base_path: Path) -> Path:
        """Create the fixture file and return its path."""
        pass

    @abstractmethod
    def expected_colors(self) -> Optional[list[str]]:
        """Return the expected palette, dominant first."""
        pass

    @property
    def should_fail(self) -> bool:
        return self.expected_colors() is None


@dataclass
class SolidStill(ImageFixture):
    """Single-colour PNG."""
    color: tuple[int, int, int] = RED
    size: tuple[int, int] = (2, 2)

    def create(self, base_path: Path) -> Path:
        path = base_path / f"{self.name}.png"
        Image.new("RGB", self.size, color=self.color).save(path)
        return path

    def expected_colors(self) -> Optional[list[str]]:
        return [to_hex(self.color)]


@dataclass
class TwoToneStill(ImageFixture):
    """PNG with a dominant colour on the left 3/4 and a minor one on the right."""
    major: tuple[int, int, int] = BLUE
    minor: tuple[int, int, int] = WHITE

    def create(self, base_path: Path) -> Path:
        path = base_path / f"{self.name}.png"
        img = Image.new("RGB", (8, 2), color=self.major)
        img.paste(Image.new("RGB", (2, 2), color=self.minor), (6, 0))
        img.save(path)
        return path

    def expected_colors(self) -> Optional[list[str]]:
        return [to_hex(self.major), to_hex(self.minor)]


@dataclass
class AnimatedGif(ImageFixture):
    """GIF with one solid-colour frame per entry in ``colors``."""
    colors: list[tuple[int, int, int]] = field(default_factory=lambda: [RED, GREEN, BLUE])
    frame_size: tuple[int, int] = (4, 4)

    def create(self, base_path: Path) -> Path:
        return save_gif(base_path / f"{self.name}.gif", self.colors, self.frame_size)

    def expected_colors(self) -> Optional[list[str]]:
        # Equal pixel counts, so ranking falls back to RGB order
        return [to_hex(c) for c in sorted(self.colors)]


@dataclass
class CorruptImage(ImageFixture):
    """File with an image extension but garbage content."""
    extension: str = ".png"
    content: bytes = b"this is not an image"

    def create(self, base_path: Path) -> Path:
        path = base_path / f"{self.name}{self.extension}"
        path.write_bytes(self.content)
        return path

    def expected_colors(self) -> Optional[list[str]]:
        return None


class FixtureManager:
    """Manages test fixtures - creates and cleans up."""

    def __init__(self):
        self.input_dir: Optional[Path] = None
        self.output_dir: Optional[Path] = None
        self.fixtures: list[ImageFixture] = []
        self.created_files: list[Path] = []

    def setup(self) -> tuple[Path, Path]:
        """Create temporary directories and return (input_dir, output_dir)."""
        self.input_dir = Path(tempfile.mkdtemp(prefix="colorsucker_test_input_"))
        self.output_dir = Path(tempfile.mkdtemp(prefix="colorsucker_test_output_"))
        return self.input_dir, self.output_dir

    def add_fixture(self, fixture: ImageFixture) -> Path:
        """Add a fixture and create its file."""
        if self.input_dir is None:
            raise RuntimeError("Must call setup() before adding fixtures")

        file_path = fixture.create(self.input_dir)
        self.fixtures.append(fixture)
        self.created_files.append(file_path)
        return file_path

    def expected_report(self) -> dict[str, list[str]]:
        """imageName -> colours for every fixture that should succeed."""
        expected = {}
        for fixture, path in zip(self.fixtures, self.created_files):
            colors = fixture.expected_colors()
            if colors is not None:
                expected[path.name] = colors
        return expected

    def teardown(self):
        """Clean up all temporary files and directories."""
        if self.input_dir and self.input_dir.exists():
            shutil.rmtree(self.input_dir)
        if self.output_dir and self.output_dir.exists():
            shutil.rmtree(self.output_dir)
        self.fixtures = []
        self.created_files = []


def create_mixed_batch() -> list[ImageFixture]:
    """A folder with stills, an animation and one broken file."""
    return [
        SolidStill(name="red", color=RED),
        SolidStill(name="green", color=GREEN, size=(3, 3)),
        TwoToneStill(name="two_tone"),
        AnimatedGif(name="traffic"),
        CorruptImage(name="broken"),
    ]


class CrashOnWidthExtractor:
    """Median cut extractor that kills its process for images of one width.

    Defined at module level so child processes can unpickle it.
    """

    name = "crash-on-width"

    def __init__(self, width: int):
        self.width = width

    def extract(self, pixels: bytes, width: int, height: int, k: int) -> list[str]:
        if width == self.width:
            os._exit(1)
        return MedianCutExtractor().extract(pixels, width, height, k)
