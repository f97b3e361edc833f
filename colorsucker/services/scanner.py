"""Directory scanning service."""
from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator

from ..core.errors import InputDiscoveryError
from ..core.models import ImageKind, ImageTask
from ..engines.codec import is_animated, is_image


# Files written by FrameStage; never treat them as source images
STAGING_ARTIFACT_PATTERNS = [
    re.compile(r"_frame_?\d*\.png$", re.IGNORECASE),
    re.compile(r"_combined\.png$", re.IGNORECASE),
]


def is_staging_artifact(name: str) -> bool:
    """Check if a filename looks like a staged GIF frame or composite."""
    return any(p.search(name) for p in STAGING_ARTIFACT_PATTERNS)


class DirectoryScanner:
    """Scans the images directory for stills and animations.

    Yields ImageTask objects in discovery order (sorted by filename).
    """

    def __init__(self, recursive: bool = False, follow_symlinks: bool = True):
        """Initialize the scanner.

        Args:
            recursive: Whether to descend into subdirectories.
            follow_symlinks: Whether to include symbolic links.
        """
        self._recursive = recursive
        self._follow_symlinks = follow_symlinks

    def scan(self, directory: Path) -> Iterator[ImageTask]:
        """Scan a directory and yield ImageTasks.

        Raises:
            InputDiscoveryError: The directory is missing or unreadable.
        """
        index = 0
        for path in self._list_files(directory):
            if not is_image(path) or is_staging_artifact(path.name):
                continue
            kind = ImageKind.ANIMATED if is_animated(path) else ImageKind.STILL
            yield ImageTask(source_path=path, kind=kind, index=index)
            index += 1

    def _list_files(self, directory: Path) -> list[Path]:
        if not directory.is_dir():
            raise InputDiscoveryError(str(directory), "not a directory")
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise InputDiscoveryError(str(directory), e.strerror or str(e)) from e

        files: list[Path] = []
        for entry in entries:
            if entry.is_symlink() and not self._follow_symlinks:
                continue
            if entry.is_file():
                files.append(entry)
            elif entry.is_dir() and self._recursive:
                try:
                    files.extend(self._list_files(entry))
                except InputDiscoveryError:
                    # Unreadable subfolders are skipped, only the root is fatal
                    continue
        return files

    def count_images(self, directory: Path) -> tuple[int, int]:
        """Count images without keeping them.

        Returns:
            (still_count, animated_count)
        """
        still = 0
        animated = 0

        for task in self.scan(directory):
            if task.is_animated:
                animated += 1
            else:
                still += 1

        return still, animated
