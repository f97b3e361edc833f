"""Report writer - the boundary where a finished batch leaves the core.

``palettes.json`` holds successes only. Failed images are omitted from it and
listed in a separate ``failures.json``.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from ..core.models import PaletteResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReportRow:
    """Data contract for report renderers (e.g. an HTML page)."""
    image_name: str
    image_path: Path
    colors: tuple[str, ...]


def report_rows(results: Sequence[PaletteResult], images_dir: Path) -> list[ReportRow]:
    """Successful results with their resolved source image paths."""
    return [
        ReportRow(
            image_name=r.image_name,
            image_path=(images_dir / r.image_name).resolve(),
            colors=r.colors,
        )
        for r in results
        if r.is_success
    ]


class ReportWriter:
    """Writes batch results as JSON."""

    def __init__(self, indent: int = 2):
        self._indent = indent

    def write_palettes(self, results: Sequence[PaletteResult], path: Path) -> Path:
        """Write successful results to ``path`` as a JSON array."""
        payload = [r.to_dict() for r in results if r.is_success]
        self._write_json(path, payload)
        logger.info(f"Palettes saved to {path}")
        return path

    def write_failures(self, results: Sequence[PaletteResult], path: Path) -> Optional[Path]:
        """Write failed results to ``path``.

        Nothing is written when there are no failures, and a stale file from an
        earlier run is removed.
        """
        payload = [r.to_dict() for r in results if not r.is_success]
        if not payload:
            path.unlink(missing_ok=True)
            return None
        self._write_json(path, payload)
        logger.info(f"Failures saved to {path}")
        return path

    def _write_json(self, path: Path, payload: list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=self._indent)
            f.write("\n")
        tmp.replace(path)


def load_palettes(path: Path) -> list[dict]:
    """Read a palettes.json file back."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)
