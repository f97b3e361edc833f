"""Configuration dataclasses with validation."""
from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IsolationMode(Enum):
    """Where an extraction unit runs."""
    THREAD = "thread"    # In the dispatcher's worker thread
    PROCESS = "process"  # In a child process, survives decoder crashes


DEFAULT_PALETTE_SIZE = 5
DEFAULT_MAX_GIF_FRAMES = 10
DEFAULT_WORKERS = 5


@dataclass(frozen=True, slots=True)
class SuckerConfig:
    """Main configuration for a batch run.

    Built once at startup and passed explicitly to the orchestrator.
    All fields are validated on construction.
    """
    # Required
    images_dir: Path
    output_dir: Path

    # Output files (relative to output_dir)
    output_json: str = "palettes.json"
    failures_json: str = "failures.json"
    write_failures: bool = True

    # Extraction
    palette_size: int = DEFAULT_PALETTE_SIZE
    max_gif_frames: Optional[int] = DEFAULT_MAX_GIF_FRAMES  # None = all frames

    # Performance
    workers: int = DEFAULT_WORKERS
    isolation: IsolationMode = IsolationMode.THREAD

    # Staging of sampled GIF frames
    staging_dir: Optional[Path] = None
    keep_staging: bool = False

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.palette_size < 1:
            raise ValueError("Palette size must be at least 1")

        if self.max_gif_frames is not None and self.max_gif_frames < 1:
            raise ValueError("Max GIF frames must be at least 1 (or None for all)")

        if self.workers < 1:
            raise ValueError("Workers must be at least 1")

        if not self.output_json:
            raise ValueError("Output JSON filename is required")

        if self.staging_dir is None:
            object.__setattr__(self, "staging_dir", self.output_dir / "temp_frames")

    @property
    def output_path(self) -> Path:
        return self.output_dir / self.output_json

    @property
    def failures_path(self) -> Path:
        return self.output_dir / self.failures_json

    @property
    def resolved_staging_dir(self) -> Path:
        return self.staging_dir or (self.output_dir / "temp_frames")

    def with_overrides(self, **kwargs) -> "SuckerConfig":
        """Create a new config with some values overridden."""
        known = {f.name for f in fields(self)}
        unknown = set(kwargs) - known
        if unknown:
            raise ValueError(f"Unknown config fields: {', '.join(sorted(unknown))}")
        return replace(self, **kwargs)


class ConfigFile(BaseModel):
    """On-disk configuration file (JSON).

    Keys use the camelCase ``sucker.config.json`` naming. CLI flags override
    config file values. Relative paths resolve against the file's directory.
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    images_folder: Path = Field(
        default=Path("./images_examples"),
        alias="imagesFolder",
        description="Folder containing the images to process",
    )
    palette_size: int = Field(
        default=DEFAULT_PALETTE_SIZE,
        alias="paletteSize",
        ge=1,
        description="Number of colors to extract from each image",
    )
    output_json: Path = Field(
        default=Path("./output/palettes.json"),
        alias="outputJson",
        description="Path to the output JSON file",
    )
    max_gif_frames: Optional[int] = Field(
        default=DEFAULT_MAX_GIF_FRAMES,
        alias="maxGifFrames",
        description="Maximum frames sampled per GIF (null for all frames)",
    )
    max_threads: int = Field(
        default=DEFAULT_WORKERS,
        alias="maxThreads",
        ge=1,
        description="Maximum number of concurrent extractions",
    )
    isolation: IsolationMode = Field(
        default=IsolationMode.THREAD,
        description="Run extraction in threads or child processes",
    )

    @field_validator("max_gif_frames")
    @classmethod
    def check_max_frames(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 1:
            raise ValueError("maxGifFrames must be at least 1 or null")
        return value

    @classmethod
    def load(cls, path: Path) -> "ConfigFile":
        """Read a JSON config file."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return cls.model_validate(data)

    def to_config(self, base_dir: Path) -> SuckerConfig:
        """Resolve paths against ``base_dir`` and build a SuckerConfig."""
        output_json = _resolve(self.output_json, base_dir)
        return SuckerConfig(
            images_dir=_resolve(self.images_folder, base_dir),
            output_dir=output_json.parent,
            output_json=output_json.name,
            palette_size=self.palette_size,
            max_gif_frames=self.max_gif_frames,
            workers=self.max_threads,
            isolation=self.isolation,
        )


def _resolve(path: Path, base_dir: Path) -> Path:
    path = path.expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path.resolve()
