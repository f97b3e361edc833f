"""Pipeline orchestrator - scans, reduces animations, dispatches extraction.

Per image:
- still: extraction unit on the original file
- animated: sample frames -> stage -> composite -> extraction unit

Results stream back from the dispatcher into a shared BatchReport. A single
image failing never stops the batch; only an unreadable images directory is
fatal.
"""
from __future__ import annotations

import functools
import logging
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from ..core.config import SuckerConfig
from ..core.errors import ColorSuckerError, TransientStorageError
from ..core.models import (
    BatchReport,
    BatchStats,
    ImageTask,
    Outcome,
    Success,
    failure,
)
from ..core.protocols import ImageCodec, PaletteExtractor, ProgressReporter
from ..engines.codec import PillowCodec
from ..engines.quantizer import MedianCutExtractor
from .dispatcher import ConcurrencyDispatcher, DispatchResult
from .extraction import ExtractionRequest, ExtractionUnit
from .frames import FrameSampler, FrameStage, composite_frames
from .report import ReportWriter
from .scanner import DirectoryScanner


logger = logging.getLogger(__name__)


@dataclass
class PipelineDependencies:
    """All dependencies needed by the orchestrator.

    This is explicitly passed in - no globals or singletons.
    """
    scanner: DirectoryScanner
    dispatcher: ConcurrencyDispatcher
    unit: ExtractionUnit
    codec: ImageCodec
    writer: ReportWriter
    progress: ProgressReporter


def build_dependencies(
    config: SuckerConfig,
    progress: ProgressReporter,
    extractor: Optional[PaletteExtractor] = None,
    codec: Optional[ImageCodec] = None,
) -> PipelineDependencies:
    """Wire the default collaborators for a config."""
    codec = codec or PillowCodec()
    return PipelineDependencies(
        scanner=DirectoryScanner(),
        dispatcher=ConcurrencyDispatcher(max_workers=config.workers),
        unit=ExtractionUnit(
            extractor=extractor or MedianCutExtractor(),
            codec=codec,
            isolation=config.isolation,
        ),
        codec=codec,
        writer=ReportWriter(),
        progress=progress,
    )


class PaletteOrchestrator:
    """Runs one batch from directory scan to written report.

    All dependencies are injected - no global state.
    """

    def __init__(self, config: SuckerConfig, deps: PipelineDependencies):
        """Initialize orchestrator with config and dependencies.

        Args:
            config: Batch configuration.
            deps: All required dependencies.
        """
        self._config = config
        self._deps = deps
        self._stats = BatchStats()
        self._report = BatchReport()

    @property
    def report(self) -> BatchReport:
        return self._report

    @property
    def stats(self) -> BatchStats:
        return self._stats

    def run(self) -> BatchStats:
        """Scan the images directory and process everything found.

        Raises:
            InputDiscoveryError: The images directory cannot be read.
        """
        self._deps.progress.info(f"Scanning {self._config.images_dir}...")
        tasks = list(self._deps.scanner.scan(self._config.images_dir))
        return self.process_tasks(tasks)

    def process_tasks(self, tasks: Sequence[ImageTask]) -> BatchStats:
        """Process an explicit list of tasks and write the report."""
        start = time.monotonic()
        self._stats = BatchStats()
        self._report = BatchReport()

        tasks = self._dedupe(tasks)
        self._stats.total_images = len(tasks)
        self._stats.animated_images = sum(1 for t in tasks if t.is_animated)
        self._stats.still_images = len(tasks) - self._stats.animated_images

        self._deps.progress.info(
            f"Found {len(tasks)} images "
            f"({self._stats.still_images} still, {self._stats.animated_images} animated)"
        )

        if tasks:
            self._extract_phase(tasks)
        else:
            self._deps.progress.info("No images to process")

        self._write_report()
        self._stats.elapsed_seconds = time.monotonic() - start
        return self._stats

    def _dedupe(self, tasks: Sequence[ImageTask]) -> list[ImageTask]:
        """Drop repeated animated sources so each is composited once."""
        seen: set[Path] = set()
        unique: list[ImageTask] = []
        for task in tasks:
            if task.is_animated:
                key = task.source_path.resolve()
                if key in seen:
                    self._deps.progress.debug(f"Skipping already processed GIF: {task.name}")
                    self._stats.skipped_duplicates += 1
                    continue
                seen.add(key)
            unique.append(task)
        return unique

    def _extract_phase(self, tasks: list[ImageTask]) -> None:
        staging_dir = self._config.resolved_staging_dir
        created_staging = False
        if any(t.is_animated for t in tasks) and not staging_dir.exists():
            created_staging = True

        work: list[Callable[[], Outcome]] = [
            functools.partial(self._process_image, task) for task in tasks
        ]

        self._deps.progress.start_phase("Extracting palettes", len(tasks))
        try:
            self._deps.dispatcher.run(
                work,
                on_complete=functools.partial(self._on_complete, tasks),
            )
        finally:
            self._deps.progress.end_phase()
            if created_staging and not self._config.keep_staging:
                self._remove_staging_dir(staging_dir)

        self._stats.peak_concurrency = self._deps.dispatcher.stats.peak_active

    def _process_image(self, task: ImageTask) -> Outcome:
        """End-to-end work for one image. Runs on a dispatcher thread."""
        if not task.is_animated:
            return self._deps.unit.run(self._request(task, path=task.source_path))

        key = f"{task.stem}_{task.index}"
        with FrameStage(self._config.resolved_staging_dir, key, self._deps.codec) as stage:
            try:
                request = self._reduce_staged(task, stage)
            except TransientStorageError as e:
                self._deps.progress.warning(f"{e}; compositing {task.name} in memory")
                try:
                    request = self._reduce_in_memory(task)
                except ColorSuckerError as inner:
                    return failure(task.name, inner, task.index)
            except ColorSuckerError as e:
                return failure(task.name, e, task.index)

            # Staged files are only removed once the unit has read the composite
            return self._deps.unit.run(request)

    def _sampler(self, task: ImageTask) -> FrameSampler:
        return FrameSampler(task.source_path, self._config.max_gif_frames, self._deps.codec)

    def _reduce_staged(self, task: ImageTask, stage: FrameStage) -> ExtractionRequest:
        stage.stage_all(self._sampler(task))
        frames = stage.load_all()
        composite = composite_frames(frames)
        self._deps.progress.debug(
            f"Combining {len(frames)} frames of {task.name} into "
            f"{composite.width}x{composite.height}"
        )
        return self._request(task, path=stage.write_combined(composite))

    def _reduce_in_memory(self, task: ImageTask) -> ExtractionRequest:
        composite = composite_frames(self._sampler(task).sample())
        return self._request(task, data=self._deps.codec.encode(composite))

    def _request(
        self,
        task: ImageTask,
        path: Optional[Path] = None,
        data: Optional[bytes] = None,
    ) -> ExtractionRequest:
        return ExtractionRequest(
            image_name=task.name,
            path=path,
            data=data,
            palette_size=self._config.palette_size,
            index=task.index,
        )

    def _on_complete(self, tasks: list[ImageTask], result: DispatchResult[Outcome]) -> None:
        """Record one finished image. Called one at a time."""
        task = tasks[result.index]
        if result.ok:
            outcome = result.value
        else:
            outcome = failure(task.name, result.error, task.index)

        self._report.record(outcome)
        self._stats.record(outcome.result)

        # Already recorded; a display error must not lose the result
        try:
            if isinstance(outcome, Success):
                self._deps.progress.print_palette(task.name, outcome.result.colors)
            else:
                message = f"Failed to process image {task.name}: {outcome.result.reason}"
                logger.warning(message)
                self._deps.progress.warning(message)
            self._deps.progress.advance_phase()
        except Exception as e:
            logger.error(f"Progress reporting failed for {task.name}: {e}")

    def _remove_staging_dir(self, staging_dir: Path) -> None:
        try:
            if staging_dir.exists():
                shutil.rmtree(staging_dir)
                self._deps.progress.debug(f"Cleaned up temporary directory: {staging_dir}")
        except OSError as e:
            error = TransientStorageError(str(staging_dir), str(e))
            logger.warning(str(error))
            self._deps.progress.warning(str(error))

    def _write_report(self) -> None:
        results = self._report.sorted()
        self._stats.output_path = self._deps.writer.write_palettes(
            results, self._config.output_path
        )
        if self._config.write_failures:
            self._stats.failures_path = self._deps.writer.write_failures(
                results, self._config.failures_path
            )
        self._deps.progress.success(f"Palettes saved to {self._config.output_path}")
