"""Service layer - scanning, frame reduction, extraction and dispatch."""
from .scanner import DirectoryScanner, is_staging_artifact
from .frames import FrameSampler, FrameStage, composite_frames
from .extraction import ExtractionRequest, ExtractionUnit, extract_palette
from .dispatcher import ConcurrencyDispatcher, DispatchResult, DispatcherStats
from .report import ReportWriter, ReportRow, report_rows
from .pipeline import PaletteOrchestrator, PipelineDependencies, build_dependencies

__all__ = [
    "DirectoryScanner",
    "is_staging_artifact",
    "FrameSampler",
    "FrameStage",
    "composite_frames",
    "ExtractionRequest",
    "ExtractionUnit",
    "extract_palette",
    "ConcurrencyDispatcher",
    "DispatchResult",
    "DispatcherStats",
    "ReportWriter",
    "ReportRow",
    "report_rows",
    "PaletteOrchestrator",
    "PipelineDependencies",
    "build_dependencies",
]
