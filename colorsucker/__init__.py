"""Batch colour palette extraction for still and animated images.

Architecture with dependency injection and clean interfaces.
"""

__version__ = "1.0.0"

# Core exports
from .core.config import SuckerConfig, ConfigFile, IsolationMode
from .core.models import (
    ImageKind,
    ErrorKind,
    ImageTask,
    FrameBuffer,
    PaletteResult,
    Success,
    Failure,
    Outcome,
    BatchReport,
    BatchStats,
)
from .core.protocols import PaletteExtractor, ImageCodec, ProgressReporter
from .core.errors import ColorSuckerError, InputDiscoveryError

# Engine exports
from .engines.codec import PillowCodec
from .engines.quantizer import MedianCutExtractor

# Service exports
from .services.scanner import DirectoryScanner
from .services.frames import FrameSampler, FrameStage, composite_frames
from .services.extraction import ExtractionRequest, ExtractionUnit, extract_palette
from .services.dispatcher import ConcurrencyDispatcher
from .services.report import ReportWriter
from .services.pipeline import PaletteOrchestrator, PipelineDependencies, build_dependencies

# Logging exports
from .logging.rich_logger import RichProgressReporter

__all__ = [
    # Core
    "SuckerConfig",
    "ConfigFile",
    "IsolationMode",
    "ImageKind",
    "ErrorKind",
    "ImageTask",
    "FrameBuffer",
    "PaletteResult",
    "Success",
    "Failure",
    "Outcome",
    "BatchReport",
    "BatchStats",
    "PaletteExtractor",
    "ImageCodec",
    "ProgressReporter",
    "ColorSuckerError",
    "InputDiscoveryError",
    # Engines
    "PillowCodec",
    "MedianCutExtractor",
    # Services
    "DirectoryScanner",
    "FrameSampler",
    "FrameStage",
    "composite_frames",
    "ExtractionRequest",
    "ExtractionUnit",
    "extract_palette",
    "ConcurrencyDispatcher",
    "ReportWriter",
    "PaletteOrchestrator",
    "PipelineDependencies",
    "build_dependencies",
    # Logging
    "RichProgressReporter",
]
