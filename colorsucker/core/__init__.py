"""Core domain models and protocols."""
from .protocols import (
    PaletteExtractor,
    ImageCodec,
    ProgressReporter,
)
from .models import (
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
from .config import SuckerConfig, ConfigFile, IsolationMode
from .errors import (
    ColorSuckerError,
    InputDiscoveryError,
    DecodeError,
    EmptyAnimationError,
    InconsistentDimensionsError,
    NoInputProvidedError,
    ExtractionError,
    TransientStorageError,
)

__all__ = [
    # Protocols
    "PaletteExtractor",
    "ImageCodec",
    "ProgressReporter",
    # Models
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
    # Config
    "SuckerConfig",
    "ConfigFile",
    "IsolationMode",
    # Errors
    "ColorSuckerError",
    "InputDiscoveryError",
    "DecodeError",
    "EmptyAnimationError",
    "InconsistentDimensionsError",
    "NoInputProvidedError",
    "ExtractionError",
    "TransientStorageError",
]
