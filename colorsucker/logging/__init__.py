"""Logging package with Rich-based progress reporting."""

from .rich_logger import RichProgressReporter, QuietProgressReporter, setup_logging

__all__ = ["RichProgressReporter", "QuietProgressReporter", "setup_logging"]
