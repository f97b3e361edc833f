"""Rich-based progress reporter implementation."""
from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from ..core.models import BatchStats


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Route the ``colorsucker`` loggers through Rich."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("colorsucker")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


def swatch_text(colors: Sequence[str], width: int = 5) -> Text:
    """Render colours as a row of coloured blocks followed by their hex codes."""
    text = Text()
    for color in colors:
        text.append(" " * width, style=f"on {color}")
        text.append(f" {color}  ")
    return text


class RichProgressReporter:
    """Progress reporter using Rich for terminal output.

    Implements the ProgressReporter protocol with Rich console output.
    """

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
    ):
        """Initialize the reporter.

        Args:
            verbose: Enable verbose output.
            quiet: Suppress all non-essential output.
            console: Console to print to (default: stderr).
        """
        self._console = console or Console(stderr=True)
        self._verbose = verbose
        self._quiet = quiet
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    @property
    def console(self) -> Console:
        return self._console

    # --- Phase Management ---

    def start_phase(self, name: str, total: int) -> None:
        """Show a bar counting finished images. Hidden in quiet mode."""
        self.end_phase()
        if self._quiet:
            return

        self._progress = Progress(
            TextColumn("[bold]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self._console,
        )
        self._task = self._progress.add_task(name, total=total)
        self._progress.start()

    def advance_phase(self, amount: int = 1) -> None:
        if self._progress is not None:
            self._progress.advance(self._task, amount)

    def end_phase(self) -> None:
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task = None

    # --- Logging Methods ---

    def info(self, message: str) -> None:
        if not self._quiet:
            self._console.print(f"[blue]ℹ[/blue] {message}")

    def success(self, message: str) -> None:
        if not self._quiet:
            self._console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        """Log a warning message. Shown even in quiet mode."""
        self._console.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str) -> None:
        """Log an error message. Shown even in quiet mode."""
        self._console.print(f"[red]✗[/red] {message}", style="red")

    def debug(self, message: str) -> None:
        """Log a debug message (only in verbose mode)."""
        if self._verbose:
            self._console.print(f"[dim]  {message}[/dim]")

    # --- Specialized Output ---

    def print_palette(self, image_name: str, colors: Sequence[str]) -> None:
        """Print a palette as coloured swatches."""
        if self._quiet:
            return

        line = Text.assemble((image_name, "bold"), "  ")
        line.append_text(swatch_text(colors))
        self._console.print(line)

    def print_header(self, title: str) -> None:
        """Print a styled header."""
        if self._quiet:
            return

        self._console.print(Rule(title, style="cyan"))

    def print_config(self, config_items: dict) -> None:
        """Print configuration as a table."""
        if self._quiet:
            return

        table = Table(title="Configuration", show_header=True, header_style="bold")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="white")

        for key, value in config_items.items():
            table.add_row(key, str(value))

        self._console.print(table)

    def print_stats(self, stats: BatchStats) -> None:
        """Print batch statistics."""
        if self._quiet:
            return

        table = Table(title="Batch Complete", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Count", style="green", justify="right")

        table.add_row("Images Found", str(stats.total_images))
        table.add_row("  Still", str(stats.still_images))
        table.add_row("  Animated", str(stats.animated_images))
        table.add_row("Palettes Extracted", str(stats.succeeded))
        table.add_row("Failures", str(stats.failed))

        if stats.skipped_duplicates > 0:
            table.add_row("Duplicates Skipped", str(stats.skipped_duplicates))

        if stats.peak_concurrency > 0:
            table.add_row("Peak Concurrency", str(stats.peak_concurrency))

        if stats.elapsed_seconds > 0:
            rate = stats.total_images / stats.elapsed_seconds
            table.add_row("", "")  # Blank row
            table.add_row("Time Elapsed", f"{stats.elapsed_seconds:.1f}s")
            table.add_row("Processing Rate", f"{rate:.1f} images/sec")

        self._console.print(table)

    # --- Context Managers ---

    def __enter__(self) -> "RichProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        self.end_phase()


class QuietProgressReporter:
    """Minimal progress reporter that only shows warnings and errors."""

    def start_phase(self, name: str, total: int) -> None:
        pass

    def advance_phase(self, amount: int = 1) -> None:
        pass

    def end_phase(self) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        print(f"WARNING: {message}", file=sys.stderr)

    def error(self, message: str) -> None:
        print(f"ERROR: {message}", file=sys.stderr)

    def debug(self, message: str) -> None:
        pass

    def print_palette(self, image_name: str, colors: Sequence[str]) -> None:
        pass

    def print_header(self, title: str) -> None:
        pass

    def print_config(self, config_items: dict) -> None:
        pass

    def print_stats(self, stats: BatchStats) -> None:
        pass

    def __enter__(self) -> "QuietProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        pass
