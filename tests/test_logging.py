"""Tests for terminal reporting and logging setup."""
import io
import logging

from rich.console import Console

from colorsucker.core.models import BatchStats
from colorsucker.logging.rich_logger import (
    QuietProgressReporter,
    RichProgressReporter,
    setup_logging,
    swatch_text,
)


def make_reporter(**kwargs) -> tuple[RichProgressReporter, io.StringIO]:
    buffer = io.StringIO()
    console = Console(file=buffer, width=120, color_system=None)
    return RichProgressReporter(console=console, **kwargs), buffer


class TestSwatchText:
    """Tests for swatch rendering."""

    def test_contains_hex_codes(self):
        text = swatch_text(["#ff0000", "#00ff00"])

        assert "#ff0000" in text.plain
        assert "#00ff00" in text.plain


class TestRichProgressReporter:
    """Tests for RichProgressReporter."""

    def test_print_palette(self):
        reporter, buffer = make_reporter()
        reporter.print_palette("red.png", ["#ff0000"])

        output = buffer.getvalue()
        assert "red.png" in output
        assert "#ff0000" in output

    def test_quiet_hides_info_but_not_warnings(self):
        reporter, buffer = make_reporter(quiet=True)
        reporter.info("scanning")
        reporter.print_palette("a.png", ["#000000"])
        reporter.warning("Failed to process image a.png")

        output = buffer.getvalue()
        assert "scanning" not in output
        assert "a.png" in output
        assert "#000000" not in output

    def test_debug_only_when_verbose(self):
        quiet, quiet_buffer = make_reporter()
        loud, loud_buffer = make_reporter(verbose=True)
        quiet.debug("details")
        loud.debug("details")

        assert "details" not in quiet_buffer.getvalue()
        assert "details" in loud_buffer.getvalue()

    def test_phase_lifecycle(self):
        reporter, _ = make_reporter()
        with reporter:
            reporter.start_phase("Extracting palettes", 2)
            reporter.advance_phase()
            reporter.advance_phase()
            reporter.end_phase()

        reporter.advance_phase()

    def test_restarting_phase_replaces_bar(self):
        """Test a second phase stops the first instead of stacking bars."""
        reporter, buffer = make_reporter()
        reporter.start_phase("Scanning", 1)
        reporter.start_phase("Extracting palettes", 3)
        reporter.advance_phase(3)
        reporter.end_phase()

        output = buffer.getvalue()
        assert "Extracting palettes" in output
        assert "3/3" in output

    def test_quiet_has_no_bar(self):
        reporter, buffer = make_reporter(quiet=True)
        reporter.start_phase("Extracting palettes", 2)
        reporter.advance_phase()
        reporter.end_phase()

        assert buffer.getvalue() == ""

    def test_print_header(self):
        reporter, buffer = make_reporter()
        reporter.print_header("colorsucker")

        assert "colorsucker" in buffer.getvalue()

    def test_print_stats(self):
        reporter, buffer = make_reporter()
        stats = BatchStats(total_images=3, succeeded=2, failed=1, peak_concurrency=2)
        reporter.print_stats(stats)

        output = buffer.getvalue()
        assert "Batch Complete" in output
        assert "Peak Concurrency" in output


class TestQuietProgressReporter:
    """Tests for QuietProgressReporter."""

    def test_only_warnings_and_errors(self, capsys):
        reporter = QuietProgressReporter()
        reporter.info("hello")
        reporter.print_palette("a.png", ["#ffffff"])
        reporter.warning("careful")
        reporter.error("broken")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "WARNING: careful" in captured.err
        assert "ERROR: broken" in captured.err
        assert "hello" not in captured.err


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_levels(self):
        console = Console(file=io.StringIO())
        logger = logging.getLogger("colorsucker")

        setup_logging(verbose=False, console=console)
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1

        setup_logging(verbose=True, console=console)
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_module_loggers_routed(self):
        buffer = io.StringIO()
        setup_logging(verbose=True, console=Console(file=buffer, width=120))

        logging.getLogger("colorsucker.services.pipeline").warning("staging unavailable")

        assert "staging unavailable" in buffer.getvalue()
