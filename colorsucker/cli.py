"""CLI with subcommands: batch, extract."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from .core.config import ConfigFile, IsolationMode, SuckerConfig
from .core.errors import ColorSuckerError, InputDiscoveryError
from .logging.rich_logger import QuietProgressReporter, RichProgressReporter, setup_logging


DEFAULT_CONFIG_NAME = "sucker.config.json"


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="colorsucker",
        description="Extract dominant colour palettes from a folder of images.",
    )

    # Global options
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ============ BATCH command ============
    batch_parser = subparsers.add_parser(
        "batch",
        help="Extract palettes for every image in a directory",
    )
    batch_parser.add_argument(
        "images_dir",
        nargs="?",
        type=Path,
        default=None,
        help="Directory with .jpg/.jpeg/.png/.gif images (default: from config)",
    )
    batch_parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help=f"JSON config file (default: ./{DEFAULT_CONFIG_NAME} if present)",
    )
    batch_parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output directory (default: ./output)",
    )
    batch_parser.add_argument(
        "-k", "--palette-size",
        type=int,
        default=None,
        help="Number of colours to extract per image (default: 5)",
    )
    batch_parser.add_argument(
        "--max-frames",
        type=int,
        default=None,
        help="Maximum frames sampled per GIF, 0 for all (default: 10)",
    )
    batch_parser.add_argument(
        "-w", "-j", "--workers",
        dest="workers",
        type=int,
        default=None,
        help="Maximum concurrent extractions (default: 5)",
    )
    batch_parser.add_argument(
        "--isolation",
        type=str,
        choices=["thread", "process"],
        default=None,
        help="Run extractions in threads or child processes (default: thread)",
    )
    batch_parser.add_argument(
        "--no-failures",
        action="store_true",
        help="Do not write failures.json",
    )
    batch_parser.add_argument(
        "--keep-staging",
        action="store_true",
        help="Keep the temporary frame directory after the run",
    )

    # ============ EXTRACT command ============
    extract_parser = subparsers.add_parser(
        "extract",
        help="Extract the palette of a single image",
    )
    extract_parser.add_argument(
        "image",
        type=Path,
        help="Image file",
    )
    extract_parser.add_argument(
        "-k", "--palette-size",
        type=int,
        default=5,
        help="Number of colours to extract (default: 5)",
    )

    return parser


def build_config(args: argparse.Namespace) -> SuckerConfig:
    """Merge config file values with CLI flags. CLI flags win."""
    config_path = args.config
    if config_path is None and Path(DEFAULT_CONFIG_NAME).is_file():
        config_path = Path(DEFAULT_CONFIG_NAME)

    if config_path is not None:
        config = ConfigFile.load(config_path).to_config(config_path.resolve().parent)
    else:
        if args.images_dir is None:
            raise ValueError("An images directory or a config file is required")
        config = SuckerConfig(
            images_dir=args.images_dir.resolve(),
            output_dir=Path("output").resolve(),
        )

    overrides: dict = {}
    if args.images_dir is not None:
        overrides["images_dir"] = args.images_dir.resolve()
    if args.output is not None:
        overrides["output_dir"] = args.output.resolve()
        overrides["staging_dir"] = args.output.resolve() / "temp_frames"
    if args.palette_size is not None:
        overrides["palette_size"] = args.palette_size
    if args.max_frames is not None:
        overrides["max_gif_frames"] = args.max_frames or None
    if args.workers is not None:
        overrides["workers"] = args.workers
    if args.isolation is not None:
        overrides["isolation"] = IsolationMode(args.isolation)
    if args.no_failures:
        overrides["write_failures"] = False
    if args.keep_staging:
        overrides["keep_staging"] = True

    return config.with_overrides(**overrides) if overrides else config


# ============ Command Handlers ============

def cmd_batch(args: argparse.Namespace, reporter) -> int:
    """Handle the batch command."""
    from .services.pipeline import PaletteOrchestrator, build_dependencies

    config = build_config(args)

    reporter.print_header("colorsucker batch")
    reporter.print_config({
        "Images Directory": str(config.images_dir),
        "Output": str(config.output_path),
        "Palette Size": config.palette_size,
        "Max GIF Frames": config.max_gif_frames or "all",
        "Workers": config.workers,
        "Isolation": config.isolation.value,
    })

    deps = build_dependencies(config, reporter)
    try:
        orchestrator = PaletteOrchestrator(config=config, deps=deps)
        stats = orchestrator.run()
        reporter.print_stats(stats)
        return 0 if stats.failed == 0 else 1
    finally:
        deps.unit.close()


def cmd_extract(args: argparse.Namespace, reporter) -> int:
    """Handle the extract command."""
    from .services.extraction import extract_palette

    reporter.info(f"Extracting palette from image: {args.image}")
    colors = extract_palette(image_path=args.image, palette_size=args.palette_size)
    reporter.print_palette(args.image.name, colors)
    print("\n".join(colors))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    verbose = getattr(args, "verbose", False)
    setup_logging(verbose=verbose)

    # Create reporter
    if getattr(args, "quiet", False):
        reporter = QuietProgressReporter()
    else:
        reporter = RichProgressReporter(verbose=verbose)

    # No command specified - show help
    if not args.command:
        parser.print_help()
        return 0

    # Dispatch to command handler
    try:
        if args.command == "batch":
            return cmd_batch(args, reporter)
        elif args.command == "extract":
            return cmd_extract(args, reporter)
        else:
            reporter.error(f"Unknown command: {args.command}")
            return 1

    except KeyboardInterrupt:
        # Clean exit on Ctrl+C - no stack trace
        return 130
    except InputDiscoveryError as e:
        reporter.error(str(e))
        return 1
    except (ColorSuckerError, ValueError, OSError) as e:
        reporter.error(f"Error: {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
