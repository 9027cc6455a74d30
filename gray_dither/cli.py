"""Command-line interface for gray_dither.

Human-readable logging by default, structured JSON with --json for scripts.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from gray_dither.core.errors import DitherError, OutputError
from gray_dither.core.levels import DEFAULT_LEVEL_COUNT, LevelPalette
from gray_dither.core.processor import (
    DEFAULT_COMPARISON,
    DEFAULT_OUTPUT,
    DitherResult,
    Settings,
    process_file,
)
from gray_dither.core.reader import LoadedImage
from gray_dither.core.writer import DEFAULT_PADDING

console = Console(stderr=True)
logger = logging.getLogger("gray_dither")


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Route package logging through a Rich handler on stderr."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=False,
        markup=True,
        rich_tracebacks=True,
    )
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {number}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gray-dither",
        description=(
            "Reduce a grayscale image to a few intensity levels with "
            "Floyd-Steinberg error diffusion."
        ),
    )
    parser.add_argument("input", help="Input image path (converted to grayscale).")
    parser.add_argument(
        "-o", "--output",
        default=DEFAULT_OUTPUT,
        help=f"Dithered output image (default: {DEFAULT_OUTPUT}).",
    )

    comparison = parser.add_mutually_exclusive_group()
    comparison.add_argument(
        "--comparison",
        default=DEFAULT_COMPARISON,
        help=f"Side-by-side comparison image (default: {DEFAULT_COMPARISON}).",
    )
    comparison.add_argument(
        "--no-comparison",
        action="store_true",
        help="Do not write the comparison image.",
    )

    palette = parser.add_mutually_exclusive_group()
    palette.add_argument(
        "--levels",
        type=int,
        default=DEFAULT_LEVEL_COUNT,
        help=(
            "Number of equally spaced gray levels from 0 to 255 "
            f"(default: {DEFAULT_LEVEL_COUNT})."
        ),
    )
    palette.add_argument(
        "--palette",
        help='Explicit comma-separated levels, e.g. "0,85,170,255".',
    )

    parser.add_argument(
        "--padding",
        type=_non_negative_int,
        default=DEFAULT_PADDING,
        help=f"Gap between comparison halves in pixels (default: {DEFAULT_PADDING}).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output structured JSON (pipe-friendly, no log chatter).",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging.",
    )
    verbosity.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only show errors.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show stack traces on error.",
    )
    return parser


def _fail(args: argparse.Namespace, message: str, code: str) -> NoReturn:
    """Report an error and exit with status 1."""
    if args.json:
        if args.debug:
            import traceback
            traceback.print_exc(file=sys.stderr)
        err = {"status": "error", "error": message, "code": code}
        print(json.dumps(err), file=sys.stderr)
    else:
        logger.error(f"[bold red]Error:[/] {escape(message)}", exc_info=args.debug)
    sys.exit(1)


def _settings_from_args(args: argparse.Namespace) -> Settings:
    if args.palette is not None:
        levels = LevelPalette.parse(args.palette)
    else:
        levels = LevelPalette.uniform(args.levels)
    return Settings(
        levels=levels,
        comparison=not args.no_comparison,
        padding=args.padding,
    )


def _report(result: DitherResult) -> None:
    values = ", ".join(str(v) for v in result.unique_values)
    logger.info(f"Unique pixel values in encoded image: {values}")
    logger.info(f"Number of unique values: {result.unique_count}")
    logger.info(f"[green]✓[/] Encoded image saved as: [cyan]{escape(str(result.output_path))}[/]")
    if result.comparison_path is not None:
        logger.info(
            f"[green]✓[/] Comparison image saved as: [cyan]{escape(str(result.comparison_path))}[/]"
        )
    logger.info("[bold green]Done![/]")


def _result_json(result: DitherResult) -> dict:
    return {
        "status": "success",
        "input": str(result.input_path),
        "output": str(result.output_path),
        "comparison": (
            str(result.comparison_path) if result.comparison_path else None
        ),
        "settings": {
            "levels": list(result.palette.levels),
        },
        "metadata": {
            "width": result.width,
            "height": result.height,
            "unique_values": list(result.unique_values),
            "elapsed_ms": round(result.elapsed_ms, 3),
        },
    }


def _log_loaded(loaded: LoadedImage) -> None:
    logger.info(f"Image size: {loaded.width} x {loaded.height} pixels")
    logger.info("Processing...")


def run(args: argparse.Namespace) -> DitherResult:
    """Dither one file as described by parsed arguments."""
    try:
        settings = _settings_from_args(args)
    except ValueError as e:
        _fail(args, str(e), "INVALID_PALETTE")

    logger.info("[bold]=== Error Diffusion (Floyd-Steinberg) ===[/]")
    logger.info(
        f"Using {len(settings.levels)} grayscale levels: {settings.levels}"
    )

    input_path = Path(args.input).resolve()
    if not input_path.exists():
        _fail(args, f"File not found: {input_path}", "FILE_NOT_FOUND")

    logger.info(f"Loading image: [cyan]{escape(str(input_path))}[/]")
    comparison_path = None if args.no_comparison else Path(args.comparison).resolve()

    try:
        result = process_file(
            input_path,
            Path(args.output).resolve(),
            settings,
            comparison_path=comparison_path,
            on_loaded=_log_loaded,
        )
    except OutputError as e:
        _fail(args, str(e), "PROCESSING_ERROR")
    except FileNotFoundError as e:
        _fail(args, str(e), "FILE_NOT_FOUND")
    except DitherError as e:
        _fail(args, str(e), "PROCESSING_ERROR")
    except ValueError as e:
        _fail(args, str(e), "INVALID_INPUT")
    except OSError as e:
        _fail(args, str(e), "PROCESSING_ERROR")

    return result


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose, quiet=args.quiet or args.json)

    result = run(args)

    if args.json:
        print(json.dumps(_result_json(result), indent=2))
    else:
        _report(result)
