"""Dithering pipeline.

Load → grayscale → error diffusion → save output → save comparison.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from gray_dither.core.dither import PixelBuffer, diffuse
from gray_dither.core.levels import LevelPalette
from gray_dither.core.reader import LoadedImage, load_grayscale
from gray_dither.core.writer import (
    DEFAULT_PADDING,
    buffer_to_image,
    check_output_path,
    compose_side_by_side,
    write_image,
)

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "error_diffusion_output.png"
DEFAULT_COMPARISON = "comparison.png"


@dataclass(frozen=True)
class Settings:
    """Processing settings that affect output."""

    levels: LevelPalette = field(default_factory=LevelPalette.uniform)
    comparison: bool = True
    padding: int = DEFAULT_PADDING

    def __post_init__(self) -> None:
        if self.padding < 0:
            raise ValueError(f"Padding must be non-negative, got {self.padding}")


@dataclass
class DitherResult:
    """Summary of one processed file."""

    input_path: Path
    output_path: Path
    comparison_path: Path | None
    width: int
    height: int
    palette: LevelPalette
    unique_values: tuple[int, ...]
    elapsed_ms: float

    @property
    def unique_count(self) -> int:
        return len(self.unique_values)


def process_image(buffer: PixelBuffer, settings: Settings) -> PixelBuffer:
    """Dither an in-memory buffer with the configured palette."""
    return diffuse(buffer, settings.levels)


def process_file(
    input_path: str | Path,
    output_path: str | Path = DEFAULT_OUTPUT,
    settings: Settings | None = None,
    comparison_path: str | Path | None = None,
    on_loaded: Callable[[LoadedImage], None] | None = None,
) -> DitherResult:
    """Run the full pipeline for one image file.

    Output paths are checked before decoding and both images are rendered
    in memory before the first write. If the comparison cannot be written,
    the dithered output is removed again, so a failure never leaves
    partial output behind.

    Args:
        on_loaded: optional callback(loaded_image), called after decoding
            and before diffusion.

    Raises:
        FileNotFoundError: if the input does not exist.
        ValueError: for unreadable input or unsupported output formats.
        OutputError: if an output directory is missing or a write fails.
    """
    settings = settings or Settings()
    output_path = Path(output_path)
    if not settings.comparison:
        comparison_path = None
    elif comparison_path is not None:
        comparison_path = Path(comparison_path)

    check_output_path(output_path)
    if comparison_path is not None:
        check_output_path(comparison_path)

    loaded = load_grayscale(input_path)
    if on_loaded:
        on_loaded(loaded)
    logger.debug("Palette: %s", settings.levels)

    start = time.perf_counter()
    dithered = process_image(loaded.buffer, settings)
    elapsed_ms = (time.perf_counter() - start) * 1000.0

    output_img = buffer_to_image(dithered)
    comparison_img = None
    if comparison_path is not None:
        comparison_img = compose_side_by_side(
            loaded.buffer, dithered, settings.padding
        )

    write_image(output_img, output_path)
    if comparison_img is not None:
        try:
            write_image(comparison_img, comparison_path)
        except Exception:
            output_path.unlink(missing_ok=True)
            raise

    return DitherResult(
        input_path=loaded.path,
        output_path=output_path,
        comparison_path=comparison_path,
        width=dithered.width,
        height=dithered.height,
        palette=settings.levels,
        unique_values=tuple(dithered.unique_values()),
        elapsed_ms=elapsed_ms,
    )
