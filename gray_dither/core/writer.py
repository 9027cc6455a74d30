"""Save dithered buffers and side-by-side comparison images.

Output format is picked from the file extension. Lossy formats are refused
because re-encoding would put intensities back that are not in the palette.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image

from gray_dither.core.dither import PixelBuffer
from gray_dither.core.errors import OutputError

logger = logging.getLogger(__name__)

DEFAULT_PADDING = 20
BACKGROUND = 255  # White gap between the two halves of a comparison

# suffix -> (Pillow format, extra save options)
OUTPUT_FORMATS: dict[str, tuple[str, dict]] = {
    ".png": ("PNG", {}),
    ".bmp": ("BMP", {}),
    ".gif": ("GIF", {}),
    ".tif": ("TIFF", {}),
    ".tiff": ("TIFF", {}),
    ".webp": ("WEBP", {"lossless": True}),
}
LOSSY_SUFFIXES = (".jpg", ".jpeg")


def output_format(path: Path) -> tuple[str, dict]:
    """Look up the Pillow format and save options for an output path.

    Raises:
        ValueError: for lossy or unknown extensions.
    """
    suffix = path.suffix.lower()
    if suffix in LOSSY_SUFFIXES:
        raise ValueError(
            f"Lossy output format not allowed: {suffix} (use .png instead)"
        )
    if suffix not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format: {suffix or path.name}")
    return OUTPUT_FORMATS[suffix]


def buffer_to_image(buffer: PixelBuffer) -> Image.Image:
    """Build a mode "L" Pillow image from a buffer."""
    buffer.validate()
    if buffer.width == 0 or buffer.height == 0:
        return Image.new("L", (buffer.width, buffer.height))
    arr = np.ascontiguousarray(buffer.to_array(), dtype=np.uint8)
    return Image.fromarray(arr)


def check_output_path(path: Path) -> tuple[str, dict]:
    """Validate an output path before anything is written.

    Returns the Pillow format and save options for the path.

    Raises:
        ValueError: for lossy or unknown extensions.
        OutputError: if the parent directory does not exist.
    """
    fmt, options = output_format(path)
    parent = path.parent
    if not parent.is_dir():
        raise OutputError(f"Output directory does not exist: {parent}")
    return fmt, options


def write_image(img: Image.Image, path: str | Path) -> Path:
    """Encode an already rendered image to `path`. Returns the path written.

    Raises:
        ValueError: for unsupported extensions or an empty image.
        OutputError: if the file cannot be written.
    """
    path = Path(path)
    fmt, options = check_output_path(path)
    if img.width == 0 or img.height == 0:
        raise ValueError(f"Cannot save an empty {img.width}x{img.height} image")
    try:
        img.save(str(path), format=fmt, **options)
    except OSError as e:
        raise OutputError(f"Cannot write {path}: {e}") from e
    logger.debug("Wrote %s (%s, %dx%d)", path, fmt, img.width, img.height)
    return path


def save_image(buffer: PixelBuffer, path: str | Path) -> Path:
    """Encode `buffer` to `path`. Returns the path written."""
    return write_image(buffer_to_image(buffer), path)


def compose_side_by_side(
    original: PixelBuffer,
    dithered: PixelBuffer,
    padding: int = DEFAULT_PADDING,
    background: int = BACKGROUND,
) -> Image.Image:
    """Place the original on the left and the dithered image on the right.

    The halves are separated by `padding` pixels of `background`; a shorter
    half is top-aligned over the same background.
    """
    if padding < 0:
        raise ValueError(f"Padding must be non-negative, got {padding}")

    left = buffer_to_image(original)
    right = buffer_to_image(dithered)
    width = left.width + padding + right.width
    height = max(left.height, right.height)

    canvas = Image.new("L", (width, height), background)
    canvas.paste(left, (0, 0))
    canvas.paste(right, (left.width + padding, 0))
    return canvas


def save_comparison(
    original: PixelBuffer,
    dithered: PixelBuffer,
    path: str | Path,
    padding: int = DEFAULT_PADDING,
) -> Path:
    """Write a side-by-side comparison image. Returns the path written."""
    path = Path(path)
    # Validate the path before doing any compositing work
    check_output_path(path)
    return write_image(compose_side_by_side(original, dithered, padding), path)
