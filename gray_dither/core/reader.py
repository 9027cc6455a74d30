"""Image decoding into grayscale pixel buffers.

Any raster format Pillow can open is accepted. Color images are reduced to
a single luma channel; transparent areas are flattened onto white first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from gray_dither.core.dither import PixelBuffer

logger = logging.getLogger(__name__)

# Full-scale value per high bit depth mode. 16-bit files often decode as
# 32-bit "I", so it shares the 16-bit range; float images are 0.0-1.0.
HIGH_DEPTH_RANGES: dict[str, float] = {
    "I;16": 65535.0,
    "I;16B": 65535.0,
    "I;16L": 65535.0,
    "I;16N": 65535.0,
    "I": 65535.0,
    "F": 1.0,
}


@dataclass
class LoadedImage:
    """A decoded image and what we learned about the source file."""

    path: Path
    format: str | None  # Pillow format name, e.g. "PNG"
    mode: str  # Source mode before grayscale conversion
    buffer: PixelBuffer

    @property
    def width(self) -> int:
        return self.buffer.width

    @property
    def height(self) -> int:
        return self.buffer.height


def to_grayscale(img: Image.Image) -> Image.Image:
    """Convert any Pillow image to mode "L"."""
    if img.mode == "L":
        return img
    if img.mode in ("RGBA", "LA", "PA") or (
        img.mode == "P" and "transparency" in img.info
    ):
        rgba = img.convert("RGBA")
        canvas = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        canvas.alpha_composite(rgba)
        return canvas.convert("L")
    if img.mode in HIGH_DEPTH_RANGES:
        # Map the mode's full range onto 0-255; values outside it are clipped
        full_scale = HIGH_DEPTH_RANGES[img.mode]
        arr = np.asarray(img, dtype=np.float64) * (255.0 / full_scale)
        return Image.fromarray(np.clip(np.rint(arr), 0, 255).astype(np.uint8))
    return img.convert("L")


def image_to_buffer(img: Image.Image) -> PixelBuffer:
    """Convert a Pillow image to a grayscale PixelBuffer."""
    gray = to_grayscale(img)
    arr = np.array(gray, dtype=np.uint8)
    return PixelBuffer(width=gray.width, height=gray.height, data=arr.ravel())


def load_grayscale(path: str | Path) -> LoadedImage:
    """Decode an image file into a grayscale buffer.

    Raises:
        FileNotFoundError: if `path` does not exist.
        ValueError: if the file is not a readable image or has no pixels.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if not path.is_file():
        raise ValueError(f"Not a file: {path}")

    try:
        with Image.open(path) as img:
            img.load()
            fmt = img.format
            mode = img.mode
            if img.width <= 0 or img.height <= 0:
                raise ValueError(f"Could not read image dimensions: {path}")
            buffer = image_to_buffer(img)
    except UnidentifiedImageError as e:
        raise ValueError(f"Cannot read image {path}: unrecognized format") from e
    except OSError as e:
        raise ValueError(f"Cannot read image {path}: {e}") from e

    logger.debug(
        "Loaded %s (%s, mode %s) as %dx%d grayscale",
        path, fmt, mode, buffer.width, buffer.height,
    )
    return LoadedImage(path=path, format=fmt, mode=mode, buffer=buffer)
