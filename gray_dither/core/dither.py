"""Floyd-Steinberg error diffusion dithering.

Error kernel (weights / 16), where * is the pixel being quantized:

           *   7
       3   5   1
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from gray_dither.core.errors import EmptyPaletteError, InvalidDimensionsError
from gray_dither.core.levels import MAX_INTENSITY, nearest_level

logger = logging.getLogger(__name__)

# (dx, dy, weight) for each neighbor that receives a share of the error
FLOYD_STEINBERG_KERNEL: tuple[tuple[int, int, float], ...] = (
    (1, 0, 7 / 16),
    (-1, 1, 3 / 16),
    (0, 1, 5 / 16),
    (1, 1, 1 / 16),
)


@dataclass
class PixelBuffer:
    """Grayscale image stored as flat row-major intensities.

    The pixel at column x, row y lives at ``data[y * width + x]``.
    """

    width: int
    height: int
    data: np.ndarray  # 1D uint8, length width * height

    @classmethod
    def from_array(cls, gray: np.ndarray) -> PixelBuffer:
        """Wrap a 2D (height, width) array of 0-255 intensities."""
        if gray.ndim != 2:
            raise InvalidDimensionsError(
                f"Expected a 2D grayscale array, got shape {gray.shape}"
            )
        h, w = gray.shape
        flat = np.clip(np.rint(gray.astype(np.float64)), 0, MAX_INTENSITY)
        return cls(width=w, height=h, data=flat.astype(np.uint8).ravel())

    def to_array(self) -> np.ndarray:
        """Return the pixels as a (height, width) array."""
        return np.asarray(self.data).reshape(self.height, self.width)

    def unique_values(self) -> list[int]:
        """Sorted distinct intensities present in the buffer."""
        return [int(v) for v in np.unique(self.data)]

    def validate(self) -> None:
        """Check that dimensions are non-negative and match the data length.

        Raises:
            InvalidDimensionsError: on any mismatch.
        """
        if self.width < 0 or self.height < 0:
            raise InvalidDimensionsError(
                f"Dimensions must be non-negative, got {self.width}x{self.height}"
            )
        expected = self.width * self.height
        if len(self.data) != expected:
            raise InvalidDimensionsError(
                f"Buffer holds {len(self.data)} values, "
                f"expected {self.width}x{self.height} = {expected}"
            )


def diffusion_weights(
    x: int, y: int, width: int, height: int
) -> list[tuple[tuple[int, int], float]]:
    """Neighbors of (x, y) that receive error, with their weights.

    Neighbors outside the grid are left out, so pixels on the right, left
    or bottom edge give away less than their full error.
    """
    targets = []
    for dx, dy, weight in FLOYD_STEINBERG_KERNEL:
        nx, ny = x + dx, y + dy
        if 0 <= nx < width and ny < height:
            targets.append(((nx, ny), weight))
    return targets


def diffuse(buffer: PixelBuffer, palette: Sequence[int]) -> PixelBuffer:
    """Apply Floyd-Steinberg dithering to a grayscale buffer.

    Pixels are visited in raster order. Each one is snapped to its nearest
    palette level and the rounding error is pushed onto the neighbors that
    have not been visited yet, so later pixels see the error of earlier ones.

    Args:
        buffer: input image. It is not modified.
        palette: ascending output levels, e.g. a LevelPalette.

    Returns:
        New buffer with the same dimensions whose values all belong to
        `palette`.

    Raises:
        EmptyPaletteError: if `palette` is empty.
        InvalidDimensionsError: if the buffer shape is inconsistent.
    """
    if len(palette) == 0:
        raise EmptyPaletteError()
    buffer.validate()
    levels = tuple(palette)

    w, h = buffer.width, buffer.height
    # Float working copy keeps the fractional part of the diffused error.
    # A plain list avoids numpy scalar overhead in the per-pixel loop.
    work = np.asarray(buffer.data, dtype=np.float64).tolist()

    for y in range(h):
        row = y * w
        for x in range(w):
            old = work[row + x]
            new = nearest_level(old, levels)
            work[row + x] = new
            err = old - new
            if err == 0:
                continue

            # Same targets as diffusion_weights(), unrolled for speed
            if x + 1 < w:
                work[row + x + 1] += err * 7 / 16
            if y + 1 < h:
                below = row + w + x
                if x - 1 >= 0:
                    work[below - 1] += err * 3 / 16
                work[below] += err * 5 / 16
                if x + 1 < w:
                    work[below + 1] += err * 1 / 16

    logger.debug("Dithered %dx%d buffer to %d levels", w, h, len(palette))

    out = np.clip(np.rint(np.array(work, dtype=np.float64)), 0, MAX_INTENSITY)
    out = out.astype(np.uint8)
    return PixelBuffer(width=w, height=h, data=out)


def dither_array(gray: np.ndarray, palette: Sequence[int]) -> np.ndarray:
    """Dither a 2D array of 0-255 intensities and return a uint8 array."""
    return diffuse(PixelBuffer.from_array(gray), palette).to_array()
