"""Output level palettes and nearest-level quantization.

A palette is the fixed, ascending set of intensities (0-255) that a dithered
image may contain.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Iterator, Sequence

from gray_dither.core.errors import EmptyPaletteError

MAX_INTENSITY = 255
DEFAULT_LEVEL_COUNT = 6


@dataclass(frozen=True)
class LevelPalette:
    """Immutable ascending tuple of distinct intensities."""

    levels: tuple[int, ...]

    def __post_init__(self) -> None:
        values: set[int] = set()
        for raw in self.levels:
            if isinstance(raw, bool):
                raise ValueError(f"Palette levels must be integers, got {raw!r}")
            try:
                # Accepts numpy integer scalars, rejects floats
                level = operator.index(raw)
            except TypeError:
                raise ValueError(f"Palette levels must be integers, got {raw!r}") from None
            if not 0 <= level <= MAX_INTENSITY:
                raise ValueError(
                    f"Palette level {level} outside 0-{MAX_INTENSITY}"
                )
            values.add(level)
        if not values:
            raise EmptyPaletteError()
        object.__setattr__(self, "levels", tuple(sorted(values)))

    @classmethod
    def uniform(cls, count: int = DEFAULT_LEVEL_COUNT) -> LevelPalette:
        """Build `count` equally spaced levels spanning 0..255.

        uniform(6) gives 0, 51, 102, 153, 204, 255. A single level is black.
        """
        if count < 1:
            raise EmptyPaletteError(f"Level count must be at least 1, got {count}")
        if count > MAX_INTENSITY + 1:
            raise ValueError(
                f"Level count must be at most {MAX_INTENSITY + 1}, got {count}"
            )
        if count == 1:
            return cls((0,))
        step = MAX_INTENSITY / (count - 1)
        return cls(tuple(round(i * step) for i in range(count)))

    @classmethod
    def parse(cls, text: str) -> LevelPalette:
        """Parse a comma-separated list such as "0,128,255"."""
        parts = [p.strip() for p in text.split(",") if p.strip()]
        try:
            values = [int(p) for p in parts]
        except ValueError as e:
            raise ValueError(f"Invalid palette {text!r}: {e}") from e
        return cls(values)

    def __iter__(self) -> Iterator[int]:
        return iter(self.levels)

    def __len__(self) -> int:
        return len(self.levels)

    def __getitem__(self, idx: int) -> int:
        return self.levels[idx]

    def __contains__(self, value: object) -> bool:
        return value in self.levels

    def __str__(self) -> str:
        return ", ".join(str(level) for level in self.levels)


def nearest_level(value: float, palette: Sequence[int]) -> int:
    """Return the palette level closest to `value`.

    `value` may lie outside 0-255 after error accumulation. On a tie the
    first (lowest) level wins, since a level only replaces the current best
    on a strict improvement.

    Raises:
        EmptyPaletteError: if `palette` has no levels.
    """
    if len(palette) == 0:
        raise EmptyPaletteError()

    nearest = palette[0]
    min_distance = abs(value - nearest)
    for level in palette:
        distance = abs(value - level)
        if distance < min_distance:
            min_distance = distance
            nearest = level
    return int(nearest)
