"""Tests for level palettes and nearest-level quantization."""

import numpy as np
import pytest

from gray_dither.core.errors import EmptyPaletteError
from gray_dither.core.levels import LevelPalette, nearest_level


class TestLevelPalette:
    def test_sorted_and_deduplicated(self):
        palette = LevelPalette([255, 0, 128, 0])
        assert palette.levels == (0, 128, 255)

    def test_empty_raises(self):
        with pytest.raises(EmptyPaletteError):
            LevelPalette([])

    def test_out_of_range(self):
        with pytest.raises(ValueError, match="outside"):
            LevelPalette([0, 256])
        with pytest.raises(ValueError, match="outside"):
            LevelPalette([-1])

    def test_rejects_floats(self):
        with pytest.raises(ValueError, match="integers"):
            LevelPalette([0, 127.5])

    def test_accepts_numpy_ints(self):
        palette = LevelPalette(np.array([0, 255], dtype=np.uint8))
        assert palette.levels == (0, 255)
        assert all(type(level) is int for level in palette)

    def test_sequence_protocol(self):
        palette = LevelPalette([0, 51, 102])
        assert len(palette) == 3
        assert palette[1] == 51
        assert 102 in palette
        assert 100 not in palette
        assert list(palette) == [0, 51, 102]

    def test_str(self):
        assert str(LevelPalette([0, 128, 255])) == "0, 128, 255"

    def test_hashable(self):
        assert LevelPalette([0, 255]) == LevelPalette([255, 0])
        assert len({LevelPalette([0, 255]), LevelPalette([255, 0])}) == 1


class TestUniform:
    def test_six_levels(self):
        assert LevelPalette.uniform(6).levels == (0, 51, 102, 153, 204, 255)

    def test_default_is_six(self):
        assert LevelPalette.uniform() == LevelPalette.uniform(6)

    def test_binary(self):
        assert LevelPalette.uniform(2).levels == (0, 255)

    def test_four_levels(self):
        assert LevelPalette.uniform(4).levels == (0, 85, 170, 255)

    def test_single_level(self):
        assert LevelPalette.uniform(1).levels == (0,)

    def test_full_range(self):
        assert LevelPalette.uniform(256).levels == tuple(range(256))

    def test_zero_levels(self):
        with pytest.raises(EmptyPaletteError):
            LevelPalette.uniform(0)

    def test_too_many_levels(self):
        with pytest.raises(ValueError, match="at most 256"):
            LevelPalette.uniform(257)


class TestParse:
    def test_basic(self):
        assert LevelPalette.parse("0,128,255").levels == (0, 128, 255)

    def test_whitespace_and_trailing_comma(self):
        assert LevelPalette.parse(" 255, 0 ,").levels == (0, 255)

    def test_not_a_number(self):
        with pytest.raises(ValueError, match="Invalid palette"):
            LevelPalette.parse("0,abc")

    def test_empty_string(self):
        with pytest.raises(EmptyPaletteError):
            LevelPalette.parse("")


class TestNearestLevel:
    LEVELS = [0, 51, 102, 153, 204, 255]

    def test_exact_match(self):
        assert nearest_level(102, self.LEVELS) == 102

    def test_closest(self):
        assert nearest_level(60, self.LEVELS) == 51
        assert nearest_level(80, self.LEVELS) == 102

    def test_tie_goes_to_lower(self):
        assert nearest_level(25.5, self.LEVELS) == 0
        assert nearest_level(127.5, [0, 255]) == 0

    def test_out_of_range_values(self):
        assert nearest_level(-40.0, self.LEVELS) == 0
        assert nearest_level(300.0, self.LEVELS) == 255

    def test_single_level(self):
        assert nearest_level(250, [128]) == 128

    def test_accepts_palette(self):
        assert nearest_level(200, LevelPalette.uniform(2)) == 255

    def test_returns_int(self):
        assert type(nearest_level(np.float64(60.2), self.LEVELS)) is int

    def test_empty_palette(self):
        with pytest.raises(EmptyPaletteError):
            nearest_level(10, [])
