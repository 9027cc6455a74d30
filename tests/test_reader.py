"""Tests for image decoding."""

import numpy as np
import pytest
from PIL import Image

from gray_dither.core.reader import (
    LoadedImage,
    image_to_buffer,
    load_grayscale,
    to_grayscale,
)


@pytest.fixture
def gray_png(tmp_path):
    """4x3 grayscale gradient saved as PNG."""
    arr = np.arange(12, dtype=np.uint8).reshape(3, 4) * 20
    path = tmp_path / "gradient.png"
    Image.fromarray(arr).save(str(path))
    return path


class TestLoadGrayscale:
    def test_loads_gray_png(self, gray_png):
        loaded = load_grayscale(gray_png)
        assert isinstance(loaded, LoadedImage)
        assert loaded.format == "PNG"
        assert loaded.mode == "L"
        assert (loaded.width, loaded.height) == (4, 3)
        assert loaded.buffer.data.tolist() == [i * 20 for i in range(12)]

    def test_accepts_str_path(self, gray_png):
        loaded = load_grayscale(str(gray_png))
        assert loaded.path == gray_png

    def test_color_image_converted(self, tmp_path):
        path = tmp_path / "red.png"
        img = Image.new("RGB", (5, 2), (255, 0, 0))
        img.save(str(path))

        loaded = load_grayscale(path)
        expected = img.convert("L").getpixel((0, 0))
        assert loaded.mode == "RGB"
        assert loaded.buffer.data.tolist() == [expected] * 10

    def test_transparent_flattened_to_white(self, tmp_path):
        path = tmp_path / "clear.png"
        Image.new("RGBA", (3, 3), (0, 0, 0, 0)).save(str(path))

        loaded = load_grayscale(path)
        assert loaded.buffer.data.tolist() == [255] * 9

    def test_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_grayscale(tmp_path / "missing.png")

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "notes.png"
        path.write_text("definitely not a png")
        with pytest.raises(ValueError, match="Cannot read image"):
            load_grayscale(path)

    def test_directory(self, tmp_path):
        with pytest.raises(ValueError, match="Not a file"):
            load_grayscale(tmp_path)


class TestToGrayscale:
    def test_l_passthrough(self):
        img = Image.new("L", (2, 2), 77)
        assert to_grayscale(img) is img

    def test_16_bit_rescaled(self):
        arr = np.array([[0, 65535]], dtype=np.uint16)
        img = Image.fromarray(arr.astype(np.int32))
        gray = to_grayscale(img)
        assert gray.mode == "L"
        assert np.array(gray).tolist() == [[0, 255]]

    def test_image_to_buffer(self):
        img = Image.new("RGB", (3, 2), (10, 10, 10))
        buf = image_to_buffer(img)
        assert (buf.width, buf.height) == (3, 2)
        assert buf.data.tolist() == [10] * 6


class TestHighBitDepth:
    def test_16_bit_mid_gray(self, tmp_path):
        path = tmp_path / "mid.png"
        Image.fromarray(np.full((4, 4), 32768, dtype=np.uint16)).save(str(path))
        loaded = load_grayscale(path)
        assert loaded.buffer.data.tolist() == [128] * 16

    def test_dark_16_bit_stays_dark(self):
        img = Image.fromarray(np.full((2, 2), 200, dtype=np.uint16))
        gray = to_grayscale(img)
        assert np.array(gray).tolist() == [[1, 1], [1, 1]]

    def test_float_uses_unit_range(self):
        img = Image.fromarray(np.array([[0.0, 0.5, 1.0, 2.0]], dtype=np.float32))
        gray = to_grayscale(img)
        assert np.array(gray).tolist() == [[0, 128, 255, 255]]
