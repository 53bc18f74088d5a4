import numpy as np
import pytest

from size_target.pixels import PixelBuffer
from size_target.resize import reduce, scaled_dimensions


def test_halves_dimensions(photo):
    before = photo.pixels.copy()
    smaller = reduce(photo, 0.5)

    assert (smaller.width, smaller.height) == (320, 240)
    assert smaller.mode == "RGB"
    np.testing.assert_array_equal(photo.pixels, before)


def test_scale_rounding():
    assert scaled_dimensions(200, 100, 0.85) == (170, 85)


def test_never_below_one_pixel():
    tiny = PixelBuffer(np.zeros((3, 3, 3), dtype=np.uint8))
    reduced = reduce(tiny, 0.1)
    assert (reduced.width, reduced.height) == (1, 1)


def test_full_scale_returns_same_buffer(photo):
    assert reduce(photo, 1.0) is photo


def test_keeps_alpha(rgba):
    reduced = reduce(rgba, 0.5)
    assert reduced.mode == "RGBA"
    assert (reduced.width, reduced.height) == (24, 24)


def test_area_average():
    # 2x2 checkerboard averages to mid-gray
    pixels = np.array([[0, 255], [255, 0]], dtype=np.uint8)
    reduced = reduce(PixelBuffer(pixels), 0.5)
    assert reduced.pixels.shape == (1, 1)
    assert 126 <= int(reduced.pixels[0, 0]) <= 129


@pytest.mark.parametrize("scale", [0, -0.5, 1.5])
def test_rejects_bad_scale(photo, scale):
    with pytest.raises(ValueError):
        reduce(photo, scale)
