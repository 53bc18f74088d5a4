import numpy as np
import pytest

from size_target.pixels import PixelBuffer


def make_photo(width=640, height=480, seed=1234):
    """Colourful smooth bands plus sensor-like noise."""
    rng = np.random.default_rng(seed)
    y, x = np.mgrid[0:height, 0:width]
    r = 128 + 100 * np.sin(x / 37.0)
    g = 128 + 100 * np.cos(y / 23.0)
    b = 128 + 60 * np.sin((x + y) / 51.0)
    image = np.stack([r, g, b], axis=-1) + rng.normal(0, 12, (height, width, 3))
    return PixelBuffer(np.clip(image, 0, 255).astype(np.uint8))


@pytest.fixture
def photo():
    return make_photo()


@pytest.fixture
def noise_rgb():
    rng = np.random.default_rng(7)
    return PixelBuffer(rng.integers(0, 256, (64, 64, 3), dtype=np.uint8))


@pytest.fixture
def solid():
    return PixelBuffer(np.full((16, 16, 3), (200, 30, 60), dtype=np.uint8))


@pytest.fixture
def rgba():
    rng = np.random.default_rng(3)
    pixels = rng.integers(0, 256, (48, 48, 4), dtype=np.uint8)
    pixels[:, :24, 3] = 0
    return PixelBuffer(pixels)


@pytest.fixture
def png_file(tmp_path, photo):
    path = tmp_path / "photo.png"
    photo.to_pil().save(path, format="PNG")
    return path


@pytest.fixture
def photo_factory():
    return make_photo
