"""
pixels.py - Decoded image buffers.

A PixelBuffer owns a read-only uint8 numpy array:
- (h, w)     L    (grayscale)
- (h, w, 3)  RGB
- (h, w, 4)  RGBA

Decoding from files/bytes lives here too, since it is the only place a
DecodeError can come from.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import DecodeError

logger = logging.getLogger(__name__)

MODES_BY_CHANNELS = {1: "L", 3: "RGB", 4: "RGBA"}


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Immutable decoded image."""
    pixels: np.ndarray

    def __post_init__(self):
        pixels = self.pixels
        if not isinstance(pixels, np.ndarray):
            raise ValueError(f"Expected numpy array, got {type(pixels).__name__}")
        if pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")
        if pixels.ndim == 3 and pixels.shape[2] == 1:
            pixels = pixels[:, :, 0]
        if pixels.ndim == 2:
            pass
        elif pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise ValueError(f"Unsupported pixel layout: shape {pixels.shape}")
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise ValueError(f"Empty image: shape {pixels.shape}")

        # Own the memory, then lock it
        owned = np.array(pixels, dtype=np.uint8, order="C", copy=True)
        owned.flags.writeable = False
        object.__setattr__(self, "pixels", owned)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else self.pixels.shape[2]

    @property
    def mode(self) -> str:
        return MODES_BY_CHANNELS[self.channels]

    @property
    def has_alpha(self) -> bool:
        return self.channels == 4

    @classmethod
    def from_pil(cls, image: Image.Image) -> "PixelBuffer":
        """Wrap a PIL image, normalising its mode to L, RGB or RGBA."""
        return cls(np.asarray(_normalise_mode(image)))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels)

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height} {self.mode})"


def _normalise_mode(image: Image.Image) -> Image.Image:
    """Collapse Pillow's many modes into the three a PixelBuffer holds."""
    mode = image.mode
    if mode in ("L", "RGB", "RGBA"):
        return image
    if mode in ("LA", "PA") or (mode == "P" and "transparency" in image.info):
        return image.convert("RGBA")
    if mode == "1":
        return image.convert("L")
    if mode.startswith("I") or mode == "F":
        # High bit depth grayscale; 16-bit ranges are rescaled into 8 bits
        array = np.asarray(image, dtype=np.float64)
        if array.size and array.max() > 255:
            array = array / 257
        return Image.fromarray(np.clip(np.rint(array), 0, 255).astype(np.uint8))
    return image.convert("RGB")


def decode_image(data: bytes) -> PixelBuffer:
    """
    Decode encoded image bytes into a PixelBuffer.

    EXIF orientation is applied so the buffer matches what viewers show.

    Raises:
        DecodeError: data is not a readable image
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            image = ImageOps.exif_transpose(image)
            buffer = PixelBuffer.from_pil(image)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(f"Cannot decode image: {e}") from e

    logger.debug(f"Decoded {buffer!r} from {len(data):,} bytes")
    return buffer


def load_image(path: Union[str, Path]) -> PixelBuffer:
    """
    Read and decode an image file.

    Raises:
        DecodeError: file missing, unreadable or not an image
    """
    path = Path(path)
    if not path.is_file():
        raise DecodeError(f"File not found: {path}")
    try:
        data = path.read_bytes()
    except OSError as e:
        raise DecodeError(f"Cannot read {path}: {e}") from e
    return decode_image(data)
