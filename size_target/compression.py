"""
compression.py - Format encoders ("strategies") driven by the size search.

Supports:
- JPEG (lossy, quality-parametric, size falls as quality falls)
- PNG (lossless, compression level + optional palette reduction)
- WebP (lossy like JPEG, or lossless like PNG)

Strategies are stateless: encode() is a pure function of buffer + parameters.
"""

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2
import numpy as np
from PIL import Image

from .errors import EncodeError
from .pixels import PixelBuffer

logger = logging.getLogger(__name__)

QUALITY_MIN = 1
QUALITY_MAX = 100

# Saturation threshold for grayscale conversion
# Only convert to grayscale if mean saturation is below this
GRAYSCALE_SATURATION_THRESHOLD = 10  # Out of 255

# JPEG keeps full-resolution chroma at and above this quality
FULL_CHROMA_MIN_QUALITY = 90

# Palette sizes tried by the lossless strategies, None = keep all colours
PALETTE_SIZES = (None, 256, 64, 16)

PNG_COMPRESS_LEVELS = (6, 9)
WEBP_LOSSY_METHOD = 4
WEBP_LOSSLESS_METHODS = (4, 6)

# Background used when dropping alpha for JPEG
FLATTEN_BACKGROUND = 255


@dataclass(frozen=True)
class EncodingParameters:
    """Format-specific tunables for one encode attempt."""
    quality: Optional[int] = None      # lossy quality 1-100
    effort: Optional[int] = None       # PNG compress_level / WebP method
    palette: Optional[int] = None      # colour count when palette-reduced
    lossless: bool = False
    subsampling: Optional[str] = None  # JPEG chroma subsampling
    scale: float = 1.0                 # applied before encoding

    def describe(self) -> str:
        parts = []
        if self.lossless:
            parts.append("lossless")
        if self.quality is not None:
            parts.append(f"q={self.quality}")
        if self.subsampling is not None:
            parts.append(self.subsampling)
        if self.effort is not None:
            parts.append(f"effort={self.effort}")
        if self.palette is not None:
            parts.append(f"palette={self.palette}")
        parts.append(f"scale={self.scale:.2f}")
        return " ".join(parts)


def is_grayscale_image(image: np.ndarray) -> bool:
    """
    Check if image is effectively grayscale based on saturation.

    Only returns True if the entire image has very low saturation.
    """
    if image.ndim == 2:
        return True

    # Convert to HSV and check saturation
    hsv = cv2.cvtColor(np.ascontiguousarray(image[:, :, :3]), cv2.COLOR_RGB2HSV)
    mean_saturation = np.mean(hsv[:, :, 1])

    is_gray = mean_saturation < GRAYSCALE_SATURATION_THRESHOLD
    logger.debug(f"Mean saturation: {mean_saturation:.1f}, is_grayscale: {is_gray}")

    return is_gray


def flatten_alpha(image: np.ndarray) -> np.ndarray:
    """Composite RGBA over a white background; other layouts pass through."""
    if image.ndim != 3 or image.shape[2] != 4:
        return image
    alpha = image[:, :, 3:4].astype(np.float32) / 255.0
    rgb = image[:, :, :3].astype(np.float32)
    flat = rgb * alpha + FLATTEN_BACKGROUND * (1.0 - alpha)
    return np.clip(np.rint(flat), 0, 255).astype(np.uint8)


def reduce_palette(image: Image.Image, colors: int) -> Image.Image:
    """Quantize to at most `colors` colours (alpha kept for RGBA)."""
    if image.mode == "RGBA":
        # MEDIANCUT cannot handle alpha
        return image.quantize(colors=colors, method=Image.Quantize.FASTOCTREE)
    return image.quantize(colors=colors)


class EncodingStrategy(ABC):
    """
    One output format family.

    Monotonic strategies are searched by bisecting quality_range; the others
    expose a small parameter_grid that is tried exhaustively.
    """

    name = ""
    monotonic = True

    @property
    def quality_range(self) -> Tuple[int, int]:
        return QUALITY_MIN, QUALITY_MAX

    def parameters_for_quality(self, quality: int, scale: float = 1.0) -> EncodingParameters:
        """Parameters for one quality level. Only monotonic strategies have them."""
        raise TypeError(f"{self.name} is not quality-parametric")

    def parameter_grid(self, scale: float = 1.0) -> List[EncodingParameters]:
        """Every combination a non-monotonic strategy tries at this scale."""
        raise TypeError(f"{self.name} has no discrete parameter grid")

    def _check_quality(self, quality: int):
        low, high = self.quality_range
        if not low <= quality <= high:
            raise ValueError(f"{self.name} quality must be in [{low}, {high}], got {quality}")

    def encode(self, buffer: PixelBuffer, params: EncodingParameters) -> Tuple[bytes, int]:
        """
        Encode buffer with params.

        Returns:
            (encoded_bytes, size)

        Raises:
            EncodeError: codec rejected the buffer or parameters
        """
        try:
            data = self._encode(buffer, params)
        except (OSError, ValueError) as e:
            raise EncodeError(f"{self.name} encode failed ({params.describe()}): {e}") from e
        return data, len(data)

    @abstractmethod
    def _encode(self, buffer: PixelBuffer, params: EncodingParameters) -> bytes:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class JpegStrategy(EncodingStrategy):
    """Lossy JPEG; quality, chroma subsampling and colour model trade off size."""

    name = "JPEG"
    monotonic = True

    def parameters_for_quality(self, quality: int, scale: float = 1.0) -> EncodingParameters:
        self._check_quality(quality)
        subsampling = "4:4:4" if quality >= FULL_CHROMA_MIN_QUALITY else "4:2:0"
        return EncodingParameters(quality=quality, subsampling=subsampling, scale=scale)

    def _encode(self, buffer: PixelBuffer, params: EncodingParameters) -> bytes:
        image = flatten_alpha(buffer.pixels)

        # Effectively gray images lose nothing as single-channel JPEG
        if image.ndim == 3 and is_grayscale_image(image):
            image = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
        img = Image.fromarray(image)

        save_kwargs = {"quality": params.quality, "optimize": True}
        if img.mode == "RGB":
            save_kwargs["subsampling"] = params.subsampling or "4:2:0"

        out = io.BytesIO()
        img.save(out, format="JPEG", **save_kwargs)
        return out.getvalue()


class PngStrategy(EncodingStrategy):
    """
    Lossless PNG.

    zlib level and palette size have no reliable monotonic effect on size,
    so every grid combination is tried.
    """

    name = "PNG"
    monotonic = False

    def parameter_grid(self, scale: float = 1.0) -> List[EncodingParameters]:
        return [
            EncodingParameters(effort=level, palette=palette, lossless=True, scale=scale)
            for palette in PALETTE_SIZES
            for level in PNG_COMPRESS_LEVELS
        ]

    def _encode(self, buffer: PixelBuffer, params: EncodingParameters) -> bytes:
        img = buffer.to_pil()
        if params.palette is not None:
            img = reduce_palette(img, params.palette)

        out = io.BytesIO()
        img.save(out, format="PNG", compress_level=params.effort if params.effort is not None else 6)
        return out.getvalue()


class WebPStrategy(EncodingStrategy):
    """
    WebP in one of two sub-modes.

    Lossy behaves like JPEG (bisect quality, alpha kept); lossless behaves
    like PNG (method x palette grid).
    """

    def __init__(self, lossless: bool = False):
        self.lossless = lossless
        self.monotonic = not lossless
        self.name = "WEBP-lossless" if lossless else "WEBP"

    def parameters_for_quality(self, quality: int, scale: float = 1.0) -> EncodingParameters:
        if self.lossless:
            return super().parameters_for_quality(quality, scale)
        self._check_quality(quality)
        return EncodingParameters(quality=quality, effort=WEBP_LOSSY_METHOD, scale=scale)

    def parameter_grid(self, scale: float = 1.0) -> List[EncodingParameters]:
        if not self.lossless:
            return super().parameter_grid(scale)
        return [
            EncodingParameters(effort=method, palette=palette, lossless=True, scale=scale)
            for palette in PALETTE_SIZES
            for method in WEBP_LOSSLESS_METHODS
        ]

    def _encode(self, buffer: PixelBuffer, params: EncodingParameters) -> bytes:
        img = buffer.to_pil()
        if params.palette is not None:
            img = reduce_palette(img, params.palette)

        method = params.effort if params.effort is not None else WEBP_LOSSY_METHOD
        out = io.BytesIO()
        if params.lossless:
            img.save(out, format="WEBP", lossless=True, method=method)
        else:
            img.save(out, format="WEBP", quality=params.quality, method=method)
        return out.getvalue()

    def __repr__(self) -> str:
        return f"WebPStrategy(lossless={self.lossless})"
