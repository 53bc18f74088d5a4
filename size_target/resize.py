"""
resize.py - Downscale a pixel buffer by a scale factor.

Always uses OpenCV's INTER_AREA (pixel-area averaging, i.e. a box filter
when shrinking). Not configurable, so a given scale always produces the
same pixels.
"""

import logging
from typing import Tuple

import cv2

from .pixels import PixelBuffer

logger = logging.getLogger(__name__)


def scaled_dimensions(width: int, height: int, scale: float) -> Tuple[int, int]:
    """Target (width, height) for a scale factor, never below 1x1."""
    return max(1, round(width * scale)), max(1, round(height * scale))


def reduce(buffer: PixelBuffer, scale: float) -> PixelBuffer:
    """
    Return a downscaled copy of buffer.

    Args:
        buffer: Source image (left untouched)
        scale: Factor in (0, 1]; 1.0 returns the buffer itself

    Returns:
        New PixelBuffer of max(1, round(w*scale)) x max(1, round(h*scale))
    """
    if not 0 < scale <= 1:
        raise ValueError(f"Scale factor must be in (0, 1], got {scale}")

    new_width, new_height = scaled_dimensions(buffer.width, buffer.height, scale)
    if (new_width, new_height) == (buffer.width, buffer.height):
        return buffer

    resized = cv2.resize(buffer.pixels, (new_width, new_height), interpolation=cv2.INTER_AREA)
    logger.debug(
        f"Resized {buffer.width}x{buffer.height} -> {new_width}x{new_height} (scale={scale:.3f})"
    )
    return PixelBuffer(resized)
