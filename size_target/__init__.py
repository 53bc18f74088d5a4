"""
size_target - Compress a raster image to fit under a byte budget.

Searches quality, chroma/colour handling and pixel dimensions until the
encoded image fits the requested size, for JPEG, PNG and WebP output.
"""

__version__ = "1.0.0"
__author__ = "size_target"

from .errors import (
    CompressionError,
    UnsupportedFormat,
    DecodeError,
    EncodeError,
    BudgetUnattainable,
)
from .pixels import PixelBuffer, decode_image, load_image
from .search import SearchConfig
from .pipeline import CompressionRequest, CompressionResult, compress, compress_image, compress_file

__all__ = [
    "CompressionError",
    "UnsupportedFormat",
    "DecodeError",
    "EncodeError",
    "BudgetUnattainable",
    "PixelBuffer",
    "decode_image",
    "load_image",
    "SearchConfig",
    "CompressionRequest",
    "CompressionResult",
    "compress",
    "compress_image",
    "compress_file",
]
