"""
dispatch.py - Output format tag -> encoding strategy.

The only place that knows which formats exist.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Union

from .compression import EncodingStrategy, JpegStrategy, PngStrategy, WebPStrategy
from .errors import UnsupportedFormat

logger = logging.getLogger(__name__)

_FACTORIES: Dict[str, Callable[[], EncodingStrategy]] = {
    "jpeg": JpegStrategy,
    "png": PngStrategy,
    "webp": lambda: WebPStrategy(lossless=False),
    "webp-lossless": lambda: WebPStrategy(lossless=True),
}

_ALIASES = {
    "jpg": "jpeg",
    "jpe": "jpeg",
    "webp_lossless": "webp-lossless",
}


def _canonical(tag: str) -> str:
    key = tag.strip().lower().lstrip(".")
    return _ALIASES.get(key, key)


def supported_formats() -> List[str]:
    return list(_FACTORIES)


def get_strategy(tag: str) -> EncodingStrategy:
    """
    Look up the strategy for a format tag.

    Tags are case-insensitive; "jpg" and ".png" style tags are accepted.

    Raises:
        UnsupportedFormat: tag is not recognised
    """
    if not isinstance(tag, str):
        raise UnsupportedFormat(repr(tag))
    factory = _FACTORIES.get(_canonical(tag))
    if factory is None:
        raise UnsupportedFormat(tag)
    strategy = factory()
    logger.debug(f"Format {tag!r} -> {strategy!r}")
    return strategy


def format_from_extension(path: Union[str, Path]) -> str:
    """
    Format tag implied by an output path's extension.

    Raises:
        UnsupportedFormat: extension missing or not an image format we write
    """
    suffix = Path(path).suffix
    tag = _canonical(suffix)
    if tag not in _FACTORIES or tag == "webp-lossless":
        raise UnsupportedFormat(suffix or str(path))
    return tag
