"""
pipeline.py - Compress an image to a byte budget.

Pipeline:
1. Pick the strategy for the requested format
2. Run the bounded search (quality, then scale fallback)
3. Evaluate: fitting result, or BudgetUnattainable

compress_image() never touches the filesystem; compress_file() wraps it
with reading the input and writing the output.
"""

import logging
import numbers
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .budget import CompressionResult, evaluate
from .dispatch import get_strategy
from .pixels import PixelBuffer, load_image
from .search import SearchConfig, SearchController

logger = logging.getLogger(__name__)

__all__ = [
    "CompressionRequest",
    "CompressionResult",
    "compress",
    "compress_image",
    "compress_file",
]


@dataclass(frozen=True)
class CompressionRequest:
    """Source image, budget in bytes and output format."""
    source: PixelBuffer
    budget: int
    format: str
    config: Optional[SearchConfig] = None

    def __post_init__(self):
        if isinstance(self.budget, bool) or not isinstance(self.budget, numbers.Integral):
            raise ValueError(f"Budget must be an integer number of bytes, got {self.budget!r}")
        if self.budget <= 0:
            raise ValueError(f"Budget must be positive, got {self.budget}")
        object.__setattr__(self, "budget", int(self.budget))


def compress_image(request: CompressionRequest) -> CompressionResult:
    """
    Find the best encoding of request.source that fits request.budget.

    Returns:
        CompressionResult (size <= budget, always)

    Raises:
        UnsupportedFormat: unknown format tag
        BudgetUnattainable: nothing tried fits; carries the closest attempt
        EncodeError: the codec refused every attempt
    """
    strategy = get_strategy(request.format)
    controller = SearchController(strategy, request.config)

    start = time.time()
    state = controller.run(request.source, request.budget)
    elapsed = time.time() - start

    logger.debug(
        f"Search finished in {elapsed:.2f}s: phase={state.phase.value}, "
        f"{state.encode_calls} encodes ({state.failed_encodes} failed), "
        f"{state.rounds} fallback rounds"
    )
    return evaluate(state, request.budget, format_name=strategy.name)


def compress(
    source: PixelBuffer,
    budget: int,
    fmt: str = "jpeg",
    config: Optional[SearchConfig] = None
) -> CompressionResult:
    """Shorthand for compress_image(CompressionRequest(...))."""
    return compress_image(CompressionRequest(source=source, budget=budget, format=fmt, config=config))


def compress_file(
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    budget: int,
    fmt: str,
    config: Optional[SearchConfig] = None
) -> CompressionResult:
    """
    Load input_path, compress it under budget and write output_path.

    Nothing is written if compression fails.

    Raises:
        DecodeError: input missing or not an image
        plus everything compress_image() raises
    """
    input_path = Path(input_path)
    output_path = Path(output_path)

    source = load_image(input_path)
    logger.info(
        f"Loaded {input_path.name}: {source.width}x{source.height} {source.mode}, "
        f"target {budget:,} bytes as {fmt}"
    )

    result = compress(source, budget, fmt, config)

    output_path.write_bytes(result.data)
    logger.info(f"Wrote {output_path} ({result.size:,} bytes)")
    return result
