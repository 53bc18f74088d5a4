"""
errors.py - Failure types raised while compressing to a byte budget.

Only request-level failures reach the caller. A rejected encode attempt is
absorbed by the search and only surfaces when nothing could be encoded.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .budget import EncodingAttempt


class CompressionError(Exception):
    """Base class for all size_target failures."""


class UnsupportedFormat(CompressionError):
    """Output format tag is not one the dispatcher knows."""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"Unsupported output format: {tag!r}")


class DecodeError(CompressionError):
    """Input could not be decoded into a pixel buffer."""


class EncodeError(CompressionError):
    """Codec rejected a pixel buffer / parameter combination."""


class BudgetUnattainable(CompressionError):
    """
    Even the most aggressive settings tried exceed the budget.

    Carries the closest attempt so callers can report how far off it was.
    The attempt's bytes are never meant to be written as a result.
    """

    def __init__(self, budget: int, best: Optional["EncodingAttempt"] = None):
        self.budget = budget
        self.best = best
        if best is not None:
            message = (
                f"Cannot fit under {budget:,} bytes; closest was {best.size:,} bytes "
                f"({best.parameters.describe()})"
            )
        else:
            message = f"Cannot fit under {budget:,} bytes"
        super().__init__(message)

    @property
    def closest_size(self) -> Optional[int]:
        return self.best.size if self.best is not None else None
