"""
budget.py - Judge encode attempts against the byte budget.

- classify(): within tolerance / under / over for a single attempt
- is_better(): which of two attempts the search should keep
- evaluate(): turn a finished search into a result, or a failure

An attempt larger than the budget is never returned as a success.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

from .compression import EncodingParameters
from .errors import BudgetUnattainable, EncodeError

if TYPE_CHECKING:
    from .search import SearchState

logger = logging.getLogger(__name__)


class Verdict(Enum):
    WITHIN = "within"  # fits, and close enough to stop
    UNDER = "under"    # fits, but leaves more than the tolerance unused
    OVER = "over"


@dataclass
class EncodingAttempt:
    """One encode: the parameters, resulting bytes and their size."""
    parameters: EncodingParameters
    data: bytes
    width: int
    height: int

    @property
    def size(self) -> int:
        return len(self.data)

    def fits(self, budget: int) -> bool:
        return self.size <= budget


@dataclass
class CompressionResult:
    """Encoded image that fits the budget."""
    data: bytes
    parameters: EncodingParameters
    budget: int
    width: int
    height: int
    source_width: int
    source_height: int
    format_name: str = ""
    encode_calls: int = 0
    converged: bool = False

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def margin(self) -> int:
        return self.budget - self.size

    @property
    def utilization(self) -> float:
        return self.size / self.budget

    def summary(self) -> str:
        return (
            f"Format: {self.format_name} ({self.parameters.describe()})\n"
            f"Size:   {self.size:,} / {self.budget:,} bytes "
            f"({self.utilization * 100:.1f}%, {self.margin:,} bytes spare)\n"
            f"Dimensions: {self.source_width}x{self.source_height} -> {self.width}x{self.height}\n"
            f"Attempts: {self.encode_calls}"
        )


def classify(size: int, budget: int, tolerance: float) -> Verdict:
    """
    Place a size relative to the budget.

    WITHIN means size <= budget and size >= budget * (1 - tolerance).
    """
    if size > budget:
        return Verdict.OVER
    if size >= budget * (1 - tolerance):
        return Verdict.WITHIN
    return Verdict.UNDER


def is_better(
    candidate: EncodingAttempt,
    incumbent: Optional[EncodingAttempt],
    budget: int
) -> bool:
    """
    True if candidate should replace incumbent as best-so-far.

    Fitting beats not fitting; among fitting attempts the larger one wins
    (less fidelity thrown away); among oversized ones the smaller one wins.
    Ties keep the incumbent.
    """
    if incumbent is None:
        return True

    candidate_fits = candidate.fits(budget)
    incumbent_fits = incumbent.fits(budget)
    if candidate_fits != incumbent_fits:
        return candidate_fits
    if candidate_fits:
        return candidate.size > incumbent.size
    return candidate.size < incumbent.size


def evaluate(state: "SearchState", budget: int, format_name: str = "") -> CompressionResult:
    """
    Final verdict on a finished search.

    Returns:
        CompressionResult when the best attempt fits the budget

    Raises:
        BudgetUnattainable: best attempt is still over budget
        EncodeError: no attempt could be encoded at all
    """
    best = state.best
    if best is None:
        raise EncodeError(
            f"No encode attempt succeeded ({state.failed_encodes} failed of {state.encode_calls})"
        )

    if not best.fits(budget):
        logger.info(
            f"Budget unattainable: best {best.size:,} bytes > {budget:,} bytes "
            f"({best.parameters.describe()})"
        )
        raise BudgetUnattainable(budget, best)

    result = CompressionResult(
        data=best.data,
        parameters=best.parameters,
        budget=budget,
        width=best.width,
        height=best.height,
        source_width=state.source_width,
        source_height=state.source_height,
        format_name=format_name,
        encode_calls=state.encode_calls,
        converged=state.converged is not None,
    )
    logger.info(
        f"Met budget: {result.size:,} / {budget:,} bytes, margin {result.margin:,} "
        f"({best.parameters.describe()})"
    )
    return result
