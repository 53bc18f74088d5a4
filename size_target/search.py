"""
search.py - Bounded search for encoding parameters that fit a byte budget.

Phases:
1. INIT            - bounds from the strategy, scale 1.0
2. QUALITY_SEARCH  - bisect quality (monotonic strategies) or try the
                     whole parameter grid (lossless strategies)
3. SCALE_FALLBACK  - nothing fit: shrink the image and search again
4. CONVERGED       - an attempt landed within tolerance below the budget
   EXHAUSTED       - caps reached; the best attempt goes to the evaluator

Every round makes at most max_iterations encodes (or one per grid entry),
and there are at most 1 + max_fallback_rounds rounds.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .budget import EncodingAttempt, Verdict, classify, is_better
from .compression import EncodingParameters, EncodingStrategy
from .errors import EncodeError
from .pixels import PixelBuffer
from .resize import reduce

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.05          # stop when within 5% below budget
DEFAULT_MAX_ITERATIONS = 10       # encodes per quality search round
DEFAULT_SCALE_DECAY = 0.85        # scale multiplier per fallback round
DEFAULT_MAX_FALLBACK_ROUNDS = 6
DEFAULT_MIN_SCALE = 0.1


@dataclass(frozen=True)
class SearchConfig:
    """Search caps and tolerances. Defaults are module constants."""
    tolerance: float = DEFAULT_TOLERANCE
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    scale_decay: float = DEFAULT_SCALE_DECAY
    max_fallback_rounds: int = DEFAULT_MAX_FALLBACK_ROUNDS
    min_scale: float = DEFAULT_MIN_SCALE

    def __post_init__(self):
        if not 0 <= self.tolerance < 1:
            raise ValueError(f"tolerance must be in [0, 1), got {self.tolerance}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if not 0 < self.scale_decay < 1:
            raise ValueError(f"scale_decay must be in (0, 1), got {self.scale_decay}")
        if self.max_fallback_rounds < 0:
            raise ValueError(f"max_fallback_rounds must be >= 0, got {self.max_fallback_rounds}")
        if not 0 < self.min_scale <= 1:
            raise ValueError(f"min_scale must be in (0, 1], got {self.min_scale}")

    def max_encode_calls(self, strategy: EncodingStrategy) -> int:
        """Upper bound on encodes a search with this config can make."""
        if strategy.monotonic:
            per_round = self.max_iterations
        else:
            per_round = len(strategy.parameter_grid())
        return per_round * (1 + self.max_fallback_rounds)


class Phase(Enum):
    INIT = "init"
    QUALITY_SEARCH = "quality_search"
    SCALE_FALLBACK = "scale_fallback"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


@dataclass
class SearchState:
    """Everything one search knows. Owned by a single run()."""
    source_width: int
    source_height: int
    phase: Phase = Phase.INIT
    low: int = 0
    high: int = 0
    scale: float = 1.0
    iterations: int = 0        # encodes in the current round
    rounds: int = 0            # scale fallback rounds taken
    encode_calls: int = 0
    failed_encodes: int = 0
    best: Optional[EncodingAttempt] = None
    converged: Optional[EncodingAttempt] = None

    @property
    def finished(self) -> bool:
        return self.phase in (Phase.CONVERGED, Phase.EXHAUSTED)


class SearchController:
    """
    Drives one strategy (and the reducer) toward the budget.

    The controller never looks at the format, only at whether the
    strategy's size is monotonic in quality.
    """

    def __init__(self, strategy: EncodingStrategy, config: Optional[SearchConfig] = None):
        self.strategy = strategy
        self.config = config or SearchConfig()

    def run(self, source: PixelBuffer, budget: int) -> SearchState:
        """
        Search for the best attempt under budget.

        Returns:
            Terminal SearchState (CONVERGED or EXHAUSTED); state.best is the
            attempt to hand to the evaluator, possibly over budget or None.
        """
        if budget <= 0:
            raise ValueError(f"Budget must be positive, got {budget}")

        state = SearchState(source_width=source.width, source_height=source.height)
        state.low, state.high = self.strategy.quality_range if self.strategy.monotonic else (0, 0)

        logger.info(
            f"Searching {self.strategy.name} for {source.width}x{source.height} "
            f"under {budget:,} bytes"
        )

        while True:
            state.phase = Phase.QUALITY_SEARCH
            state.iterations = 0
            buffer = reduce(source, state.scale)

            if self.strategy.monotonic:
                self._quality_search(state, buffer, budget)
            else:
                self._grid_search(state, buffer, budget)

            if state.phase is Phase.CONVERGED:
                break

            if state.best is not None and state.best.fits(budget):
                # Something fits at this scale; never shrink past it
                self._settle(state, budget)
                break

            if not self._next_scale(state):
                state.phase = Phase.EXHAUSTED
                logger.info(
                    f"Search exhausted after {state.encode_calls} encodes, "
                    f"{state.rounds} fallback rounds"
                )
                break

        return state

    def _attempt(
        self,
        state: SearchState,
        buffer: PixelBuffer,
        params: EncodingParameters,
        budget: int
    ) -> Optional[Tuple[EncodingAttempt, Verdict]]:
        """Encode once, update best-so-far. None if the codec refused."""
        state.encode_calls += 1
        state.iterations += 1

        try:
            data, size = self.strategy.encode(buffer, params)
        except EncodeError as e:
            state.failed_encodes += 1
            logger.warning(f"Skipping {params.describe()}: {e}")
            return None

        attempt = EncodingAttempt(
            parameters=params,
            data=data,
            width=buffer.width,
            height=buffer.height
        )
        verdict = classify(size, budget, self.config.tolerance)
        logger.debug(
            f"Attempt {state.encode_calls}: {params.describe()} -> "
            f"{size:,} bytes ({verdict.value})"
        )

        if is_better(attempt, state.best, budget):
            state.best = attempt
        return attempt, verdict

    def _quality_search(self, state: SearchState, buffer: PixelBuffer, budget: int):
        low, high = self.strategy.quality_range
        state.low, state.high = low, high

        if state.rounds == 0:
            # Full quality at full size first: if it fits, keep it untouched
            outcome = self._attempt(
                state, buffer, self.strategy.parameters_for_quality(high, state.scale), budget
            )
            if outcome is not None:
                attempt, verdict = outcome
                if verdict is not Verdict.OVER:
                    self._converge(state, attempt)
                    return
                state.high = high - 1

        while state.low <= state.high and state.iterations < self.config.max_iterations:
            mid = (state.low + state.high) // 2
            params = self.strategy.parameters_for_quality(mid, state.scale)
            outcome = self._attempt(state, buffer, params, budget)

            if outcome is None:
                # Unusable quality; look lower
                state.high = mid - 1
                continue

            attempt, verdict = outcome
            if verdict is Verdict.WITHIN:
                self._converge(state, attempt)
                return
            if verdict is Verdict.OVER:
                state.high = mid - 1
            else:
                state.low = mid + 1

    def _grid_search(self, state: SearchState, buffer: PixelBuffer, budget: int):
        # No monotonic relation to exploit: try everything, keep the best
        for params in self.strategy.parameter_grid(state.scale):
            self._attempt(state, buffer, params, budget)

    def _settle(self, state: SearchState, budget: int):
        """Round ended with a fitting best: converged if close enough."""
        if classify(state.best.size, budget, self.config.tolerance) is Verdict.WITHIN:
            self._converge(state, state.best)
        else:
            state.phase = Phase.EXHAUSTED
            logger.info(
                f"Best fit {state.best.size:,} bytes is below tolerance band "
                f"({state.best.parameters.describe()})"
            )

    def _converge(self, state: SearchState, attempt: EncodingAttempt):
        state.converged = attempt
        state.phase = Phase.CONVERGED
        logger.info(
            f"Converged after {state.encode_calls} encodes: {attempt.size:,} bytes "
            f"({attempt.parameters.describe()})"
        )

    def _next_scale(self, state: SearchState) -> bool:
        """Advance to the next fallback round. False when the caps forbid it."""
        if state.rounds >= self.config.max_fallback_rounds:
            return False
        if state.scale <= self.config.min_scale:
            return False

        state.phase = Phase.SCALE_FALLBACK
        state.rounds += 1
        state.scale = max(self.config.min_scale, state.scale * self.config.scale_decay)
        logger.info(
            f"Nothing fit; fallback round {state.rounds} at scale {state.scale:.3f}"
        )
        return True
