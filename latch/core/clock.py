"""
latch/core/clock.py

Phase Clock

The phase of a round is never stored. It is recomputed from the current
tick, the round's boundaries and its settled/finalized flags, so it cannot
drift from the boundaries that were stamped at round start.

    tick < commit_end               → COMMIT
    tick < reveal_end               → REVEAL
    not settled                     → SETTLE   (waits for a solver or the
                                                emergency net)
    settled, tick < claim_end       → CLAIM
    settled, tick >= claim_end      → FINALIZED
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from latch.core.models import Batch, BatchPhase, PoolConfig


class TickSource(Protocol):
    def current_tick(self) -> int:
        """Return the current monotonic tick."""


class ManualTicker:
    """
    TickSource driven explicitly by the caller.

    Ticks only move forward; advance() and set() reject going backwards.
    """

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError(f"start tick must be non-negative, got {start}")
        self._tick = start

    def current_tick(self) -> int:
        return self._tick

    def advance(self, ticks: int = 1) -> int:
        if ticks < 0:
            raise ValueError(f"cannot advance by a negative amount: {ticks}")
        self._tick += ticks
        return self._tick

    def set(self, tick: int) -> int:
        if tick < self._tick:
            raise ValueError(
                f"tick is monotonic: current={self._tick}, requested={tick}"
            )
        self._tick = tick
        return self._tick


@dataclass(frozen=True)
class RoundBoundaries:
    start_tick: int
    commit_end: int
    reveal_end: int
    settle_end: int
    claim_end:  int


def round_boundaries(start_tick: int, pool: PoolConfig) -> RoundBoundaries:
    """Stamp the four boundary ticks of a round starting at start_tick."""
    commit_end = start_tick + pool.commit_duration
    reveal_end = commit_end + pool.reveal_duration
    settle_end = reveal_end + pool.settle_duration
    claim_end  = settle_end + pool.claim_duration
    return RoundBoundaries(
        start_tick= start_tick,
        commit_end= commit_end,
        reveal_end= reveal_end,
        settle_end= settle_end,
        claim_end=  claim_end,
    )


def phase_at(batch: Optional[Batch], tick: int) -> BatchPhase:
    """Derive the lifecycle phase of a round at a given tick."""
    if batch is None:
        return BatchPhase.INACTIVE
    if batch.finalized:
        return BatchPhase.FINALIZED
    if tick < batch.commit_end:
        return BatchPhase.COMMIT
    if tick < batch.reveal_end:
        return BatchPhase.REVEAL
    if not batch.settled:
        return BatchPhase.SETTLE
    if tick < batch.claim_end:
        return BatchPhase.CLAIM
    return BatchPhase.FINALIZED
