"""
latch/safety/pause.py

Pause Bitset

Six independent gates. ALL blocks every state-changing operation; the
others block one operation family each:

    COMMIT    commit
    REVEAL    reveal
    SETTLE    settle
    CLAIM     claim
    WITHDRAW  refund, emergency refund, reward withdrawal
    ALL       everything above plus start_round and finalize

paused_since is stamped on the first activation and cleared when every
flag is cleared. force_unpause() is open to anyone once
max_pause_duration ticks have passed since that stamp.
"""

import logging
from dataclasses import dataclass
from enum import IntFlag
from typing import Optional

from latch.core.exceptions import ForceUnpauseNotReady, OperationPaused, PauseError

logger = logging.getLogger(__name__)


class PauseFlags(IntFlag):
    NONE     = 0
    COMMIT   = 1
    REVEAL   = 2
    SETTLE   = 4
    CLAIM    = 8
    WITHDRAW = 16
    ALL      = 32


@dataclass(frozen=True)
class PauseSnapshot:
    flags:        PauseFlags
    paused_since: Optional[int]
    ready_at:     Optional[int]


class PauseState:

    def __init__(self, max_pause_duration: int) -> None:
        self.max_pause_duration = max_pause_duration
        self.flags        = PauseFlags.NONE
        self.paused_since: Optional[int] = None

    def check_pause(self, flags: PauseFlags) -> PauseFlags:
        """Raise on an empty request. Returns the flags pause() would leave active."""
        if not PauseFlags(flags):
            raise PauseError("No pause flags given")
        return self.flags | PauseFlags(flags)

    def pause(self, flags: PauseFlags, tick: int) -> PauseFlags:
        flags = PauseFlags(flags)
        self.flags = self.check_pause(flags)
        if self.paused_since is None:
            self.paused_since = tick
        logger.info(f"paused {flags!r} at tick {tick} (active={self.flags!r})")
        return self.flags

    def unpause(self, flags: PauseFlags) -> PauseFlags:
        self.flags &= ~PauseFlags(flags)
        if not self.flags:
            self.paused_since = None
        logger.info(f"unpaused {PauseFlags(flags)!r} (active={self.flags!r})")
        return self.flags

    def ready_at(self) -> Optional[int]:
        if self.paused_since is None:
            return None
        return self.paused_since + self.max_pause_duration

    def check_force_unpause(self, tick: int) -> None:
        if not self.flags:
            raise PauseError("Nothing is paused")
        ready = self.ready_at()
        if tick < ready:
            raise ForceUnpauseNotReady(ready, tick)

    def force_unpause(self, tick: int) -> None:
        self.check_force_unpause(tick)
        logger.warning(f"force unpause at tick {tick} (was {self.flags!r})")
        self.flags        = PauseFlags.NONE
        self.paused_since = None

    def is_paused(self, operation: PauseFlags) -> bool:
        return bool(self.flags & (operation | PauseFlags.ALL))

    def require(self, operation: PauseFlags) -> None:
        if self.is_paused(operation):
            raise OperationPaused(operation)

    def snapshot(self) -> PauseSnapshot:
        return PauseSnapshot(
            flags=        self.flags,
            paused_since= self.paused_since,
            ready_at=     self.ready_at(),
        )
