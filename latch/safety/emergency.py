"""
latch/safety/emergency.py

Emergency Safety Net

    start bond   posted by whoever starts a round (start_bond setting,
                 zero disables). Returned on settlement.
    activation   anyone, once the round is unsettled at
                 settle_end + emergency_timeout. The bond is forfeited to
                 the penalty recipient and the round can no longer settle.
    refunds      revealed participants lose emergency_penalty_rate basis
                 points of their deposit; unrevealed participants are
                 returned in full.

NullEmergencyNet is the no-op default: it never collects a bond and
rejects activation and emergency refunds with EmergencyNotEnabled. An
unsettled round past the same timeout is abandoned instead: the next
round may start and every deposit, revealed or not, is refunded in full
through the ordinary refund.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional

from latch.core.config import EngineSettings
from latch.core.exceptions import (
    AlreadySettled,
    EmergencyAlreadyActive,
    EmergencyNotActive,
    EmergencyNotEnabled,
    EmergencyTimeoutNotReached,
)
from latch.core.models import Batch, BondRecord, BondStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmergencyState:
    round_id:        int
    active:          bool
    activation_tick: int
    activated_at:    Optional[int]
    bond:            Optional[BondRecord]


class EmergencyNet:

    enabled = True

    def __init__(self, settings: EngineSettings) -> None:
        self.start_bond   = settings.start_bond
        self.timeout      = settings.emergency_timeout
        self.penalty_rate = settings.emergency_penalty_rate
        self._bonds:     Dict[int, BondRecord] = {}
        self._activated: Dict[int, int]        = {}

    # ── Bond ──────────────────────────────────────────────────

    def bond_amount(self) -> int:
        return self.start_bond

    def record_bond(self, round_id: int, poster: str) -> Optional[BondRecord]:
        """Record the bond the market has already collected. None if disabled."""
        if self.start_bond == 0:
            return None
        bond = BondRecord(round_id=round_id, poster=poster, amount=self.start_bond)
        self._bonds[round_id] = bond
        return replace(bond)

    def release_bond(self, round_id: int) -> Optional[BondRecord]:
        """Mark the bond returned on settlement. Returns it for the payout."""
        bond = self._bonds.get(round_id)
        if bond is None or bond.status != BondStatus.POSTED:
            return None
        bond.status = BondStatus.RETURNED
        return replace(bond)

    # ── Activation ────────────────────────────────────────────

    def activation_tick(self, batch: Batch) -> int:
        return batch.settle_end + self.timeout

    def check_activation(self, batch: Batch, tick: int) -> None:
        if batch.settled:
            raise AlreadySettled(batch.round_id)
        if batch.round_id in self._activated:
            raise EmergencyAlreadyActive(batch.round_id)
        ready = self.activation_tick(batch)
        if tick < ready:
            raise EmergencyTimeoutNotReached(ready, tick)

    def activate(self, batch: Batch, tick: int) -> Optional[BondRecord]:
        """Enter emergency mode. Returns the forfeited bond, if any."""
        self.check_activation(batch, tick)
        self._activated[batch.round_id] = tick

        forfeited = None
        bond = self._bonds.get(batch.round_id)
        if bond is not None and bond.status == BondStatus.POSTED:
            bond.status = BondStatus.FORFEITED
            forfeited = replace(bond)

        logger.info(f"round {batch.round_id}: emergency activated at tick {tick}")
        return forfeited

    def posted_bond(self, round_id: int) -> Optional[BondRecord]:
        """The bond activation would forfeit, if one is still posted."""
        bond = self._bonds.get(round_id)
        if bond is None or bond.status != BondStatus.POSTED:
            return None
        return replace(bond)

    def is_active(self, round_id: int) -> bool:
        return round_id in self._activated

    def releases(self, batch: Batch, tick: int) -> bool:
        """Whether a new round may start over this unsettled one."""
        return self.is_active(batch.round_id)

    def require_active(self, batch: Batch) -> None:
        if batch.round_id not in self._activated:
            raise EmergencyNotActive(batch.round_id)

    def state(self, batch: Batch) -> EmergencyState:
        bond = self._bonds.get(batch.round_id)
        return EmergencyState(
            round_id=        batch.round_id,
            active=          self.is_active(batch.round_id),
            activation_tick= self.activation_tick(batch),
            activated_at=    self._activated.get(batch.round_id),
            bond=            replace(bond) if bond else None,
        )


class NullEmergencyNet(EmergencyNet):

    enabled = False

    def bond_amount(self) -> int:
        return 0

    def record_bond(self, round_id: int, poster: str) -> Optional[BondRecord]:
        return None

    def check_activation(self, batch: Batch, tick: int) -> None:
        raise EmergencyNotEnabled(batch.market_id)

    def require_active(self, batch: Batch) -> None:
        raise EmergencyNotEnabled(batch.market_id)

    def releases(self, batch: Batch, tick: int) -> bool:
        """An unsettled round is abandoned once the emergency timeout passes."""
        return not batch.settled and tick >= self.activation_tick(batch)
