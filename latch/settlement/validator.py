"""
latch/settlement/validator.py

Settlement Validator

Cross-checks a proof's public claims against state the market tracks
itself, and consults the external proof verifier only once every local
check has passed. Cheap checks run first; the proof check runs last.

Check order:
    1. round exists                     → RoundNotFound
    2. round not yet settled            → AlreadySettled
    3. round not in emergency           → EmergencyActive
    4. phase == SETTLE                  → WrongPhase
    5. caller authorized                → SolverNotAuthorized (from the gate)
    6. claims vector well formed        → InvalidClaimsLength / InvalidPublicClaims
    7. exact-match field checks         → PublicClaimMismatch{field, expected, actual}
    8. verify_proof(proof, claims)      → ProofRejected

The protocol-fee check recomputes the fee from the proof's OWN claimed
volumes. It checks internal consistency only; true volumes are attested
by the proof.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from latch.core.canonical import hex_word
from latch.core.clock import phase_at
from latch.core.exceptions import (
    AlreadySettled,
    EmergencyActive,
    LatchError,
    ProofRejected,
    PublicClaimMismatch,
    RoundNotFound,
    WrongPhase,
)
from latch.core.models import MAX_ORDERS, Batch, BatchPhase, PoolConfig
from latch.settlement.claims import PublicClaims, compute_protocol_fee
from latch.verification.verifier import ProofVerifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundSnapshot:
    """Everything the validator compares claims against."""
    round_id:         int
    batch:            Optional[Batch]
    pool:             PoolConfig
    tick:             int
    revealed_count:   int
    orders_root:      int
    emergency_active: bool


class SettlementValidator:
    """
    Usage:
        validator = SettlementValidator(verifier)
        claims = validator.validate(snapshot, solver, proof, raw_claims, authorize)

    authorize(solver, batch, tick) must raise if the solver may not settle.
    """

    def __init__(self, verifier: ProofVerifier) -> None:
        self.verifier = verifier

    def validate(
        self,
        snapshot:   RoundSnapshot,
        solver:     str,
        proof:      str,
        raw_claims: Sequence[int],
        authorize:  Callable[[str, Batch, int], None],
    ) -> PublicClaims:
        """Return the decoded claims if settlement may proceed. Raises otherwise."""
        batch = snapshot.batch
        if batch is None:
            raise RoundNotFound(snapshot.round_id)
        if batch.settled:
            raise AlreadySettled(batch.round_id)
        if snapshot.emergency_active:
            raise EmergencyActive(batch.round_id)

        phase = phase_at(batch, snapshot.tick)
        if phase != BatchPhase.SETTLE:
            raise WrongPhase(expected=BatchPhase.SETTLE, actual=phase)

        authorize(solver, batch, snapshot.tick)

        try:
            claims = PublicClaims.from_sequence(raw_claims)
            self._check_fields(snapshot, claims)
        except LatchError as exc:
            logger.warning(f"round {batch.round_id}: settlement by {solver} rejected: {exc}")
            raise

        logger.debug(f"round {batch.round_id}: local claim checks passed")

        if not self.verifier.verify_proof(proof, claims.to_list()):
            logger.warning(f"round {batch.round_id}: proof from {solver} rejected")
            raise ProofRejected(batch.round_id)

        return claims

    # ── Field checks ──────────────────────────────────────────

    def _check_fields(self, snapshot: RoundSnapshot, claims: PublicClaims) -> None:
        batch = snapshot.batch
        pool  = snapshot.pool

        _expect("round_id", batch.round_id, claims.round_id)
        _expect("order_count", snapshot.revealed_count, claims.order_count)

        if claims.orders_root != snapshot.orders_root:
            raise PublicClaimMismatch(
                "orders_root",
                hex_word(snapshot.orders_root),
                hex_word(claims.orders_root),
            )
        if claims.allowlist_root != batch.allowlist_root:
            raise PublicClaimMismatch(
                "allowlist_root",
                hex_word(batch.allowlist_root),
                hex_word(claims.allowlist_root),
            )

        _expect("fee_rate", pool.fee_rate, claims.fee_rate)
        _expect(
            "protocol_fee",
            compute_protocol_fee(claims.buy_volume, claims.sell_volume, claims.fee_rate),
            claims.protocol_fee,
        )

        if claims.matched_volume > 0 and claims.clearing_price == 0:
            raise PublicClaimMismatch("clearing_price", "non-zero", 0)

        for i in range(claims.order_count, MAX_ORDERS):
            if claims.fills[i] != 0:
                raise PublicClaimMismatch(f"fill_{i}", 0, claims.fills[i])


def _expect(field: str, expected: int, actual: int) -> None:
    if expected != actual:
        raise PublicClaimMismatch(field, expected, actual)
