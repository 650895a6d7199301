"""
latch/commitments/ledger.py

Commitment Ledger & Reveal Verification

Stores one Commitment per participant per round and checks reveals
against the stored binding hash. Phase gating and value transfer belong
to the market; this ledger enforces only the commitment-level rules and
never mutates state before every check has passed.

Status transitions (terminal states never change again):

    PENDING ──reveal──▶ REVEALED
    PENDING ──refund──▶ REFUNDED
    PENDING ──emergency refund──▶ REFUNDED
    REVEALED ──emergency refund──▶ REVEALED (+ refunded marker)
    REVEALED ──abandoned-round refund──▶ REVEALED (+ refunded marker)

check_commit() and check_reveal() return the record the matching
record_*() call will store, so the market can publish it first.

The refunded marker is the shared terminal check: ordinary refunds and
emergency refunds both consult it, so a deposit is returned at most once.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from latch.commitments.tree import CommitmentTree
from latch.core.exceptions import (
    AlreadyCommitted,
    AlreadyRefunded,
    CommitmentHashMismatch,
    DepositMismatch,
    InsufficientDeposit,
    InvalidCommitmentStatus,
    InvalidOrder,
    NoCommitment,
    RoundFull,
    ZeroCommitmentHash,
    ZeroDeposit,
)
from latch.core.hashing import (
    UINT128_MAX,
    ZERO_HASH,
    Salt,
    commitment_hash,
    order_leaf,
)
from latch.core.models import (
    FEE_DENOMINATOR,
    MAX_ORDERS,
    PRICE_PRECISION,
    Commitment,
    CommitmentStatus,
    RevealedOrder,
    RevealedOrderData,
)

logger = logging.getLogger(__name__)


def required_deposit(amount: int, limit_price: int, is_buy: bool) -> int:
    """
    Worst-case asset-B exposure of an order.

    A buy may pay up to its limit price for the full amount; a sell
    deposits the amount itself.
    """
    if is_buy:
        return amount * limit_price // PRICE_PRECISION
    return amount


@dataclass
class RoundCommitments:
    """Per-round working state. Keyed by round id inside the ledger."""
    commitments: Dict[str, Commitment] = field(default_factory=dict)
    revealed:    List[RevealedOrder]   = field(default_factory=list)
    tree:        CommitmentTree        = field(default_factory=CommitmentTree)
    refunded:    Set[str]              = field(default_factory=set)
    released:    bool = False


class CommitmentLedger:
    """
    Commitments, reveals and deposit returns for every round of one market.

    Amounts returned by refund() and emergency_refund() are what the caller
    must transfer out; the ledger itself holds no value.
    """

    def __init__(self) -> None:
        self._rounds: Dict[int, RoundCommitments] = {}

    # ── Rounds ────────────────────────────────────────────────

    def open_round(self, round_id: int) -> None:
        if round_id in self._rounds:
            raise ValueError(f"round {round_id} already opened")
        self._rounds[round_id] = RoundCommitments()

    def _round(self, round_id: int) -> RoundCommitments:
        # Rounds are opened by the market before any per-round call.
        return self._rounds[round_id]

    # ── Commit ────────────────────────────────────────────────

    def check_commit(
        self,
        round_id:        int,
        participant:     str,
        commitment_hash: bytes,
        deposit:         int,
    ) -> Commitment:
        """Raise unless commit() would succeed. Returns the record it would store."""
        book = self._round(round_id)

        if not isinstance(commitment_hash, (bytes, bytearray)) or len(commitment_hash) != 32:
            raise InvalidOrder("commitment hash must be 32 bytes")
        if commitment_hash == ZERO_HASH:
            raise ZeroCommitmentHash()
        if not isinstance(deposit, int) or isinstance(deposit, bool) or deposit <= 0:
            raise ZeroDeposit()
        if len(book.commitments) >= MAX_ORDERS:
            raise RoundFull(round_id, MAX_ORDERS)
        if participant in book.commitments:
            raise AlreadyCommitted(round_id, participant)

        return Commitment(
            participant=     participant,
            commitment_hash= bytes(commitment_hash),
            deposit=         deposit,
            status=          CommitmentStatus.PENDING,
        )

    def commit(
        self,
        round_id:        int,
        participant:     str,
        commitment_hash: bytes,
        deposit:         int,
    ) -> Commitment:
        """Record a hidden order as PENDING."""
        commitment = self.check_commit(round_id, participant, commitment_hash, deposit)
        self.record_commit(round_id, commitment)
        return commitment

    def record_commit(self, round_id: int, commitment: Commitment) -> None:
        """Store a commitment returned by check_commit()."""
        self._round(round_id).commitments[commitment.participant] = commitment
        logger.debug(
            f"round {round_id}: commit from {commitment.participant} (deposit={commitment.deposit})"
        )

    # ── Reveal ────────────────────────────────────────────────

    def reveal(
        self,
        round_id:    int,
        participant: str,
        amount:      int,
        limit_price: int,
        is_buy:      bool,
        salt:        Salt,
        deposit:     int,
    ) -> RevealedOrderData:
        """Verify a disclosure against the stored commitment and append it."""
        data = self.check_reveal(round_id, participant, amount, limit_price, is_buy, salt, deposit)
        self.record_reveal(round_id, data)
        return data

    def check_reveal(
        self,
        round_id:    int,
        participant: str,
        amount:      int,
        limit_price: int,
        is_buy:      bool,
        salt:        Salt,
        deposit:     int,
    ) -> RevealedOrderData:
        """
        Verify a disclosure without recording it. The returned data carries
        the slot index the order will occupy.

        Raises (in check order):
            NoCommitment, InvalidCommitmentStatus, InvalidOrder,
            CommitmentHashMismatch, DepositMismatch, InsufficientDeposit
        """
        book       = self._round(round_id)
        commitment = book.commitments.get(participant)
        if commitment is None:
            raise NoCommitment(round_id, participant)
        if commitment.status != CommitmentStatus.PENDING:
            raise InvalidCommitmentStatus(CommitmentStatus.PENDING, commitment.status)

        for name, value in (("amount", amount), ("limit_price", limit_price)):
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidOrder(f"{name} must be an integer", **{name: value})
            if value <= 0 or value > UINT128_MAX:
                raise InvalidOrder(f"{name} must be non-zero and fit in 128 bits", **{name: value})

        actual = commitment_hash(participant, amount, limit_price, bool(is_buy), salt)
        if actual != commitment.commitment_hash:
            raise CommitmentHashMismatch(
                expected= "0x" + commitment.commitment_hash.hex(),
                actual=   "0x" + actual.hex(),
            )

        if deposit != commitment.deposit:
            raise DepositMismatch(expected=commitment.deposit, actual=deposit)

        required = required_deposit(amount, limit_price, bool(is_buy))
        if required > commitment.deposit:
            raise InsufficientDeposit(required=required, provided=commitment.deposit)

        return RevealedOrderData(
            participant= participant,
            amount=      amount,
            limit_price= limit_price,
            is_buy=      bool(is_buy),
            deposit=     deposit,
            leaf=        order_leaf(participant, amount, limit_price, bool(is_buy)),
            index=       len(book.tree),
        )

    def record_reveal(self, round_id: int, data: RevealedOrderData) -> None:
        """Append a reveal returned by check_reveal()."""
        book  = self._round(round_id)
        index = book.tree.insert(data.leaf)
        if index != data.index:
            raise ValueError(f"reveal expected slot {data.index}, got {index}")
        book.revealed.append(RevealedOrder(participant=data.participant, is_buy=data.is_buy))
        book.commitments[data.participant].status = CommitmentStatus.REVEALED
        logger.debug(f"round {round_id}: reveal from {data.participant} at slot {index}")

    # ── Deposit returns ───────────────────────────────────────

    def _ensure_not_refunded(self, round_id: int, participant: str) -> Commitment:
        book       = self._round(round_id)
        commitment = book.commitments.get(participant)
        if commitment is None:
            raise NoCommitment(round_id, participant)
        if participant in book.refunded or commitment.status == CommitmentStatus.REFUNDED:
            raise AlreadyRefunded(round_id, participant)
        return commitment

    def check_refundable(
        self, round_id: int, participant: str, include_revealed: bool = False
    ) -> Commitment:
        """
        Raise unless an ordinary refund would succeed. Only unrevealed
        deposits qualify, unless include_revealed is set for a round that
        can no longer settle.
        """
        commitment = self._ensure_not_refunded(round_id, participant)
        if commitment.status == CommitmentStatus.PENDING:
            return commitment
        if include_revealed and commitment.status == CommitmentStatus.REVEALED:
            return commitment
        raise InvalidCommitmentStatus(CommitmentStatus.PENDING, commitment.status)

    def refund(self, round_id: int, participant: str, include_revealed: bool = False) -> int:
        """Return a deposit in full. Returns the amount."""
        commitment = self.check_refundable(round_id, participant, include_revealed)
        if commitment.status == CommitmentStatus.PENDING:
            commitment.status = CommitmentStatus.REFUNDED
        self._round(round_id).refunded.add(participant)
        logger.debug(f"round {round_id}: refund to {participant} ({commitment.deposit})")
        return commitment.deposit

    def emergency_quote(
        self, round_id: int, participant: str, penalty_rate: int
    ) -> Tuple[int, int]:
        """
        (payout, penalty) an emergency refund would produce.

        Revealed orders pay penalty_rate basis points; unrevealed orders
        exposed nothing and are returned in full.
        """
        commitment = self._ensure_not_refunded(round_id, participant)
        if commitment.status == CommitmentStatus.REVEALED:
            penalty = commitment.deposit * penalty_rate // FEE_DENOMINATOR
        else:
            penalty = 0
        return commitment.deposit - penalty, penalty

    def emergency_refund(
        self, round_id: int, participant: str, penalty_rate: int
    ) -> Tuple[int, int]:
        payout, penalty = self.emergency_quote(round_id, participant, penalty_rate)
        commitment = self._round(round_id).commitments[participant]
        if commitment.status == CommitmentStatus.PENDING:
            commitment.status = CommitmentStatus.REFUNDED
        self._round(round_id).refunded.add(participant)
        return payout, penalty

    # ── Queries ───────────────────────────────────────────────

    def get_commitment(self, round_id: int, participant: str) -> Optional[Commitment]:
        book = self._rounds.get(round_id)
        if book is None:
            return None
        return book.commitments.get(participant)

    def committed_count(self, round_id: int) -> int:
        return len(self._round(round_id).commitments)

    def revealed_count(self, round_id: int) -> int:
        return len(self._round(round_id).revealed)

    def revealed_orders(self, round_id: int) -> List[RevealedOrder]:
        return list(self._round(round_id).revealed)

    def revealed_deposits(self, round_id: int) -> List[int]:
        """Deposits of revealed orders, index-aligned with revealed_orders()."""
        book = self._round(round_id)
        return [book.commitments[o.participant].deposit for o in book.revealed]

    def is_refunded(self, round_id: int, participant: str) -> bool:
        return participant in self._round(round_id).refunded

    def leaves(self, round_id: int) -> List[int]:
        return self._round(round_id).tree.leaves()

    def orders_root(self, round_id: int) -> int:
        return self._round(round_id).tree.root()

    def inclusion_proof(self, round_id: int, index: int) -> List[int]:
        return self._round(round_id).tree.proof(index)

    def release(self, round_id: int) -> None:
        """Drop the leaf list of a finalized round."""
        book = self._round(round_id)
        book.tree.clear()
        book.released = True
