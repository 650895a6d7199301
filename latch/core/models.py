"""
latch/core/models.py

Latch Data Model

Per-round state is keyed by round id inside a market; a market is keyed by
market id inside a MarketRegistry. Every record here is a plain dataclass
with a to_dict() that produces wire-safe output (see core/canonical.py).
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional

from latch.core.canonical import hex_word, wire_value
from latch.core.exceptions import ConfigError


# ─────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────

MAX_ORDERS         = 16
PUBLIC_INPUT_COUNT = 9 + MAX_ORDERS
PRICE_PRECISION    = 10 ** 18
FEE_DENOMINATOR    = 10_000
MAX_FEE_RATE       = 1_000


# ─────────────────────────────────────────────────────────────
# Enumerations
# ─────────────────────────────────────────────────────────────

class PoolMode(IntEnum):
    OPEN  = 0
    GATED = 1


class BatchPhase(IntEnum):
    """Round lifecycle. Ordered: a later phase never precedes an earlier one."""
    INACTIVE  = 0
    COMMIT    = 1
    REVEAL    = 2
    SETTLE    = 3
    CLAIM     = 4
    FINALIZED = 5


class CommitmentStatus(IntEnum):
    NONE     = 0
    PENDING  = 1
    REVEALED = 2
    REFUNDED = 3


class ClaimStatus(IntEnum):
    NONE    = 0
    PENDING = 1
    CLAIMED = 2


class BondStatus(IntEnum):
    NONE      = 0
    POSTED    = 1
    RETURNED  = 2
    FORFEITED = 3


class WithdrawalStatus(IntEnum):
    NONE      = 0
    PENDING   = 1
    EXECUTED  = 2
    CANCELLED = 3


class SolverTier(IntEnum):
    PRIMARY_ONLY   = 0
    ANY_REGISTERED = 1
    ANYONE         = 2


class Asset(IntEnum):
    """The two assets of a market. B is the quote asset all deposits use."""
    A = 0
    B = 1


# ─────────────────────────────────────────────────────────────
# Pool configuration
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PoolConfig:
    """
    Immutable per-market pool parameters.

    Durations are in ticks. fee_rate is in basis points of matched volume.
    """
    mode:            PoolMode
    commit_duration: int
    reveal_duration: int
    settle_duration: int
    claim_duration:  int
    fee_rate:        int
    allowlist_root:  int = 0

    def validate(self, max_phase_duration: int) -> None:
        """Raise ConfigError on the first invalid field."""
        if not isinstance(self.mode, PoolMode):
            raise ConfigError("Unknown pool mode", {"mode": self.mode})

        for name in (
            "commit_duration",
            "reveal_duration",
            "settle_duration",
            "claim_duration",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or not 1 <= value <= max_phase_duration:
                raise ConfigError(
                    "Phase duration out of range",
                    {"field": name, "value": value, "max": max_phase_duration},
                )

        if not isinstance(self.fee_rate, int) or not 0 <= self.fee_rate <= MAX_FEE_RATE:
            raise ConfigError(
                "Fee rate out of range",
                {"fee_rate": self.fee_rate, "max": MAX_FEE_RATE},
            )

        if self.mode == PoolMode.GATED and not self.allowlist_root:
            raise ConfigError("GATED pool requires a non-zero allowlist root")

    def effective_allowlist_root(self) -> int:
        """Root snapshotted into each round. Zero in OPEN mode."""
        return self.allowlist_root if self.mode == PoolMode.GATED else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode":            self.mode.name,
            "commit_duration": self.commit_duration,
            "reveal_duration": self.reveal_duration,
            "settle_duration": self.settle_duration,
            "claim_duration":  self.claim_duration,
            "fee_rate":        self.fee_rate,
            "allowlist_root":  hex_word(self.allowlist_root),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoolConfig":
        """
        Build from a config mapping. mode accepts a name or an integer;
        allowlist_root accepts an integer or a hex string.
        """
        raw_mode = data.get("mode", "OPEN")
        try:
            mode = (
                PoolMode[raw_mode.upper()]
                if isinstance(raw_mode, str)
                else PoolMode(raw_mode)
            )
        except (KeyError, ValueError) as exc:
            raise ConfigError("Unknown pool mode", {"mode": raw_mode}) from exc

        try:
            root = data.get("allowlist_root", 0) or 0
            if isinstance(root, str):
                root = int(root, 16) if root.lower().startswith("0x") else int(root)
            return cls(
                mode=            mode,
                commit_duration= int(data["commit_duration"]),
                reveal_duration= int(data["reveal_duration"]),
                settle_duration= int(data["settle_duration"]),
                claim_duration=  int(data["claim_duration"]),
                fee_rate=        int(data.get("fee_rate", 0)),
                allowlist_root=  root,
            )
        except KeyError as exc:
            raise ConfigError("Missing pool field", {"field": exc.args[0]}) from exc
        except (TypeError, ValueError) as exc:
            raise ConfigError("Invalid pool field", {"error": str(exc)}) from exc


# ─────────────────────────────────────────────────────────────
# Round state
# ─────────────────────────────────────────────────────────────

@dataclass
class Batch:
    """One auction round. Boundaries are fixed at start; outputs at settlement."""
    market_id:       str
    round_id:        int
    start_tick:      int
    commit_end:      int
    reveal_end:      int
    settle_end:      int
    claim_end:       int
    allowlist_root:  int
    starter:         str
    committed_count: int = 0
    revealed_count:  int = 0
    clearing_price:  int = 0
    buy_volume:      int = 0
    sell_volume:     int = 0
    orders_root:     int = 0
    protocol_fee:    int = 0
    settled:         bool = False
    finalized:       bool = False
    settled_at:      Optional[int] = None
    solver:          Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = wire_value({
            "market_id":       self.market_id,
            "round_id":        self.round_id,
            "start_tick":      self.start_tick,
            "commit_end":      self.commit_end,
            "reveal_end":      self.reveal_end,
            "settle_end":      self.settle_end,
            "claim_end":       self.claim_end,
            "starter":         self.starter,
            "committed_count": self.committed_count,
            "revealed_count":  self.revealed_count,
            "clearing_price":  self.clearing_price,
            "buy_volume":      self.buy_volume,
            "sell_volume":     self.sell_volume,
            "protocol_fee":    self.protocol_fee,
            "settled":         self.settled,
            "finalized":       self.finalized,
            "settled_at":      self.settled_at,
            "solver":          self.solver,
        })
        d["allowlist_root"] = hex_word(self.allowlist_root)
        d["orders_root"]    = hex_word(self.orders_root)
        return d


@dataclass
class Commitment:
    participant:     str
    commitment_hash: bytes
    deposit:         int
    status:          CommitmentStatus = CommitmentStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        return wire_value({
            "participant":     self.participant,
            "commitment_hash": self.commitment_hash,
            "deposit":         self.deposit,
            "status":          self.status,
        })


@dataclass(frozen=True)
class RevealedOrder:
    """Minimal authoritative reveal record. Index-aligned with fill slots."""
    participant: str
    is_buy:      bool


@dataclass(frozen=True)
class RevealedOrderData:
    """Full disclosure published on the event sink, never stored in state."""
    participant: str
    amount:      int
    limit_price: int
    is_buy:      bool
    deposit:     int
    leaf:        int
    index:       int

    def to_dict(self) -> Dict[str, Any]:
        d = wire_value({
            "participant": self.participant,
            "amount":      self.amount,
            "limit_price": self.limit_price,
            "is_buy":      self.is_buy,
            "deposit":     self.deposit,
            "index":       self.index,
        })
        d["leaf"] = hex_word(self.leaf)
        return d


@dataclass
class Claimable:
    """Two-asset balance owed after settlement. Accumulated once, claimed once."""
    amount_a: int = 0
    amount_b: int = 0
    claimed:  bool = False

    @property
    def status(self) -> ClaimStatus:
        if self.claimed:
            return ClaimStatus.CLAIMED
        if self.amount_a or self.amount_b:
            return ClaimStatus.PENDING
        return ClaimStatus.NONE

    def to_dict(self) -> Dict[str, Any]:
        return wire_value({
            "amount_a": self.amount_a,
            "amount_b": self.amount_b,
            "claimed":  self.claimed,
            "status":   self.status,
        })


@dataclass
class SolverInfo:
    registered: bool = False
    primary:    bool = False
    successes:  int = 0
    failures:   int = 0

    def to_dict(self) -> Dict[str, Any]:
        return wire_value({
            "registered": self.registered,
            "primary":    self.primary,
            "successes":  self.successes,
            "failures":   self.failures,
        })


@dataclass
class BondRecord:
    round_id: int
    poster:   str
    amount:   int
    status:   BondStatus = BondStatus.POSTED


@dataclass
class PendingWithdrawal:
    account:     str
    amount:      int
    unlock_tick: int
    status:      WithdrawalStatus = WithdrawalStatus.PENDING


@dataclass(frozen=True)
class SettledRoundSummary:
    """Append-only record written once per settled round."""
    round_id:       int
    clearing_price: int
    buy_volume:     int
    sell_volume:    int
    order_count:    int
    orders_root:    int
    protocol_fee:   int
    solver:         str
    settled_at:     int

    def to_dict(self) -> Dict[str, Any]:
        d = wire_value({
            "round_id":       self.round_id,
            "clearing_price": self.clearing_price,
            "buy_volume":     self.buy_volume,
            "sell_volume":    self.sell_volume,
            "order_count":    self.order_count,
            "protocol_fee":   self.protocol_fee,
            "solver":         self.solver,
            "settled_at":     self.settled_at,
        })
        d["orders_root"] = hex_word(self.orders_root)
        return d
