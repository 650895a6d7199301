"""
latch/settlement/claims.py

Public claims of a settlement proof.

Wire layout (PUBLIC_INPUT_COUNT = 25 unsigned integers):

    [0] round_id        [5] orders_root
    [1] clearing_price  [6] allowlist_root
    [2] buy_volume      [7] fee_rate
    [3] sell_volume     [8] protocol_fee
    [4] order_count     [9..24] fill_0 .. fill_15
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from latch.core.exceptions import InvalidClaimsLength, InvalidPublicClaims
from latch.core.hashing import UINT256_MAX
from latch.core.models import FEE_DENOMINATOR, MAX_ORDERS, PUBLIC_INPUT_COUNT

FILLS_OFFSET = 9


def compute_protocol_fee(buy_volume: int, sell_volume: int, fee_rate: int) -> int:
    """floor(min(buy, sell) * fee_rate / FEE_DENOMINATOR)"""
    return min(buy_volume, sell_volume) * fee_rate // FEE_DENOMINATOR


@dataclass(frozen=True)
class PublicClaims:
    round_id:       int
    clearing_price: int
    buy_volume:     int
    sell_volume:    int
    order_count:    int
    orders_root:    int
    allowlist_root: int
    fee_rate:       int
    protocol_fee:   int
    fills:          Tuple[int, ...]

    @property
    def matched_volume(self) -> int:
        return min(self.buy_volume, self.sell_volume)

    # ── Construction ──────────────────────────────────────────

    @classmethod
    def from_sequence(cls, values: Sequence[int]) -> "PublicClaims":
        """
        Decode a raw claims vector.

        Raises:
            InvalidClaimsLength — len(values) != PUBLIC_INPUT_COUNT
            InvalidPublicClaims — an element is not an unsigned 256-bit int
        """
        values = list(values)
        if len(values) != PUBLIC_INPUT_COUNT:
            raise InvalidClaimsLength(expected=PUBLIC_INPUT_COUNT, actual=len(values))
        for i, v in enumerate(values):
            if not isinstance(v, int) or isinstance(v, bool) or v < 0 or v > UINT256_MAX:
                raise InvalidPublicClaims(index=i, value=v)

        return cls(
            round_id=       values[0],
            clearing_price= values[1],
            buy_volume=     values[2],
            sell_volume=    values[3],
            order_count=    values[4],
            orders_root=    values[5],
            allowlist_root= values[6],
            fee_rate=       values[7],
            protocol_fee=   values[8],
            fills=          tuple(values[FILLS_OFFSET:]),
        )

    @classmethod
    def build(
        cls,
        round_id:       int,
        clearing_price: int,
        buy_volume:     int,
        sell_volume:    int,
        orders_root:    int,
        allowlist_root: int,
        fee_rate:       int,
        fills:          Sequence[int],
    ) -> "PublicClaims":
        """
        Lay out claims the way a solver client submits them: the fee is
        derived from the claimed volumes, fills are zero-padded and the
        order count is the number of fills supplied.
        """
        fills = list(fills)
        if len(fills) > MAX_ORDERS:
            raise ValueError(f"at most {MAX_ORDERS} fills, got {len(fills)}")
        return cls(
            round_id=       round_id,
            clearing_price= clearing_price,
            buy_volume=     buy_volume,
            sell_volume=    sell_volume,
            order_count=    len(fills),
            orders_root=    orders_root,
            allowlist_root= allowlist_root,
            fee_rate=       fee_rate,
            protocol_fee=   compute_protocol_fee(buy_volume, sell_volume, fee_rate),
            fills=          tuple(fills + [0] * (MAX_ORDERS - len(fills))),
        )

    # ── Serialization ─────────────────────────────────────────

    def to_list(self) -> List[int]:
        return [
            self.round_id,
            self.clearing_price,
            self.buy_volume,
            self.sell_volume,
            self.order_count,
            self.orders_root,
            self.allowlist_root,
            self.fee_rate,
            self.protocol_fee,
            *self.fills,
        ]
