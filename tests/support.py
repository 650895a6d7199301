"""
tests/support.py

Shared identities and an AuctionDriver that walks a market through a
round the way a participant client and a solver client would.
"""

import hashlib
from dataclasses import dataclass
from typing import List, Optional, Sequence

from latch.commitments.ledger import required_deposit
from latch.core.hashing import commitment_hash
from latch.core.models import Asset
from latch.settlement.claims import PublicClaims

E18 = 10 ** 18

ADMIN    = "0x" + "aa" * 20
TREASURY = "0x" + "fe" * 20
ALICE    = "0x" + "a1" * 20
BOB      = "0x" + "b0" * 20
CAROL    = "0x" + "c0" * 20
DAVE     = "0x" + "d0" * 20
SOLVER   = "0x" + "5a" * 20
SOLVER_2 = "0x" + "5b" * 20
OUTSIDER = "0x" + "99" * 20

PARTICIPANTS = [ALICE, BOB, CAROL, DAVE]

FUNDING = 10_000 * E18


def make_salt(participant: str, tag: int = 0) -> bytes:
    return hashlib.sha256(f"{participant}:{tag}".encode()).digest()


@dataclass
class Order:
    participant: str
    amount:      int
    limit_price: int
    is_buy:      bool
    salt:        bytes
    deposit:     int

    @property
    def hash(self) -> bytes:
        return commitment_hash(
            self.participant, self.amount, self.limit_price, self.is_buy, self.salt
        )


def make_order(
    participant: str,
    amount:      int,
    limit_price: int,
    is_buy:      bool,
    deposit:     Optional[int] = None,
    tag:         int = 0,
) -> Order:
    if deposit is None:
        deposit = required_deposit(amount, limit_price, is_buy)
    return Order(
        participant= participant,
        amount=      amount,
        limit_price= limit_price,
        is_buy=      is_buy,
        salt=        make_salt(participant, tag),
        deposit=     deposit,
    )


def fund(assets, accounts: Sequence[str] = PARTICIPANTS, amount: int = FUNDING) -> None:
    for account in accounts:
        assets.mint(account, Asset.B, amount)


def fund_solver(assets, solver: str = SOLVER, amount: int = FUNDING) -> None:
    assets.mint(solver, Asset.A, amount)
    assets.approve(solver, Asset.A, amount)


class AuctionDriver:
    """
    Usage:
        driver.start()
        driver.commit(order); driver.to_reveal(); driver.reveal(order)
        driver.to_settle()
        driver.settle(SOLVER, driver.claims(price, fills))
    """

    def __init__(self, market, ticker, prover) -> None:
        self.market = market
        self.ticker = ticker
        self.prover = prover

    @property
    def round_id(self) -> int:
        return self.market.current_round_id

    @property
    def batch(self):
        return self.market.get_batch(self.round_id)

    def start(self, caller: str = ADMIN) -> int:
        return self.market.start_round(caller)

    def commit(self, order: Order, allowlist_proof=()):
        return self.market.commit(order.participant, order.hash, order.deposit, allowlist_proof)

    def reveal(self, order: Order) -> int:
        return self.market.reveal(
            order.participant,
            order.amount,
            order.limit_price,
            order.is_buy,
            order.salt,
            order.deposit,
        )

    def to_reveal(self) -> None:
        self.ticker.set(self.batch.commit_end)

    def to_settle(self, offset: int = 0) -> None:
        self.ticker.set(self.batch.reveal_end + offset)

    def to_claim_end(self) -> None:
        self.ticker.set(self.batch.claim_end)

    def run_orders(self, orders: Sequence[Order], reveal: Optional[Sequence[Order]] = None) -> None:
        """Commit every order, reveal those in reveal (default all), move to SETTLE."""
        for order in orders:
            self.commit(order)
        self.to_reveal()
        for order in (orders if reveal is None else reveal):
            self.reveal(order)
        self.to_settle()

    def claims(
        self,
        clearing_price: int,
        fills:          Sequence[int],
        buy_volume:     Optional[int] = None,
        sell_volume:    Optional[int] = None,
        round_id:       Optional[int] = None,
    ) -> PublicClaims:
        round_id = round_id or self.round_id
        orders   = self.market.revealed_orders(round_id)
        if buy_volume is None:
            buy_volume = sum(f for f, o in zip(fills, orders) if o.is_buy)
        if sell_volume is None:
            sell_volume = sum(f for f, o in zip(fills, orders) if not o.is_buy)
        return PublicClaims.build(
            round_id=       round_id,
            clearing_price= clearing_price,
            buy_volume=     buy_volume,
            sell_volume=    sell_volume,
            orders_root=    self.market.orders_root(round_id),
            allowlist_root= self.market.get_batch(round_id).allowlist_root,
            fee_rate=       self.market.pool_config.fee_rate,
            fills=          fills,
        )

    def settle(self, solver: str, claims: PublicClaims):
        values = claims.to_list()
        return self.market.settle(solver, self.prover.prove(values), values)

    def settle_raw(self, solver: str, values: List[int]):
        return self.market.settle(solver, self.prover.prove(values), values)
