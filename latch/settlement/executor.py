"""
latch/settlement/executor.py

Settlement Executor

Turns a trusted clearing price and fill vector into claimable balances.
Work is split so a rejection can never leave partial effects:

    plan():            pure. Computes every credit, the solver's asset-A
                       obligation and the protocol fee, and raises on
                       escrow shortfall. Touches nothing.
    check_liquidity(): raises unless the solver approved and holds the
                       asset-A obligation.
    execute():         repeats the liquidity check and pulls. The pull is
                       the only mutation and happens after every check.

Per revealed order i, with cost = floor(fill_i × price / PRICE_PRECISION):

    buy   claimable_a += fill_i
          claimable_b += max(0, deposit_i − cost)
          solver owes fill_i of asset A
    sell  claimable_b += cost + max(0, deposit_i − fill_i)

The asset-B residual (revealed deposits minus participant payouts) pays
the protocol fee, fee_b = floor(protocol_fee × price / PRICE_PRECISION);
the rest of the residual is credited to the solver, who delivered the
asset A that sellers' B paid for.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from latch.core.exceptions import EscrowShortfall, InsufficientSolverLiquidity
from latch.core.models import PRICE_PRECISION, Asset, RevealedOrder
from latch.ledger.assets import AssetLedger
from latch.settlement.claims import PublicClaims

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credit:
    account:  str
    amount_a: int
    amount_b: int


@dataclass
class SettlementPlan:
    round_id:         int
    clearing_price:   int
    solver:           str
    credits:          List[Credit] = field(default_factory=list)
    solver_asset_a:   int = 0
    escrowed_b:       int = 0
    participant_b:    int = 0
    fee_b:            int = 0
    solver_b:         int = 0

    def totals(self) -> Dict[str, int]:
        return {
            "asset_a": sum(c.amount_a for c in self.credits),
            "asset_b": sum(c.amount_b for c in self.credits),
        }


def fill_cost(fill: int, price: int) -> int:
    """Asset-B value of a fill at the clearing price."""
    return fill * price // PRICE_PRECISION


class SettlementExecutor:
    """
    Usage:
        executor = SettlementExecutor()
        plan = executor.plan(claims, orders, deposits, solver)
        executor.execute(plan, assets)
    """

    def plan(
        self,
        claims:   PublicClaims,
        orders:   Sequence[RevealedOrder],
        deposits: Sequence[int],
        solver:   str,
    ) -> SettlementPlan:
        if len(orders) != len(deposits):
            raise ValueError("orders and deposits must be index-aligned")

        price = claims.clearing_price
        plan  = SettlementPlan(
            round_id=       claims.round_id,
            clearing_price= price,
            solver=         solver,
        )

        for i, (order, deposit) in enumerate(zip(orders, deposits)):
            fill = claims.fills[i]
            cost = fill_cost(fill, price)
            if order.is_buy:
                amount_a = fill
                amount_b = max(0, deposit - cost)
                plan.solver_asset_a += fill
            else:
                amount_a = 0
                amount_b = cost + max(0, deposit - fill)

            plan.credits.append(Credit(order.participant, amount_a, amount_b))
            plan.escrowed_b    += deposit
            plan.participant_b += amount_b

        plan.fee_b = claims.protocol_fee * price // PRICE_PRECISION
        residual   = plan.escrowed_b - plan.participant_b
        if residual < plan.fee_b:
            raise EscrowShortfall(
                escrowed= plan.escrowed_b,
                payouts=  plan.participant_b,
                fee=      plan.fee_b,
            )
        plan.solver_b = residual - plan.fee_b
        if plan.solver_b:
            plan.credits.append(Credit(solver, 0, plan.solver_b))
        return plan

    def check_liquidity(self, plan: SettlementPlan, assets: AssetLedger) -> None:
        required = plan.solver_asset_a
        if required == 0:
            return
        available = min(
            assets.allowance(plan.solver, Asset.A),
            assets.balance_of(plan.solver, Asset.A),
        )
        if available < required:
            logger.warning(
                f"round {plan.round_id}: solver {plan.solver} liquidity "
                f"{available} below required {required}"
            )
            raise InsufficientSolverLiquidity(required=required, available=available)

    def execute(self, plan: SettlementPlan, assets: AssetLedger) -> None:
        """Pull the solver's asset-A obligation. Raises before any transfer."""
        self.check_liquidity(plan, assets)
        if plan.solver_asset_a:
            assets.pull(plan.solver, Asset.A, plan.solver_asset_a)
