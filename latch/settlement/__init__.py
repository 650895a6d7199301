"""
Latch Settlement

A settlement attempt is validated against tracked round state before any
proof is checked, then planned, then executed:

    validate  ordered precondition checks, proof verification last
    plan      pure; computes every credit and total, mutates nothing
    execute   pulls solver liquidity only after the plan balances
"""

from latch.settlement.claims import PublicClaims, compute_protocol_fee
from latch.settlement.executor import SettlementExecutor, SettlementPlan
from latch.settlement.validator import RoundSnapshot, SettlementValidator

__all__ = [
    "PublicClaims",
    "compute_protocol_fee",
    "SettlementExecutor",
    "SettlementPlan",
    "RoundSnapshot",
    "SettlementValidator",
]
