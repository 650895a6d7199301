"""
Latch Commitments - sealed orders, reveals and the per-round order tree.
"""

from latch.commitments.allowlist import AllowlistTree, SortedMerkleMembership
from latch.commitments.ledger import CommitmentLedger, required_deposit
from latch.commitments.tree import CommitmentTree, verify_inclusion

__all__ = [
    "AllowlistTree",
    "SortedMerkleMembership",
    "CommitmentLedger",
    "CommitmentTree",
    "required_deposit",
    "verify_inclusion",
]
