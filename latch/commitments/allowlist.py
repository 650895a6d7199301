"""
latch/commitments/allowlist.py

Allowlist tree and membership verification for GATED pools.

Leaves are trader_leaf(identity), sorted ascending. Levels are built by
hashing adjacent pairs with the same commutative pair hash as the order
tree; an unpaired node at the end of a level is promoted unchanged. A
single-member tree has the member's leaf as its root and an empty proof.
"""

from typing import Dict, Iterable, List, Protocol, Sequence

from latch.core.hashing import hash_pair, normalize_identity, trader_leaf


class MembershipVerifier(Protocol):
    def is_member(self, identity: str, root: int, proof: Sequence[int]) -> bool:
        """Return True if identity is included under root."""


class SortedMerkleMembership:
    """MembershipVerifier for trees built by AllowlistTree."""

    def is_member(self, identity: str, root: int, proof: Sequence[int]) -> bool:
        if not root:
            return False
        computed = trader_leaf(identity)
        for sibling in proof:
            computed = hash_pair(computed, int(sibling))
        return computed == root


class AllowlistTree:
    """
    Build a sorted allowlist tree from identities.

    Usage:
        tree  = AllowlistTree(["0xabc...", "0xdef..."])
        root  = tree.root
        proof = tree.proof("0xabc...")
    """

    def __init__(self, identities: Iterable[str]) -> None:
        members = sorted({normalize_identity(i) for i in identities})
        if not members:
            raise ValueError("allowlist must contain at least one identity")

        leaves = sorted(trader_leaf(m) for m in members)
        self._index: Dict[int, int] = {leaf: i for i, leaf in enumerate(leaves)}
        self.members: List[str]     = members
        self._levels: List[List[int]] = [leaves]

        level = leaves
        while len(level) > 1:
            nxt = []
            for i in range(0, len(level), 2):
                if i + 1 < len(level):
                    nxt.append(hash_pair(level[i], level[i + 1]))
                else:
                    nxt.append(level[i])
            self._levels.append(nxt)
            level = nxt

    @property
    def root(self) -> int:
        return self._levels[-1][0]

    def __contains__(self, identity: str) -> bool:
        return trader_leaf(identity) in self._index

    def proof(self, identity: str) -> List[int]:
        """Sibling path for identity. Raises KeyError for non-members."""
        leaf = trader_leaf(identity)
        if leaf not in self._index:
            raise KeyError(f"{identity} is not on the allowlist")

        index = self._index[leaf]
        proof = []
        for level in self._levels[:-1]:
            sibling = index ^ 1
            if sibling < len(level):
                proof.append(level[sibling])
            index //= 2
        return proof
