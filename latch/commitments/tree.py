"""
latch/commitments/tree.py

Commitment Tree

Fixed-capacity Merkle tree over revealed-order leaves. The tree always
has exactly MAX_ORDERS slots; unused slots hold the zero sentinel. Node
hashes are commutative (children sorted before hashing), so an inclusion
proof is just the list of siblings with no left/right flags.

Zero revealed orders yields root 0 by convention. That is distinct from
the root of sixteen zero leaves.
"""

from typing import List, Sequence

from latch.core.hashing import hash_pair
from latch.core.models import MAX_ORDERS

EMPTY_ROOT = 0

TREE_DEPTH = (MAX_ORDERS - 1).bit_length()


def _padded(leaves: Sequence[int]) -> List[int]:
    if len(leaves) > MAX_ORDERS:
        raise ValueError(
            f"tree capacity is {MAX_ORDERS} leaves, got {len(leaves)}"
        )
    return list(leaves) + [0] * (MAX_ORDERS - len(leaves))


def _levels(leaves: Sequence[int]) -> List[List[int]]:
    level  = _padded(leaves)
    levels = [level]
    while len(level) > 1:
        level = [hash_pair(level[i], level[i + 1]) for i in range(0, len(level), 2)]
        levels.append(level)
    return levels


def compute_root(leaves: Sequence[int]) -> int:
    """Root of the zero-padded tree. Returns EMPTY_ROOT for no leaves."""
    if not leaves:
        return EMPTY_ROOT
    return _levels(leaves)[-1][0]


def build_proof(leaves: Sequence[int], index: int) -> List[int]:
    """Sibling path for the leaf at index, bottom-up."""
    if not 0 <= index < len(leaves):
        raise IndexError(f"leaf index {index} out of range for {len(leaves)} leaves")
    proof = []
    for level in _levels(leaves)[:-1]:
        proof.append(level[index ^ 1])
        index //= 2
    return proof


def verify_inclusion(root: int, leaf: int, proof: Sequence[int]) -> bool:
    """
    Replay the commutative pair rule from leaf to root.

    The zero sentinel is never a member, and proofs must span the full
    tree depth.
    """
    if leaf == 0 or root == EMPTY_ROOT or len(proof) != TREE_DEPTH:
        return False
    computed = leaf
    for sibling in proof:
        computed = hash_pair(computed, sibling)
    return computed == root


class CommitmentTree:
    """
    Arena of MAX_ORDERS leaf slots filled in reveal order.

    Usage:
        tree = CommitmentTree()
        index = tree.insert(leaf)
        root  = tree.root()
        proof = tree.proof(index)
    """

    def __init__(self) -> None:
        self._slots: List[int] = [0] * MAX_ORDERS
        self._count: int       = 0

    def __len__(self) -> int:
        return self._count

    @property
    def capacity(self) -> int:
        return MAX_ORDERS

    def insert(self, leaf: int) -> int:
        """Place leaf in the next free slot and return its index."""
        if leaf == 0:
            raise ValueError("zero is the empty-slot sentinel and cannot be a leaf")
        if self._count >= MAX_ORDERS:
            raise ValueError(f"tree is full ({MAX_ORDERS} leaves)")
        index = self._count
        self._slots[index] = leaf
        self._count += 1
        return index

    def leaves(self) -> List[int]:
        return self._slots[: self._count]

    def root(self) -> int:
        return compute_root(self.leaves())

    def proof(self, index: int) -> List[int]:
        return build_proof(self.leaves(), index)

    def clear(self) -> None:
        """Release the leaf list once a round no longer needs it."""
        self._slots = [0] * MAX_ORDERS
        self._count = 0
