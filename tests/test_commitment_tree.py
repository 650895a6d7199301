"""
tests/test_commitment_tree.py

Order tree (fixed 16 slots, zero padding, commutative pair hash) and the
sorted allowlist tree.
"""

import pytest

from latch.commitments.allowlist import AllowlistTree, SortedMerkleMembership
from latch.commitments.tree import (
    EMPTY_ROOT,
    TREE_DEPTH,
    CommitmentTree,
    build_proof,
    compute_root,
    verify_inclusion,
)
from latch.core.hashing import (
    FIELD_MODULUS,
    MERKLE_DOMAIN,
    field_hash,
    hash_pair,
    order_leaf,
    trader_leaf,
)
from latch.core.models import MAX_ORDERS

from support import ALICE, BOB, CAROL, DAVE, E18, OUTSIDER


def leaves(n):
    return [order_leaf(f"0x{i + 1:040x}", (i + 1) * E18, E18, i % 2 == 0) for i in range(n)]


class TestFieldHash:

    def test_output_is_a_field_element(self):
        for words in [(0,), (1, 2, 3), (2 ** 256 - 1,)]:
            assert 0 <= field_hash(*words) < FIELD_MODULUS

    def test_word_order_matters(self):
        assert field_hash(1, 2) != field_hash(2, 1)

    def test_out_of_range_word_rejected(self):
        with pytest.raises(ValueError):
            field_hash(-1)
        with pytest.raises(ValueError):
            field_hash(2 ** 256)

    def test_pair_hash_is_commutative(self):
        assert hash_pair(5, 9) == hash_pair(9, 5) == field_hash(MERKLE_DOMAIN, 5, 9)

    def test_domains_separate_leaf_spaces(self):
        assert order_leaf(ALICE, 1, 1, True) != order_leaf(ALICE, 1, 1, False)
        assert trader_leaf(ALICE) != trader_leaf(BOB)


class TestCommitmentTree:

    def test_empty_root_is_zero(self):
        assert compute_root([]) == EMPTY_ROOT == 0
        assert CommitmentTree().root() == 0

    def test_empty_root_differs_from_all_zero_slots(self):
        """Zero orders is a convention, not the hash of sixteen zero leaves."""
        level = [0] * MAX_ORDERS
        while len(level) > 1:
            level = [hash_pair(level[i], level[i + 1]) for i in range(0, len(level), 2)]
        assert level[0] != EMPTY_ROOT

    def test_single_leaf_is_padded(self):
        leaf = leaves(1)[0]
        assert compute_root([leaf]) != leaf
        assert TREE_DEPTH == 4

    @pytest.mark.parametrize("n", [1, 2, 3, 7, 16])
    def test_every_leaf_proves_inclusion(self, n):
        ls   = leaves(n)
        root = compute_root(ls)
        for i, leaf in enumerate(ls):
            proof = build_proof(ls, i)
            assert len(proof) == TREE_DEPTH
            assert verify_inclusion(root, leaf, proof)

    def test_non_member_rejected(self):
        ls    = leaves(4)
        root  = compute_root(ls)
        proof = build_proof(ls, 0)
        assert not verify_inclusion(root, leaves(5)[4], proof)

    def test_zero_sentinel_never_a_member(self):
        ls    = leaves(3)
        root  = compute_root(ls)
        proof = build_proof(ls, 2)
        # Slot 3 holds zero and shares a parent with slot 2.
        assert proof[0] == 0
        assert not verify_inclusion(root, 0, [ls[2]] + proof[1:])

    def test_short_proof_rejected(self):
        ls   = leaves(2)
        root = compute_root(ls)
        assert not verify_inclusion(root, ls[0], build_proof(ls, 0)[:-1])

    def test_root_depends_on_order(self):
        ls = leaves(3)
        assert compute_root(ls) != compute_root([ls[1], ls[0], ls[2]])

    def test_arena_insert_and_clear(self):
        tree = CommitmentTree()
        ls   = leaves(3)
        assert [tree.insert(leaf) for leaf in ls] == [0, 1, 2]
        assert len(tree) == 3
        assert tree.root() == compute_root(ls)
        assert verify_inclusion(tree.root(), ls[1], tree.proof(1))

        tree.clear()
        assert len(tree) == 0
        assert tree.root() == EMPTY_ROOT

    def test_arena_capacity(self):
        tree = CommitmentTree()
        for leaf in leaves(MAX_ORDERS):
            tree.insert(leaf)
        with pytest.raises(ValueError):
            tree.insert(12345)

    def test_arena_rejects_zero_leaf(self):
        with pytest.raises(ValueError):
            CommitmentTree().insert(0)

    def test_proof_index_out_of_range(self):
        with pytest.raises(IndexError):
            build_proof(leaves(2), 2)


class TestAllowlistTree:

    def test_single_member_root_is_its_leaf(self):
        tree = AllowlistTree([ALICE])
        assert tree.root == trader_leaf(ALICE)
        assert tree.proof(ALICE) == []
        assert SortedMerkleMembership().is_member(ALICE, tree.root, [])

    @pytest.mark.parametrize("members", [
        [ALICE, BOB],
        [ALICE, BOB, CAROL],
        [ALICE, BOB, CAROL, DAVE],
    ])
    def test_members_verify(self, members):
        tree     = AllowlistTree(members)
        verifier = SortedMerkleMembership()
        for m in members:
            assert m in tree
            assert verifier.is_member(m, tree.root, tree.proof(m))

    def test_non_member(self):
        tree = AllowlistTree([ALICE, BOB, CAROL])
        assert OUTSIDER not in tree
        with pytest.raises(KeyError):
            tree.proof(OUTSIDER)
        assert not SortedMerkleMembership().is_member(OUTSIDER, tree.root, tree.proof(ALICE))

    def test_zero_root_never_admits(self):
        assert not SortedMerkleMembership().is_member(ALICE, 0, [])

    def test_input_order_and_duplicates_ignored(self):
        assert AllowlistTree([CAROL, ALICE, BOB, ALICE]).root == AllowlistTree([ALICE, BOB, CAROL]).root

    def test_empty_allowlist_rejected(self):
        with pytest.raises(ValueError):
            AllowlistTree([])
