#!/usr/bin/env python3
"""
Test dense Merkle trees and the parallel multi-level composition.
"""

import sys

import pytest

from poseidon_smt import (
    MerkleNode,
    MerkleTree,
    TreeSizeError,
    build_multilevel_root,
    combine_roots,
    compute_branch_roots,
    new_branched_merkle_tree,
    new_deterministic_merkle_tree,
    poseidon_hash,
)
from poseidon_smt.composition import branch_start_indices
from poseidon_smt.dense import deterministic_leaves


def test_leaf_node_keeps_data():
    assert MerkleNode(data=1).data == 1


def test_internal_node_hashes_children():
    left = MerkleNode(data=1)
    right = MerkleNode(data=2)
    assert MerkleNode(left, right).data == poseidon_hash([1, 2])


def test_node_needs_data_or_both_children():
    with pytest.raises(ValueError):
        MerkleNode()
    with pytest.raises(ValueError):
        MerkleNode(MerkleNode(data=1), None)


def test_deterministic_tree_root():
    """Regression fixture for 16 leaves H([1]) .. H([16])."""
    tree = new_deterministic_merkle_tree(4, 1)
    assert tree.root == 12849909573197439023386719626541092579807164430016488237755007164956786115756


def test_from_leaves_structure():
    tree = MerkleTree.from_leaves([1, 2, 3, 4])
    expected = poseidon_hash([poseidon_hash([1, 2]), poseidon_hash([3, 4])])
    assert tree.root == expected
    assert tree.root_node.left.data == poseidon_hash([1, 2])
    assert MerkleTree.from_leaves([9]).root == 9


@pytest.mark.parametrize("count", [0, 3, 6])
def test_from_leaves_requires_power_of_two(count):
    with pytest.raises(TreeSizeError):
        MerkleTree.from_leaves(list(range(count)))


def test_branched_tree_matches_flat_tree():
    flat = new_deterministic_merkle_tree(3, 5)
    assert new_branched_merkle_tree(3, 5, branch_depth=1).root == flat.root
    assert new_branched_merkle_tree(3, 5, branch_depth=6).root == flat.root


def test_negative_levels_rejected():
    with pytest.raises(TreeSizeError):
        deterministic_leaves(-1)
    with pytest.raises(TreeSizeError):
        branch_start_indices(1, -2)


@pytest.mark.parametrize("workers", [0, -1])
def test_branch_roots_need_a_worker(workers):
    with pytest.raises(TreeSizeError):
        compute_branch_roots(1, 1, workers=workers)


def test_branch_start_indices():
    assert branch_start_indices(2, 3, pre_image=1) == [8, 16, 24, 32]


def test_branch_roots_in_process():
    roots = compute_branch_roots(2, 2, pre_image=0, workers=1)
    assert roots == [new_deterministic_merkle_tree(2, start).root for start in (0, 4, 8, 12)]


def test_branch_roots_parallel_matches_in_process():
    serial = compute_branch_roots(2, 1, pre_image=3, workers=1)
    parallel = compute_branch_roots(2, 1, pre_image=3, workers=2)
    assert parallel == serial


def test_multilevel_root_matches_flat_tree():
    """Combining branch roots gives the same root as one big tree."""
    root, branches = build_multilevel_root(2, 2, pre_image=0, workers=1)
    assert len(branches) == 4
    assert root == combine_roots(branches)
    assert root == new_deterministic_merkle_tree(4, 0).root


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
