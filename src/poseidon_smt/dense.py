"""
Dense Merkle trees built bottom-up from a complete list of leaves.

Unlike :mod:`poseidon_smt.sparse`, every node is materialized and the leaf
count must be a power of two. Leaves are stored as given; the
deterministic builders hash their indices first.
"""

import logging
from typing import List, Optional, Sequence

from poseidon_smt.exceptions import TreeSizeError
from poseidon_smt.hashing import check_field_element, hash_pair, poseidon_hash

logger = logging.getLogger(__name__)

# Leaves per branch used by new_branched_merkle_tree (2**6 = 64).
DEFAULT_BRANCH_DEPTH = 6


class MerkleNode:
    """
    A dense tree node.

    A node built without children keeps ``data`` as its commitment; a node
    with both children commits to ``H([left.data, right.data])`` and any
    ``data`` argument is ignored.
    """

    __slots__ = ("left", "right", "data")

    def __init__(self, left: Optional["MerkleNode"] = None,
                 right: Optional["MerkleNode"] = None,
                 data: Optional[int] = None):
        if left is None and right is None:
            if data is None:
                raise ValueError("A leaf node needs data")
            self.data = data
        elif left is None or right is None:
            raise ValueError("An internal node needs both children")
        else:
            self.data = hash_pair(left.data, right.data)
        self.left = left
        self.right = right

    def __repr__(self) -> str:
        return f"MerkleNode(data={self.data})"


class MerkleTree:
    """A complete binary Merkle tree."""

    def __init__(self, root: MerkleNode):
        self.root_node = root

    @property
    def root(self) -> int:
        return self.root_node.data

    @classmethod
    def from_leaves(cls, leaves: Sequence[int]) -> "MerkleTree":
        """
        Build a tree over ``leaves``, pairing adjacent nodes level by level.

        Raises:
            TreeSizeError: If the leaf count is zero or not a power of two
            FieldElementError: If a leaf is not a field element
        """
        count = len(leaves)
        if count == 0 or count & (count - 1):
            raise TreeSizeError(f"Leaf count must be a power of two, got {count}")

        nodes: List[MerkleNode] = [
            MerkleNode(data=check_field_element(leaf, f"leaf[{i}]"))
            for i, leaf in enumerate(leaves)
        ]
        while len(nodes) > 1:
            nodes = [MerkleNode(nodes[j], nodes[j + 1]) for j in range(0, len(nodes), 2)]

        return cls(nodes[0])

    def __repr__(self) -> str:
        return f"MerkleTree(root={self.root})"


def _check_level(name: str, value: int) -> None:
    if value < 0:
        raise TreeSizeError(f"{name} must be non-negative, got {value}")


def deterministic_leaves(depth: int, start_index: int = 0) -> List[int]:
    """Leaves ``H([start_index + i])`` for ``i`` in ``[0, 2 ** depth)``."""
    _check_level("depth", depth)
    _check_level("start_index", start_index)
    return [poseidon_hash([start_index + i]) for i in range(1 << depth)]


def new_deterministic_merkle_tree(depth: int, start_index: int = 0) -> MerkleTree:
    """Build a dense tree of ``2 ** depth`` hashed consecutive indices."""
    return MerkleTree.from_leaves(deterministic_leaves(depth, start_index))


def new_branched_merkle_tree(depth: int, start_index: int = 0,
                             branch_depth: int = DEFAULT_BRANCH_DEPTH) -> MerkleTree:
    """
    Build the same tree as :func:`new_deterministic_merkle_tree` in two stages.

    When ``depth`` exceeds ``branch_depth`` the leaves are split into
    ``2 ** (depth - branch_depth)`` branches of ``2 ** branch_depth`` leaves.
    Each branch is built on its own and the branch roots become the leaves
    of the top tree. The resulting root is identical to the flat build.
    """
    _check_level("depth", depth)
    _check_level("branch_depth", branch_depth)

    if depth > branch_depth:
        num_branches = 1 << (depth - branch_depth)
    else:
        num_branches = 1
    per_branch = (1 << depth) // num_branches
    logger.debug("Building %d branch(es) of %d leaves", num_branches, per_branch)

    branch_roots = []
    for i in range(num_branches):
        leaves = [poseidon_hash([start_index + i * per_branch + j]) for j in range(per_branch)]
        branch_roots.append(MerkleTree.from_leaves(leaves).root)

    return MerkleTree.from_leaves(branch_roots)
