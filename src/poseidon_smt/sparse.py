"""
Sparse Merkle tree with Poseidon hash.

The tree has a fixed depth D and is addressed by D-character bit-string
keys. Only nodes on the path of an inserted key are ever materialized;
every other subtree stays virtual and contributes the precomputed empty
hash for its height.

Commitments:
- An absent leaf commits to ``H([0])``.
- An inserted leaf commits to its raw value (it is *not* hashed).
- An internal node commits to ``H([left, right])``.

Merkle paths are ordered from the leaf level up to the level just below
the root. Each item carries the sibling commitment and ``is_right``, which
says whether the *sibling* sits to the right of the path node.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

from poseidon_smt.exceptions import InvalidKeyError, KeyNotFoundError, TreeSizeError
from poseidon_smt.hashing import check_field_element, hash_pair, poseidon_hash
from poseidon_smt.keys import get_path_bit, padded_binary_string, validate_key

logger = logging.getLogger(__name__)

# Commitment of an absent leaf.
EMPTY_LEAF_HASH = poseidon_hash([0])


def compute_empty_hash(height: int) -> int:
    """
    Compute the empty-subtree hash for ``height`` from scratch.

    This walks the whole chain every call. Trees use :class:`EmptyHashTable`
    instead; this function is the reference it is checked against.
    """
    if height < 0:
        raise TreeSizeError(f"Subtree height must be non-negative, got {height}")
    h = EMPTY_LEAF_HASH
    for _ in range(height):
        h = hash_pair(h, h)
    return h


class EmptyHashTable:
    """
    Memoized empty-subtree hashes indexed by subtree height.

    ``table[0]`` is the empty leaf ``H([0])`` and
    ``table[d] == H([table[d - 1], table[d - 1]])``. Heights up to
    ``max_height`` are computed at construction; higher ones are appended
    on first use.
    """

    def __init__(self, max_height: int = 0):
        if max_height < 0:
            raise TreeSizeError(f"Subtree height must be non-negative, got {max_height}")
        self._hashes: List[int] = [EMPTY_LEAF_HASH]
        self._extend(max_height)

    def _extend(self, height: int) -> None:
        while len(self._hashes) <= height:
            prev = self._hashes[-1]
            self._hashes.append(hash_pair(prev, prev))

    def __getitem__(self, height: int) -> int:
        if height < 0:
            raise TreeSizeError(f"Subtree height must be non-negative, got {height}")
        self._extend(height)
        return self._hashes[height]

    def __len__(self) -> int:
        return len(self._hashes)

    @property
    def max_height(self) -> int:
        return len(self._hashes) - 1


class TreeNode:
    """A node of the sparse tree. ``None`` children are virtual subtrees."""

    __slots__ = ("data", "left", "right")

    def __init__(self, data: int, left: Optional["TreeNode"] = None,
                 right: Optional["TreeNode"] = None):
        self.data = data
        self.left = left
        self.right = right

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __repr__(self) -> str:
        return f"TreeNode(data={self.data})"


@dataclass(frozen=True)
class MerklePathItem:
    """One level of a Merkle path.

    ``is_right`` is True when the sibling is the right-hand input of the
    parent hash, i.e. the path node itself is the left child.
    """

    sibling_hash: int
    is_right: bool


class SparseMerkleTree:
    """
    Fixed-depth sparse Merkle tree over bit-string keys.

    Not safe for concurrent mutation: callers must serialize ``insert``
    calls, and must not generate paths while an insertion is running.

    Example:
        >>> tree = SparseMerkleTree(4)
        >>> tree.insert("0101", 42)
        >>> path = tree.generate_merkle_path("0101")
        >>> verify_merkle_path(42, path, tree.root)
        True
    """

    def __init__(self, depth: int):
        if not isinstance(depth, int) or isinstance(depth, bool) or depth < 1:
            raise TreeSizeError(f"Tree depth must be a positive int, got {depth!r}")
        self._depth = depth
        self.empty_hashes = EmptyHashTable(depth)
        self.root_node = TreeNode(self.empty_hashes[depth])
        self._leaves: Dict[str, int] = {}
        logger.debug("Created sparse Merkle tree of depth %d", depth)

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def root(self) -> int:
        """Current root commitment."""
        return self.root_node.data

    @property
    def leaves(self) -> Mapping[str, int]:
        """Read-only view of the explicitly inserted key/value pairs."""
        return MappingProxyType(self._leaves)

    def __len__(self) -> int:
        return len(self._leaves)

    def __contains__(self, key) -> bool:
        return isinstance(key, str) and key in self._leaves

    def get(self, key: str, default: Optional[int] = None) -> Optional[int]:
        return self._leaves.get(key, default)

    def hash_children(self, left: Optional[TreeNode], right: Optional[TreeNode],
                      height: int) -> int:
        """
        Commitment of a node at ``height`` with the given children.

        A missing child contributes the empty hash for ``height - 1``.
        """
        empty = self.empty_hashes[height - 1]
        left_data = left.data if left is not None else empty
        right_data = right.data if right is not None else empty
        return hash_pair(left_data, right_data)

    def insert(self, key: str, value: int) -> None:
        """
        Set the leaf at ``key`` to ``value`` and update the root.

        Args:
            key: Bit-string of exactly ``depth`` characters
            value: Field element stored directly as the leaf commitment

        Raises:
            InvalidKeyError: If the key is malformed
            FieldElementError: If the value is not a field element
        """
        validate_key(key, self._depth)
        check_field_element(value)

        self._leaves[key] = value
        self.root_node = self._insert_into_node(self.root_node, key, value, 0)

    def _insert_into_node(self, node: Optional[TreeNode], key: str, value: int,
                          level: int) -> TreeNode:
        if level == self._depth:
            return TreeNode(value)

        height = self._depth - level
        if node is None:
            node = TreeNode(self.empty_hashes[height])

        if get_path_bit(key, level) == 0:
            node.left = self._insert_into_node(node.left, key, value, level + 1)
        else:
            node.right = self._insert_into_node(node.right, key, value, level + 1)

        node.data = self.hash_children(node.left, node.right, height)
        return node

    def generate_merkle_path(self, key: str) -> List[MerklePathItem]:
        """
        Build the inclusion path for an inserted key.

        Returns:
            ``depth`` items ordered from the leaf level towards the root

        Raises:
            InvalidKeyError: If ``key`` is not a string
            KeyNotFoundError: If ``key`` was never inserted
        """
        if not isinstance(key, str):
            raise InvalidKeyError(f"Key must be a str, got {type(key).__name__}")
        if key not in self._leaves:
            raise KeyNotFoundError(key)

        path: List[MerklePathItem] = []
        current: Optional[TreeNode] = self.root_node
        for level in range(self._depth):
            sibling_height = self._depth - level - 1
            if get_path_bit(key, level) == 0:
                sibling, current = current.right, current.left
                is_right = True
            else:
                sibling, current = current.left, current.right
                is_right = False
            sibling_hash = sibling.data if sibling is not None else self.empty_hashes[sibling_height]
            path.append(MerklePathItem(sibling_hash, is_right))

        path.reverse()
        return path

    def __repr__(self) -> str:
        return f"SparseMerkleTree(depth={self._depth}, leaves={len(self._leaves)}, root={self.root})"


def verify_merkle_path(leaf_value: int, path: Sequence[MerklePathItem],
                       expected_root: int) -> bool:
    """
    Recompute a root from a leaf value and its path and compare.

    This needs no access to the tree. Items are consumed leaf level first;
    ``is_right`` places the sibling as the right-hand hash input.

    Returns:
        True if the recomputed root equals ``expected_root``
    """
    current = leaf_value
    for item in path:
        if item.is_right:
            current = hash_pair(current, item.sibling_hash)
        else:
            current = hash_pair(item.sibling_hash, current)
    logger.debug("Recomputed root %d, expected %d", current, expected_root)
    return current == expected_root


def new_deterministic_sparse_merkle_tree(depth: int) -> SparseMerkleTree:
    """
    Build a full tree where key ``i`` (as a padded binary string) holds ``i``.

    Every one of the ``2 ** depth`` leaves is inserted, so this is meant for
    tests and benchmarks with small depths.
    """
    tree = SparseMerkleTree(depth)
    for i in range(1 << depth):
        tree.insert(padded_binary_string(i, depth), i)
    return tree
