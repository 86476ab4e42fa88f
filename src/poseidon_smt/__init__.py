"""
Sparse and dense Merkle trees with Poseidon hash for zero-knowledge proofs.

Roots and paths use Poseidon over BN254 with circomlib parameters, so they
can be checked by circom and RISC Zero guest programs.
"""

from poseidon_smt import serialization
from poseidon_smt.composition import (
    build_multilevel_root,
    combine_roots,
    compute_branch_roots,
)
from poseidon_smt.dense import (
    MerkleNode,
    MerkleTree,
    new_branched_merkle_tree,
    new_deterministic_merkle_tree,
)
from poseidon_smt.exceptions import (
    SMTError,
    InvalidKeyError,
    KeyNotFoundError,
    FieldElementError,
    TreeSizeError,
    SerializationError,
)
from poseidon_smt.hashing import FIELD_MODULUS, poseidon_hash
from poseidon_smt.keys import padded_binary_string, validate_key
from poseidon_smt.sparse import (
    EMPTY_LEAF_HASH,
    EmptyHashTable,
    MerklePathItem,
    SparseMerkleTree,
    TreeNode,
    compute_empty_hash,
    new_deterministic_sparse_merkle_tree,
    verify_merkle_path,
)

__all__ = [
    # Sparse Merkle tree
    "SparseMerkleTree",
    "TreeNode",
    "MerklePathItem",
    "EmptyHashTable",
    "EMPTY_LEAF_HASH",
    "compute_empty_hash",
    "new_deterministic_sparse_merkle_tree",
    "verify_merkle_path",

    # Dense trees and composition
    "MerkleNode",
    "MerkleTree",
    "new_deterministic_merkle_tree",
    "new_branched_merkle_tree",
    "compute_branch_roots",
    "combine_roots",
    "build_multilevel_root",

    # Hashing and keys
    "FIELD_MODULUS",
    "poseidon_hash",
    "padded_binary_string",
    "validate_key",

    # Modules
    "serialization",

    # Exceptions
    "SMTError",
    "InvalidKeyError",
    "KeyNotFoundError",
    "FieldElementError",
    "TreeSizeError",
    "SerializationError",
]

__version__ = "0.1.0"
