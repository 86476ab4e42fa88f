"""
Bit-string keys for sparse Merkle trees.

A key is a string of '0' and '1' characters whose length equals the tree
depth. Character ``i`` selects the child taken at level ``i`` below the
root: '0' goes left, '1' goes right.
"""

from poseidon_smt.exceptions import InvalidKeyError

_BITS = frozenset("01")


def validate_key(key: str, depth: int) -> str:
    """
    Check that ``key`` addresses a leaf in a tree of the given depth.

    Args:
        key: Candidate key
        depth: Tree depth the key must match

    Returns:
        The key, unchanged

    Raises:
        InvalidKeyError: If the key is not a string, has the wrong length,
            or contains characters other than '0' and '1'
    """
    if not isinstance(key, str):
        raise InvalidKeyError(f"Key must be a str, got {type(key).__name__}")
    if len(key) != depth:
        raise InvalidKeyError(f"Key {key!r} has length {len(key)}, expected {depth}")
    if not _BITS.issuperset(key):
        raise InvalidKeyError(f"Key {key!r} contains characters other than '0' and '1'")
    return key


def get_path_bit(key: str, level: int) -> int:
    """Return the branch taken at ``level``: 0 for left, 1 for right."""
    return 1 if key[level] == "1" else 0


def padded_binary_string(index: int, depth: int) -> str:
    """
    Return ``index`` as a binary key of exactly ``depth`` characters.

    Example:
        >>> padded_binary_string(3, 4)
        '0011'

    Raises:
        InvalidKeyError: If ``index`` is negative or needs more than
            ``depth`` bits
    """
    if index < 0:
        raise InvalidKeyError(f"Key index must be non-negative, got {index}")
    if index.bit_length() > depth:
        raise InvalidKeyError(f"Key index {index} does not fit in {depth} bits")
    return format(index, f"0{depth}b") if depth else ""
