"""
Encodings for field elements and Merkle paths.

This module provides:
1. Basic primitives for turning field elements into hex strings and
   fixed-size byte arrays
2. JSON and CBOR encodings of a Merkle path for sending to a verifier
3. A RISC Zero guest input layout for checking a path inside a zkVM

Only single paths and proof documents are encoded here. The tree itself is
never serialized.
"""

import struct
from typing import Any, Dict, List, Sequence, Tuple, Union

import cbor2

from poseidon_smt.exceptions import InvalidKeyError, SerializationError
from poseidon_smt.hashing import check_field_element
from poseidon_smt.keys import validate_key
from poseidon_smt.sparse import MerklePathItem


def to_hex32(value: int) -> str:
    """
    Format a field element as a 0x-prefixed, 64-digit hex string.

    Example:
        >>> to_hex32(255)
        '0x00000000000000000000000000000000000000000000000000000000000000ff'
    """
    return f"0x{check_field_element(value):064x}"


def from_hex(text: str) -> int:
    """
    Parse a hex string (with or without 0x prefix) into a field element.

    Raises:
        SerializationError: If ``text`` is not a hex string
        FieldElementError: If the value is outside the field
    """
    if not isinstance(text, str):
        raise SerializationError(f"Expected a hex string, got {type(text).__name__}")
    digits = text[2:] if text.lower().startswith("0x") else text
    try:
        value = int(digits, 16)
    except ValueError:
        raise SerializationError(f"Invalid hex string: {text!r}")
    return check_field_element(value)


def to_bytes32(data: Union[int, bytes, bytearray]) -> bytes:
    """
    Serialize a field element as 32 big-endian bytes.

    Byte strings are passed through but must already be exactly 32 bytes.

    Raises:
        ValueError: If a byte string is not exactly 32 bytes
        FieldElementError: If an integer is outside the field
    """
    if isinstance(data, (bytes, bytearray)):
        if len(data) != 32:
            raise ValueError(f"Expected exactly 32 bytes, got {len(data)}")
        return bytes(data)
    return check_field_element(data).to_bytes(32, "big")


def from_bytes32(data: bytes) -> int:
    """Inverse of :func:`to_bytes32` for integers."""
    if len(data) != 32:
        raise SerializationError(f"Expected exactly 32 bytes, got {len(data)}")
    return check_field_element(int.from_bytes(data, "big"))


def to_u64(value: int) -> bytes:
    """
    Serialize an integer as Rust u64.

    Format: 8 bytes, little-endian
    """
    return struct.pack('<Q', value)


def to_bool(value: bool) -> bytes:
    """
    Serialize a boolean as Rust bool.

    Format: Single byte (0 or 1)
    """
    return b'\x01' if value else b'\x00'


# ============================================================================
# Merkle path encodings
# ============================================================================

def split_path(path: Sequence[MerklePathItem]) -> Tuple[List[int], List[bool]]:
    """Return the path as parallel ``(siblings, bits)`` lists."""
    return [item.sibling_hash for item in path], [item.is_right for item in path]


def path_to_json(path: Sequence[MerklePathItem]) -> List[Dict[str, Any]]:
    """
    Encode a path as JSON-ready dicts.

    Each item becomes ``{"sibling": "0x...", "isRight": bool}``.
    """
    return [{"sibling": to_hex32(item.sibling_hash), "isRight": item.is_right} for item in path]


def path_from_json(items: Sequence[Dict[str, Any]]) -> List[MerklePathItem]:
    """
    Decode the output of :func:`path_to_json`.

    Raises:
        SerializationError: If an item is missing a field or has the wrong type
    """
    path = []
    for i, item in enumerate(items):
        try:
            sibling = item["sibling"]
            is_right = item["isRight"]
        except (KeyError, TypeError):
            raise SerializationError(f"Path item {i} needs 'sibling' and 'isRight'")
        if not isinstance(is_right, bool):
            raise SerializationError(f"Path item {i}: 'isRight' must be a bool")
        path.append(MerklePathItem(from_hex(sibling), is_right))
    return path


def path_to_cbor(path: Sequence[MerklePathItem]) -> bytes:
    """
    Encode a path as canonical CBOR.

    Format: array of ``[sibling_bytes32, is_right]`` pairs, leaf level first
    """
    payload = [[to_bytes32(item.sibling_hash), item.is_right] for item in path]
    return cbor2.dumps(payload, canonical=True)


def path_from_cbor(data: bytes) -> List[MerklePathItem]:
    """
    Decode the output of :func:`path_to_cbor`.

    Raises:
        SerializationError: If the data is not a CBOR path array
    """
    try:
        payload = cbor2.loads(data)
    except cbor2.CBORDecodeError as e:
        raise SerializationError(f"Invalid CBOR path: {e}")

    if not isinstance(payload, list):
        raise SerializationError(f"CBOR path must be an array, got {type(payload).__name__}")

    path = []
    for i, entry in enumerate(payload):
        if (not isinstance(entry, list) or len(entry) != 2
                or not isinstance(entry[0], bytes) or not isinstance(entry[1], bool)):
            raise SerializationError(f"CBOR path item {i} must be [bytes32, bool]")
        path.append(MerklePathItem(from_bytes32(entry[0]), entry[1]))
    return path


def merkle_proof_input(leaf_value: int, path: Sequence[MerklePathItem]) -> bytes:
    """
    Serialize a leaf and its path as RISC Zero guest input.

    Guest code would read this as:
        let leaf: [u8; 32] = env::read();
        let siblings: Vec<[u8; 32]> = env::read();
        let indices: Vec<bool> = env::read();

    Args:
        leaf_value: Field element committed at the leaf
        path: Merkle path, leaf level first

    Returns:
        Serialized bytes: 32 + 8 + 32*D + 8 + D for a path of depth D
    """
    siblings, bits = split_path(path)

    # Serialize leaf as fixed array
    result = to_bytes32(leaf_value)

    # Serialize siblings as Vec<[u8; 32]>
    result += to_u64(len(siblings))
    for sibling in siblings:
        result += to_bytes32(sibling)

    # Serialize indices as Vec<bool>
    result += to_u64(len(bits))
    for bit in bits:
        result += to_bool(bit)

    return result


# ============================================================================
# Proof documents
# ============================================================================

def proof_document(depth: int, key: str, leaf_value: int, root: int,
                   path: Sequence[MerklePathItem]) -> Dict[str, Any]:
    """Bundle everything a verifier needs into one JSON-ready dict."""
    return {
        "depth": depth,
        "key": key,
        "leaf": to_hex32(leaf_value),
        "root": to_hex32(root),
        "path": path_to_json(path),
    }


def load_proof_document(document: Dict[str, Any]) -> Tuple[int, List[MerklePathItem], int]:
    """
    Decode a proof document into ``(leaf_value, path, root)``.

    The key must address a leaf at the declared depth, and the path's side
    flags must follow the key's bits: the sibling is on the right wherever
    the key goes left. A path relabelled with another key is rejected.

    Raises:
        SerializationError: If a field is missing, the depth is not a
            positive integer, the path length does not match the depth, or
            the key does not match the path
    """
    try:
        depth = document["depth"]
        key = document["key"]
        leaf = from_hex(document["leaf"])
        root = from_hex(document["root"])
        path = path_from_json(document["path"])
    except (KeyError, TypeError) as e:
        raise SerializationError(f"Malformed proof document: {e}")

    if not isinstance(depth, int) or isinstance(depth, bool) or depth < 1:
        raise SerializationError(f"Depth must be a positive integer, got {depth!r}")
    if len(path) != depth:
        raise SerializationError(f"Path has {len(path)} items but depth is {depth}")
    try:
        validate_key(key, depth)
    except InvalidKeyError as e:
        raise SerializationError(f"Malformed proof document: {e}")

    # Path runs leaf level first, so the flags read the key from the end.
    expected_flags = [bit == "0" for bit in reversed(key)]
    if [item.is_right for item in path] != expected_flags:
        raise SerializationError(f"Path side flags do not match key {key!r}")
    return leaf, path, root
