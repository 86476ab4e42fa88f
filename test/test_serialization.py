#!/usr/bin/env python3
"""
Test hex, bytes, JSON and CBOR encodings of Merkle paths, and the zkVM
guest input layout.
"""

import json
import struct
import sys

import cbor2
import pytest

from poseidon_smt import (
    FIELD_MODULUS,
    FieldElementError,
    MerklePathItem,
    SerializationError,
    new_deterministic_sparse_merkle_tree,
    verify_merkle_path,
)
from poseidon_smt import serialization


@pytest.fixture(scope="module")
def proof():
    tree = new_deterministic_sparse_merkle_tree(3)
    key = "110"
    return tree.leaves[key], tree.generate_merkle_path(key), tree.root


def test_hex32():
    assert serialization.to_hex32(255) == "0x" + "0" * 62 + "ff"
    assert len(serialization.to_hex32(FIELD_MODULUS - 1)) == 66
    assert serialization.from_hex("0xff") == 255
    assert serialization.from_hex("FF") == 255


def test_hex_errors():
    with pytest.raises(SerializationError):
        serialization.from_hex("0xzz")
    with pytest.raises(SerializationError):
        serialization.from_hex(255)
    with pytest.raises(FieldElementError):
        serialization.from_hex(hex(FIELD_MODULUS))
    with pytest.raises(FieldElementError):
        serialization.to_hex32(-1)


def test_bytes32():
    assert serialization.to_bytes32(1) == b"\x00" * 31 + b"\x01"
    assert serialization.to_bytes32(b"\xaa" * 32) == b"\xaa" * 32
    assert serialization.from_bytes32(b"\x00" * 31 + b"\x07") == 7
    with pytest.raises(ValueError):
        serialization.to_bytes32(b"\x00" * 31)
    with pytest.raises(SerializationError):
        serialization.from_bytes32(b"\x00" * 33)


def test_split_path(proof):
    _, path, _ = proof
    siblings, bits = serialization.split_path(path)
    assert siblings == [item.sibling_hash for item in path]
    # Key "110" read leaf level first: 0, 1, 1.
    assert bits == [True, False, False]


def test_json_path_survives_transport(proof):
    leaf, path, root = proof
    wire = json.dumps(serialization.path_to_json(path))
    decoded = serialization.path_from_json(json.loads(wire))
    assert decoded == path
    assert verify_merkle_path(leaf, decoded, root)


@pytest.mark.parametrize("items", [
    [{"sibling": "0x01"}],
    [{"sibling": "0x01", "isRight": 1}],
    ["0x01"],
])
def test_json_path_errors(items):
    with pytest.raises(SerializationError):
        serialization.path_from_json(items)


def test_cbor_path(proof):
    leaf, path, root = proof
    data = serialization.path_to_cbor(path)
    payload = cbor2.loads(data)
    assert len(payload) == 3
    assert payload[0] == [serialization.to_bytes32(path[0].sibling_hash), True]

    decoded = serialization.path_from_cbor(data)
    assert decoded == path
    assert verify_merkle_path(leaf, decoded, root)


@pytest.mark.parametrize("data", [
    b"\x82\x01",
    cbor2.dumps({"a": 1}),
    cbor2.dumps([[b"\x00" * 31, True]]),
])
def test_cbor_path_errors(data):
    with pytest.raises(SerializationError):
        serialization.path_from_cbor(data)


def test_merkle_proof_input_layout(proof):
    leaf, path, _ = proof
    data = serialization.merkle_proof_input(leaf, path)
    depth = len(path)
    assert len(data) == 32 + 8 + 32 * depth + 8 + depth

    assert data[:32] == serialization.to_bytes32(leaf)
    assert struct.unpack("<Q", data[32:40])[0] == depth
    assert data[40:72] == serialization.to_bytes32(path[0].sibling_hash)
    bits_offset = 40 + 32 * depth
    assert struct.unpack("<Q", data[bits_offset:bits_offset + 8])[0] == depth
    assert data[bits_offset + 8:] == b"\x01\x00\x00"


def test_proof_document(proof):
    leaf, path, root = proof
    document = serialization.proof_document(3, "110", leaf, root, path)
    assert document["key"] == "110"
    assert document["leaf"] == serialization.to_hex32(6)

    loaded_leaf, loaded_path, loaded_root = serialization.load_proof_document(
        json.loads(json.dumps(document))
    )
    assert (loaded_leaf, loaded_path, loaded_root) == (leaf, path, root)


def test_proof_document_errors(proof):
    leaf, path, root = proof
    document = serialization.proof_document(3, "110", leaf, root, path)

    short = dict(document, depth=4)
    with pytest.raises(SerializationError):
        serialization.load_proof_document(short)

    missing = {k: v for k, v in document.items() if k != "root"}
    with pytest.raises(SerializationError):
        serialization.load_proof_document(missing)


@pytest.mark.parametrize("depth", [0, -1, True, "3", 3.0])
def test_proof_document_depth_must_be_positive_int(depth):
    # An empty path would otherwise accept any leaf equal to the root.
    document = {"depth": depth, "key": "", "leaf": "0x05", "root": "0x05", "path": []}
    with pytest.raises(SerializationError):
        serialization.load_proof_document(document)


def test_proof_document_key_must_match_path(proof):
    leaf, path, root = proof
    document = serialization.proof_document(3, "110", leaf, root, path)

    for key in ["011", "010", "111"]:
        with pytest.raises(SerializationError):
            serialization.load_proof_document(dict(document, key=key))

    for key in ["11", "1100", "1a0", 110]:
        with pytest.raises(SerializationError):
            serialization.load_proof_document(dict(document, key=key))


def test_path_item_is_immutable():
    item = MerklePathItem(1, True)
    with pytest.raises(AttributeError):
        item.is_right = False


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
