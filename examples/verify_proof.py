#!/usr/bin/env python3
"""
Example showing how a prover hands a Merkle inclusion proof to a verifier
that never sees the tree.
"""

import json
import sys
import time

import poseidon_smt
from poseidon_smt import serialization


def main():
    # Step 1: Build the tree and produce a proof (prover side)
    print("=== PROVER SIDE ===")

    depth = 8
    tree = poseidon_smt.SparseMerkleTree(depth)
    for i in range(0, 256, 17):
        tree.insert(poseidon_smt.padded_binary_string(i, depth), i * i)
    print(f"Inserted {len(tree)} leaves into a depth-{depth} tree")

    key = poseidon_smt.padded_binary_string(68, depth)
    start = time.time()
    path = tree.generate_merkle_path(key)
    end = time.time()
    print(f"Path for key {key} generated in {end - start:.4f} seconds")

    # Serialize the proof (this is what you'd send to the verifier)
    print("\nSerializing proof for transmission...")
    document = serialization.proof_document(depth, key, tree.leaves[key], tree.root, path)
    wire = json.dumps(document)
    print(f"Serialized proof size: {len(wire)} bytes")

    print("\n" + "="*50 + "\n")

    # Step 2: Verify the proof (verifier side)
    print("=== VERIFIER SIDE ===")

    print("Deserializing proof...")
    leaf, received_path, root = serialization.load_proof_document(json.loads(wire))

    print("Verifying the inclusion proof...")
    start = time.time()
    is_valid = poseidon_smt.verify_merkle_path(leaf, received_path, root)
    end = time.time()
    print(f"verify_merkle_path() returned: {is_valid} in {end - start:.4f} seconds")

    # A forged leaf must not verify against the same path
    forged = poseidon_smt.verify_merkle_path(leaf + 1, received_path, root)
    print(f"Forged leaf accepted: {forged}")

    if is_valid and not forged:
        print("\n✅ SUCCESS: The proof is valid!")
        print("The verifier now knows that:")
        print(f"- Key {key} holds value {leaf}")
        print("- Under the root it trusts, without holding the tree")
    else:
        print("\n❌ FAILURE: The proof is invalid!")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
