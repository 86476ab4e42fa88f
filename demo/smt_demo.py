#!/usr/bin/env python3
"""
Demo of a sparse Merkle tree with Poseidon hash.

This walks through inserting keys into a sparse tree, generating
inclusion paths, verifying them without the tree, and composing a larger
dense tree from independently built branches.
"""

import sys
import time

import poseidon_smt
from poseidon_smt import serialization


def demo_basic_operations():
    """Insert a few keys and prove one of them."""
    print("\n" + "="*60)
    print("DEMO 1: Basic Sparse Merkle Tree Operations")
    print("="*60)

    tree = poseidon_smt.SparseMerkleTree(16)
    print(f"\n1. Created empty sparse Merkle tree of depth {tree.depth}")
    print(f"   Initial root (all empty): {serialization.to_hex32(tree.root)[:18]}...")

    print("\n2. Inserting keys into the tree...")
    entries = {
        poseidon_smt.padded_binary_string(1, 16): 1001,
        poseidon_smt.padded_binary_string(2, 16): 1002,
        poseidon_smt.padded_binary_string(40000, 16): 1003,
    }
    for key, value in entries.items():
        tree.insert(key, value)
        print(f"   Key {key} -> {value}")
        print(f"   New root: {serialization.to_hex32(tree.root)[:18]}...")

    print("\n3. Testing membership...")
    for key in entries:
        print(f"   Key {key}: {'✓ Present' if key in tree else '✗ Not found'}")
    missing = poseidon_smt.padded_binary_string(3, 16)
    print(f"   Key {missing}: {'✓ Present' if missing in tree else '✗ Not found (expected)'}")

    print("\n4. Generating a 16-level Merkle path...")
    target = next(iter(entries))
    path = tree.generate_merkle_path(target)
    siblings, bits = serialization.split_path(path)
    print(f"   Target key: {target}")
    print(f"   Path length: {len(siblings)} siblings")
    for i, sibling in enumerate(siblings[:3]):
        print(f"     Level {i}: {serialization.to_hex32(sibling)[:18]}...")
    print(f"   Sibling-is-right bits: {[int(b) for b in bits]}")

    ok = poseidon_smt.verify_merkle_path(entries[target], path, tree.root)
    print(f"\n5. Verifier result: {'✓ valid' if ok else '✗ invalid'}")
    assert ok

    try:
        tree.generate_merkle_path(missing)
    except poseidon_smt.KeyNotFoundError as e:
        print(f"   Path for missing key refused: {e}")

    return tree


def demo_poseidon_hash():
    """Show the domain hash."""
    print("\n" + "="*60)
    print("DEMO 2: Poseidon Hash Function (BN254 Field)")
    print("="*60)

    result = poseidon_smt.poseidon_hash([1, 2])
    print(f"\n   Poseidon([1, 2]) = {result}")
    print(f"   As hex:           {serialization.to_hex32(result)}")
    print(f"   Field modulus:    {poseidon_smt.FIELD_MODULUS}")


def demo_composition():
    """Build a multi-level dense tree from parallel branches."""
    print("\n" + "="*60)
    print("DEMO 3: Parallel Branch Composition")
    print("="*60)

    h_level, l_level = 3, 6
    print(f"\n1. Building {2 ** h_level} branches of {2 ** l_level} leaves...")
    start = time.time()
    root, branches = poseidon_smt.build_multilevel_root(h_level, l_level, progress=True)
    elapsed = time.time() - start

    print(f"   ✓ Built in {elapsed:.2f} seconds")
    print(f"   Combined root: {serialization.to_hex32(root)[:18]}...")
    for i, branch in enumerate(branches[:3]):
        print(f"   Branch {i}: {serialization.to_hex32(branch)[:18]}...")
    print(f"   ... and {len(branches) - 3} more branches")


def main():
    print("\n" + "╔" + "=" * 58 + "╗")
    print("║" + " " * 17 + "POSEIDON SMT DEMO SUITE" + " " * 18 + "║")
    print("╚" + "=" * 58 + "╝")

    try:
        demo_basic_operations()
        demo_poseidon_hash()
        demo_composition()

        print("\n" + "╔" + "=" * 58 + "╗")
        print("║" + " " * 20 + "ALL DEMOS PASSED ✅" + " " * 19 + "║")
        print("╚" + "=" * 58 + "╝")
        return 0
    except Exception as e:
        print(f"\n✗ Demo failed: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
