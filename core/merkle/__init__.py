"""
Merkle Tree and Commitments
Deterministic Merkle tree construction + proof generation/verification
for reward allocations.

This module provides:
- leaf_hash: Encode one (recipient, amount) pair as a leaf digest
- merkle_parent: Sorted-pair combine rule
- build_tree / build_merkle_root: Commit a set of leaves
- verify: Check a leaf and its sibling path against a root
- RewardTree: Commit a {recipient: amount} mapping in one step

Canonical Commitment Rules:
1. Leaf hashing: sha256(address(20) || amount(32, big-endian))
2. Parent hashing: sha256(min(a, b) || max(a, b))
3. Leaves sorted by byte value before building
4. Odd levels: lone last node promoted unchanged
5. Single leaf: root = leaf

Usage:
    from core.merkle import RewardTree, MerkleVerifier

    tree = RewardTree({"0xaaaa...": 100, "0xbbbb...": 150})
    proof = tree.proof_for("0xaaaa...")

    assert MerkleVerifier.verify_claim(tree.root, "0xaaaa...", 100, proof)
"""
from .merkle_tree import (
    AMOUNT_SIZE,
    MerkleProof,
    MerkleTree,
    encode_leaf,
    leaf_hash,
    merkle_parent,
    build_tree,
    build_merkle_root,
    build_merkle_proof,
    verify,
    verify_merkle_proof,
)

from .merkle_proofs import (
    MerkleVerifier,
    RewardTree,
    normalize_allocations,
)


__all__ = [
    # Core types
    "AMOUNT_SIZE",
    "MerkleProof",
    "MerkleTree",
    # Core functions
    "encode_leaf",
    "leaf_hash",
    "merkle_parent",
    "build_tree",
    "build_merkle_root",
    "build_merkle_proof",
    "verify",
    "verify_merkle_proof",
    # Allocation-level helpers
    "RewardTree",
    "MerkleVerifier",
    "normalize_allocations",
]
