"""
Merkle Tree Implementation
Deterministic Merkle tree construction, proof generation, and verification
for reward allocation commitments.

Canonical Commitment Rules (Hard Contracts):
1. Leaf encoding: leaf = sha256(address(20 bytes) || amount(32 bytes, big-endian))
   - Both parts are fixed width, so no two (recipient, amount) pairs share
     an encoding
2. Parent hashing: parent = sha256(min(a, b) || max(a, b))  (sorted pair)
   - A verifier never needs to know whether it is the left or right child
3. Leaf order: leaves are sorted by byte value before building, so the root
   does not depend on the order allocations were listed
4. Odd levels: the lone last node is promoted unchanged to the next level
   (no duplication). A promoted node contributes no sibling to its proof
5. Single leaf: root = leaf, proof is empty
6. Empty leaves: rejected, an empty allocation set cannot be committed

The same merkle_parent() is used for construction and verification.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from core.crypto.addresses import address_to_bytes
from core.crypto.hashing import DIGEST_SIZE, sha256, to_hex


# Width of the amount field inside a leaf (uint256)
AMOUNT_SIZE: int = 32


def encode_leaf(recipient: str, amount: int) -> bytes:
    """
    Fixed-width leaf preimage: 20-byte address followed by 32-byte amount.

    Raises:
        ValueError: If the address is malformed or amount is outside uint256
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"Amount must be an integer, got {type(amount).__name__}")
    if amount < 0 or amount >= 2 ** (8 * AMOUNT_SIZE):
        raise ValueError(f"Amount out of range for uint256: {amount}")
    return address_to_bytes(recipient) + amount.to_bytes(AMOUNT_SIZE, "big")


def leaf_hash(recipient: str, amount: int) -> bytes:
    """Compute the committed leaf digest for one (recipient, amount) pair."""
    return sha256(encode_leaf(recipient, amount))


def merkle_parent(a: bytes, b: bytes) -> bytes:
    """
    Compute the parent hash of two child nodes with sorted-pair hashing.

    merkle_parent(a, b) == merkle_parent(b, a)
    """
    if a <= b:
        return sha256(a + b)
    return sha256(b + a)


def _next_level(level: Sequence[bytes]) -> list[bytes]:
    """Pair adjacent nodes; promote a lone last node unchanged."""
    parents = [
        merkle_parent(level[i], level[i + 1])
        for i in range(0, len(level) - 1, 2)
    ]
    if len(level) % 2 == 1:
        parents.append(level[-1])
    return parents


@dataclass(frozen=True)
class MerkleProof:
    """
    Inclusion proof for one leaf.

    Attributes:
        leaf: The leaf digest being proven
        siblings: Sibling digests from the leaf level up to the root
        root: The root this proof was generated against
    """
    leaf: bytes
    siblings: list[bytes]
    root: bytes

    def to_hex_list(self) -> list[str]:
        """Siblings as 0x-prefixed hex, the form submitted with a claim."""
        return [to_hex(s) for s in self.siblings]


@dataclass
class MerkleTree:
    """
    A fully materialised tree over sorted leaf digests.

    levels[0] holds the sorted leaves, levels[-1] holds the root alone.
    """
    levels: list[list[bytes]]
    _index: dict[bytes, int] = field(default_factory=dict, repr=False)

    @property
    def root(self) -> bytes:
        return self.levels[-1][0]

    @property
    def leaves(self) -> list[bytes]:
        return list(self.levels[0])

    @property
    def depth(self) -> int:
        """Number of levels from leaves to root, inclusive."""
        return len(self.levels)

    def __contains__(self, leaf: bytes) -> bool:
        return leaf in self._index

    def proof(self, leaf: bytes) -> list[bytes]:
        """
        Sibling digests needed to recompute the root from leaf.

        Raises:
            ValueError: If leaf is not part of this tree
        """
        if leaf not in self._index:
            raise ValueError("Leaf is not part of this tree")

        siblings: list[bytes] = []
        index = self._index[leaf]
        for level in self.levels[:-1]:
            sibling_index = index ^ 1
            if sibling_index < len(level):
                siblings.append(level[sibling_index])
            index //= 2
        return siblings

    def merkle_proof(self, leaf: bytes) -> MerkleProof:
        return MerkleProof(leaf=leaf, siblings=self.proof(leaf), root=self.root)


def build_tree(leaves: Sequence[bytes]) -> MerkleTree:
    """
    Build a Merkle tree from leaf digests.

    Leaves are sorted first; the input order does not affect the result.

    Raises:
        ValueError: If leaves is empty, contains a digest of the wrong size,
                    or contains the same digest twice
    """
    if len(leaves) == 0:
        raise ValueError("Cannot build a Merkle tree from an empty leaf list")

    for leaf in leaves:
        if len(leaf) != DIGEST_SIZE:
            raise ValueError(
                f"Leaf digests must be {DIGEST_SIZE} bytes, got {len(leaf)}"
            )

    ordered = sorted(leaves)
    index = {leaf: i for i, leaf in enumerate(ordered)}
    if len(index) != len(ordered):
        raise ValueError("Duplicate leaf in Merkle tree input")

    levels: list[list[bytes]] = [ordered]
    while len(levels[-1]) > 1:
        levels.append(_next_level(levels[-1]))

    return MerkleTree(levels=levels, _index=index)


def build_merkle_root(leaves: Sequence[bytes]) -> bytes:
    """Compute only the root of build_tree(leaves)."""
    return build_tree(leaves).root


def build_merkle_proof(leaves: Sequence[bytes], leaf: bytes) -> MerkleProof:
    """Build the tree over leaves and return the proof for one of them."""
    return build_tree(leaves).merkle_proof(leaf)


def verify(root: bytes, leaf: bytes, proof: Sequence[bytes]) -> bool:
    """
    Check that leaf is committed under root.

    Folds the sorted-pair rule over the siblings from the leaf upwards and
    compares the result with root. Malformed siblings make the proof fail
    rather than raise.
    """
    current = leaf
    for sibling in proof:
        if not isinstance(sibling, (bytes, bytearray)) or len(sibling) != DIGEST_SIZE:
            return False
        current = merkle_parent(current, bytes(sibling))
    return current == root


def verify_merkle_proof(proof: MerkleProof) -> bool:
    """Verify a MerkleProof against the root it carries."""
    return verify(proof.root, proof.leaf, proof.siblings)


__all__ = [
    "AMOUNT_SIZE",
    "encode_leaf",
    "leaf_hash",
    "merkle_parent",
    "MerkleProof",
    "MerkleTree",
    "build_tree",
    "build_merkle_root",
    "build_merkle_proof",
    "verify",
    "verify_merkle_proof",
]
