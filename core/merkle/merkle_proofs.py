"""
Reward Allocation Commitments
Convenience wrappers that lift the digest-level Merkle functions to
(recipient, amount) allocations.

This module provides class-based interfaces:
- RewardTree: commit an allocation mapping and hand out per-recipient proofs
- MerkleVerifier: check a recipient's claim against a published root
"""
from __future__ import annotations

from typing import Iterator, Mapping, Sequence

from core.crypto.addresses import normalize_address
from core.crypto.hashing import to_hex
from core.merkle.merkle_tree import MerkleTree, build_tree, leaf_hash, verify
from core.schemas.errors import ValidationError


def normalize_allocations(allocations: Mapping[str, int]) -> dict[str, int]:
    """
    Canonicalise recipient addresses and check every amount.

    Raises:
        ValidationError: On malformed addresses, two keys naming the same
            recipient, non-integer or non-positive amounts
    """
    normalized: dict[str, int] = {}
    for recipient, amount in allocations.items():
        try:
            address = normalize_address(recipient)
        except ValueError as e:
            raise ValidationError(str(e), field_path=f"allocations.{recipient}") from e
        if address in normalized:
            raise ValidationError(
                f"Recipient listed more than once: {address}",
                field_path=f"allocations.{recipient}",
            )
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError(
                f"Allocation for {address} must be a positive integer, got {amount!r}",
                field_path=f"allocations.{recipient}",
            )
        normalized[address] = amount
    return normalized


class RewardTree:
    """
    Merkle commitment over a {recipient: amount} mapping.

    Example:
        >>> tree = RewardTree({"0xaa..": 100, "0xbb..": 150})
        >>> tree.root_hex
        '0x...'
        >>> tree.proof_for("0xaa..")
        [b'...']
    """

    def __init__(self, allocations: Mapping[str, int]) -> None:
        self.allocations = normalize_allocations(allocations)
        if not self.allocations:
            raise ValidationError("Cannot commit an empty allocation set")
        self._leaves = {
            recipient: leaf_hash(recipient, amount)
            for recipient, amount in self.allocations.items()
        }
        self.tree: MerkleTree = build_tree(list(self._leaves.values()))

    @property
    def root(self) -> bytes:
        return self.tree.root

    @property
    def root_hex(self) -> str:
        return to_hex(self.tree.root)

    @property
    def total(self) -> int:
        return sum(self.allocations.values())

    def __len__(self) -> int:
        return len(self.allocations)

    def leaf_for(self, recipient: str) -> bytes:
        address = normalize_address(recipient)
        if address not in self._leaves:
            raise KeyError(f"No allocation for {address}")
        return self._leaves[address]

    def proof_for(self, recipient: str) -> list[bytes]:
        """
        Proof for a recipient's leaf.

        Raises:
            KeyError: If the recipient has no allocation
        """
        return self.tree.proof(self.leaf_for(recipient))

    def iter_claims(self) -> Iterator[tuple[str, int, list[bytes]]]:
        """Yield (recipient, amount, proof) in sorted recipient order."""
        for recipient in sorted(self.allocations):
            yield recipient, self.allocations[recipient], self.proof_for(recipient)


class MerkleVerifier:
    """
    Stateless claim verification against a published root.

    Used by the ledger's claim path and by anyone auditing a manifest.
    """

    @staticmethod
    def verify_claim(
        root: bytes,
        recipient: str,
        amount: int,
        proof: Sequence[bytes],
    ) -> bool:
        """
        Recompute the recipient's leaf and check it against root.

        Returns False (never raises) for malformed recipients or amounts.
        """
        try:
            leaf = leaf_hash(recipient, amount)
        except ValueError:
            return False
        return verify(root, leaf, proof)


__all__ = [
    "normalize_allocations",
    "RewardTree",
    "MerkleVerifier",
]
