"""
Merkle Tree Unit Tests
Tests for core/merkle/merkle_tree.py and core/merkle/merkle_proofs.py

Tests:
1. Leaf encoding - fixed-width address || uint256 amount
2. Sorted-pair parents - order independent
3. Odd levels - lone node promoted, no sibling in its proof
4. Build/verify round trip for every recipient
5. Tamper detection - any single-bit change fails verification
6. Edge cases - single leaf, empty input, duplicates
"""
import pytest

from core.crypto.hashing import sha256
from core.merkle.merkle_tree import (
    AMOUNT_SIZE,
    MerkleProof,
    build_merkle_proof,
    build_merkle_root,
    build_tree,
    encode_leaf,
    leaf_hash,
    merkle_parent,
    verify,
    verify_merkle_proof,
)
from core.merkle.merkle_proofs import MerkleVerifier, RewardTree, normalize_allocations
from core.schemas.errors import ValidationError

from fixtures.common import ALICE, BOB, CAROL, DAVE, SCENARIO_ALLOCATIONS


def _flip_bit(data: bytes, bit: int) -> bytes:
    out = bytearray(data)
    out[bit // 8] ^= 1 << (bit % 8)
    return bytes(out)


class TestLeafEncoding:
    """Leaf preimage layout."""

    def test_layout(self):
        encoded = encode_leaf(ALICE, 100)

        assert len(encoded) == 20 + AMOUNT_SIZE
        assert encoded[:20] == bytes.fromhex(ALICE[2:])
        assert int.from_bytes(encoded[20:], "big") == 100

    def test_leaf_hash_is_sha256_of_encoding(self):
        assert leaf_hash(ALICE, 100) == sha256(encode_leaf(ALICE, 100))

    def test_address_case_does_not_matter(self):
        assert leaf_hash(ALICE.upper().replace("0X", "0x"), 7) == leaf_hash(ALICE, 7)

    def test_amount_binds(self):
        assert leaf_hash(ALICE, 100) != leaf_hash(ALICE, 101)

    @pytest.mark.parametrize("amount", [-1, 2**256, 1.5, True, "100"])
    def test_bad_amounts_rejected(self, amount):
        with pytest.raises(ValueError):
            encode_leaf(ALICE, amount)

    def test_bad_address_rejected(self):
        with pytest.raises(ValueError):
            encode_leaf("0x1234", 1)


class TestParent:
    """Sorted-pair combine rule."""

    def test_commutative(self):
        a, b = sha256(b"a"), sha256(b"b")
        assert merkle_parent(a, b) == merkle_parent(b, a)

    def test_smaller_first(self):
        a, b = sha256(b"a"), sha256(b"b")
        lo, hi = sorted([a, b])
        assert merkle_parent(a, b) == sha256(lo + hi)


class TestTreeShape:
    """Root computation and promotion of odd nodes."""

    def test_single_leaf_root_equals_leaf(self):
        leaf = sha256(b"only")
        assert build_merkle_root([leaf]) == leaf
        assert build_merkle_proof([leaf], leaf).siblings == []

    def test_input_order_irrelevant(self):
        leaves = [sha256(bytes([i])) for i in range(5)]
        assert build_merkle_root(leaves) == build_merkle_root(list(reversed(leaves)))

    def test_three_leaves_promotes_last(self):
        a, b, c = sorted(sha256(x) for x in (b"a", b"b", b"c"))
        expected = merkle_parent(merkle_parent(a, b), c)

        assert build_merkle_root([c, a, b]) == expected

    def test_promoted_leaf_has_short_proof(self):
        a, b, c = sorted(sha256(x) for x in (b"a", b"b", b"c"))
        tree = build_tree([a, b, c])

        assert tree.proof(c) == [merkle_parent(a, b)]
        assert tree.proof(a) == [b, c]

    def test_depth(self):
        tree = build_tree([sha256(bytes([i])) for i in range(5)])
        # 5 -> 3 -> 2 -> 1
        assert tree.depth == 4

    def test_empty_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            build_tree([])

    def test_duplicate_rejected(self):
        leaf = sha256(b"x")
        with pytest.raises(ValueError, match="Duplicate"):
            build_tree([leaf, leaf])

    def test_wrong_size_rejected(self):
        with pytest.raises(ValueError, match="32 bytes"):
            build_tree([b"short"])

    def test_proof_for_unknown_leaf(self):
        tree = build_tree([sha256(b"a"), sha256(b"b")])
        with pytest.raises(ValueError):
            tree.proof(sha256(b"c"))


class TestRoundTrip:
    """Every generated proof verifies against its root."""

    @pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 7, 8, 13])
    def test_all_proofs_verify(self, count):
        leaves = [sha256(i.to_bytes(4, "big")) for i in range(count)]
        tree = build_tree(leaves)

        for leaf in leaves:
            assert verify(tree.root, leaf, tree.proof(leaf))
            assert verify_merkle_proof(tree.merkle_proof(leaf))

    def test_reward_tree_claims_verify(self, reward_tree):
        for recipient, amount, proof in reward_tree.iter_claims():
            assert MerkleVerifier.verify_claim(reward_tree.root, recipient, amount, proof)


class TestTamperDetection:
    """A single-bit change anywhere breaks verification."""

    def test_bit_flip_in_sibling(self, reward_tree):
        proof = reward_tree.proof_for(ALICE)
        for i, sibling in enumerate(proof):
            for bit in (0, 7, 128, 255):
                tampered = list(proof)
                tampered[i] = _flip_bit(sibling, bit)
                assert not MerkleVerifier.verify_claim(reward_tree.root, ALICE, 100, tampered)

    def test_bit_flip_in_root(self, reward_tree):
        proof = reward_tree.proof_for(BOB)
        for bit in (0, 100, 255):
            assert not MerkleVerifier.verify_claim(_flip_bit(reward_tree.root, bit), BOB, 150, proof)

    def test_bit_flip_in_amount(self, reward_tree):
        proof = reward_tree.proof_for(CAROL)
        for bit in range(8):
            assert not MerkleVerifier.verify_claim(reward_tree.root, CAROL, 75 ^ (1 << bit), proof)

    def test_bit_flip_in_recipient(self, reward_tree):
        proof = reward_tree.proof_for(ALICE)
        raw = bytes.fromhex(ALICE[2:])
        forged = "0x" + _flip_bit(raw, 3).hex()
        assert not MerkleVerifier.verify_claim(reward_tree.root, forged, 100, proof)

    def test_other_recipients_proof_fails(self, reward_tree):
        assert not MerkleVerifier.verify_claim(
            reward_tree.root, ALICE, 100, reward_tree.proof_for(BOB)
        )

    def test_malformed_sibling_fails_without_raising(self, reward_tree):
        assert not verify(reward_tree.root, reward_tree.leaf_for(ALICE), [b"short"])


class TestRewardTree:
    """Allocation-level commitment."""

    def test_total_and_len(self, reward_tree):
        assert reward_tree.total == 325
        assert len(reward_tree) == 3

    def test_deterministic(self):
        reordered = dict(reversed(list(SCENARIO_ALLOCATIONS.items())))
        assert RewardTree(SCENARIO_ALLOCATIONS).root == RewardTree(reordered).root

    def test_root_hex(self, reward_tree):
        assert reward_tree.root_hex == "0x" + reward_tree.root.hex()

    def test_unknown_recipient(self, reward_tree):
        with pytest.raises(KeyError):
            reward_tree.proof_for(DAVE)

    def test_iter_claims_sorted(self, reward_tree):
        recipients = [r for r, _, _ in reward_tree.iter_claims()]
        assert recipients == sorted(recipients)

    def test_empty_rejected(self):
        with pytest.raises(ValidationError):
            RewardTree({})

    def test_zero_amount_rejected(self):
        with pytest.raises(ValidationError, match="positive"):
            RewardTree({ALICE: 0})

    def test_case_variant_duplicate_rejected(self):
        with pytest.raises(ValidationError, match="more than once"):
            normalize_allocations({ALICE: 1, ALICE.upper().replace("0X", "0x"): 2})

    def test_merkle_proof_to_hex_list(self, reward_tree):
        proof = reward_tree.tree.merkle_proof(reward_tree.leaf_for(ALICE))
        assert isinstance(proof, MerkleProof)
        assert proof.to_hex_list() == ["0x" + s.hex() for s in proof.siblings]
