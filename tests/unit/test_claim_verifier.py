"""
Claim Verifier Unit Tests
Tests for ledger/claims.py

Tests:
- valid claims pay out and set the claim flag
- claim-once per (campaign, recipient)
- proof binds to caller and amount
- check ordering before any state change
- failed payout rolls the claim flag back
"""
import pytest

from core.schemas.errors import (
    NotFoundError,
    ProofError,
    StateError,
    TransferError,
    ValidationError,
)
from core.schemas.events import RewardClaimed
from ledger.claims import coerce_proof

from fixtures.common import (
    ALICE,
    BOB,
    CAROL,
    CUSTODY,
    DAVE,
    ORACLE,
    STRANGER,
    proof_hex,
)


@pytest.fixture
def settled(ledger, campaign_id, reward_tree):
    """Campaign with the scenario allocations published."""
    ledger.publish_results(ORACLE, campaign_id, reward_tree.root_hex, reward_tree.total)
    return campaign_id


class TestClaimReward:
    def test_claim_pays_recipient(self, ledger, token, settled, reward_tree):
        ledger.claim_reward(ALICE, settled, 100, proof_hex(reward_tree, ALICE))

        assert token.balance_of(ALICE) == 100
        assert token.balance_of(CUSTODY) == 900
        assert ledger.has_claimed(settled, ALICE) is True
        assert ledger.has_claimed(settled, BOB) is False

    def test_claim_accepts_raw_bytes_proof(self, ledger, token, settled, reward_tree):
        ledger.claim_reward(BOB, settled, 150, reward_tree.proof_for(BOB))
        assert token.balance_of(BOB) == 150

    def test_emits_claimed_event(self, ledger, settled, reward_tree, clock):
        ledger.claim_reward(CAROL, settled, 75, proof_hex(reward_tree, CAROL))

        assert ledger.events.events("RewardClaimed") == [
            RewardClaimed(campaign_id=settled, recipient=CAROL, amount=75, timestamp=clock.now())
        ]

    def test_double_claim_rejected(self, ledger, token, settled, reward_tree):
        proof = proof_hex(reward_tree, ALICE)
        ledger.claim_reward(ALICE, settled, 100, proof)

        with pytest.raises(StateError, match="Reward already claimed"):
            ledger.claim_reward(ALICE, settled, 100, proof)
        assert token.balance_of(ALICE) == 100

    @pytest.mark.parametrize("variant", [ALICE + "\n", ALICE.upper().replace("0X", "0x")])
    def test_identity_variants_share_one_claim(self, ledger, token, settled, reward_tree, variant):
        proof = proof_hex(reward_tree, ALICE)
        ledger.claim_reward(ALICE, settled, 100, proof)

        with pytest.raises((StateError, ValidationError)):
            ledger.claim_reward(variant, settled, 100, proof)
        assert token.balance_of(ALICE) == 100
        assert token.balance_of(CUSTODY) == 900

    def test_wrong_amount_rejected(self, ledger, settled, reward_tree):
        with pytest.raises(ProofError, match="Invalid Merkle proof"):
            ledger.claim_reward(ALICE, settled, 101, proof_hex(reward_tree, ALICE))
        assert ledger.has_claimed(settled, ALICE) is False

    def test_other_recipients_proof_rejected(self, ledger, settled, reward_tree):
        with pytest.raises(ProofError):
            ledger.claim_reward(DAVE, settled, 100, proof_hex(reward_tree, ALICE))

    def test_proof_error_is_validation_error(self, ledger, settled):
        with pytest.raises(ValidationError):
            ledger.claim_reward(ALICE, settled, 100, [])

    def test_before_publish_rejected(self, ledger, campaign_id, reward_tree):
        with pytest.raises(StateError, match="Results not published yet"):
            ledger.claim_reward(ALICE, campaign_id, 100, proof_hex(reward_tree, ALICE))

    def test_zero_amount_rejected(self, ledger, settled):
        with pytest.raises(ValidationError, match="Amount must be greater than zero"):
            ledger.claim_reward(ALICE, settled, 0, [])

    def test_not_published_checked_before_amount(self, ledger, campaign_id):
        with pytest.raises(StateError):
            ledger.claim_reward(ALICE, campaign_id, 0, [])

    def test_unknown_campaign(self, ledger, settled, reward_tree):
        with pytest.raises(NotFoundError):
            ledger.claim_reward(ALICE, settled + 1, 100, proof_hex(reward_tree, ALICE))

    def test_malformed_proof_element(self, ledger, settled):
        with pytest.raises(ProofError, match="position 0"):
            ledger.claim_reward(ALICE, settled, 100, ["0x1234"])

    def test_claim_after_close(self, ledger, settled, reward_tree, token):
        assert ledger.get_campaign_struct(settled).is_active is False
        ledger.claim_reward(BOB, settled, 150, proof_hex(reward_tree, BOB))
        assert token.balance_of(BOB) == 150

    def test_failed_payout_rolls_back_flag(self, ledger, token, settled, reward_tree):
        # Drain custody so the payout transfer fails
        token.transfer(CUSTODY, STRANGER, token.balance_of(CUSTODY))

        with pytest.raises(TransferError):
            ledger.claim_reward(ALICE, settled, 100, proof_hex(reward_tree, ALICE))

        assert ledger.has_claimed(settled, ALICE) is False
        assert ledger.events.events("RewardClaimed") == []

    def test_claims_are_per_campaign(self, ledger, token, settled, reward_tree):
        from fixtures.common import create_funded_campaign

        second = create_funded_campaign(ledger, token)
        ledger.publish_results(ORACLE, second, reward_tree.root_hex, reward_tree.total)

        proof = proof_hex(reward_tree, ALICE)
        ledger.claim_reward(ALICE, settled, 100, proof)
        ledger.claim_reward(ALICE, second, 100, proof)
        assert token.balance_of(ALICE) == 200


class TestHasClaimed:
    def test_unknown_campaign(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.has_claimed(1, ALICE)

    def test_malformed_recipient_is_false(self, ledger, campaign_id):
        assert ledger.has_claimed(campaign_id, "nobody") is False


class TestCoerceProof:
    def test_string_rejected_as_whole_proof(self):
        with pytest.raises(ProofError):
            coerce_proof("0x" + "ab" * 32)

    def test_mixed_forms(self):
        raw = b"\x01" * 32
        assert coerce_proof([raw, "0x" + "01" * 32]) == [raw, raw]
