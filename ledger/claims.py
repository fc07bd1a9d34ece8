"""
Claim Verifier

Pays a recipient the amount attested in their leaf, at most once per
campaign. The claim flag is written and flushed to the store before the
payout transfer; if the transfer fails the transaction restores the flag.
"""

from __future__ import annotations

import logging
from typing import Sequence, Union

from core.crypto.addresses import normalize_address
from core.crypto.hashing import digest_from_hex
from core.merkle import MerkleVerifier
from core.schemas.errors import ProofError, StateError, ValidationError
from core.schemas.events import RewardClaimed
from ledger.campaigns import principal, require_amount
from ledger.clock import Clock
from ledger.store import LedgerStore
from ledger.token import TokenRegistry


logger = logging.getLogger(__name__)

ProofInput = Sequence[Union[bytes, str]]


def coerce_proof(proof: ProofInput) -> list[bytes]:
    """
    Accept sibling digests as raw bytes or 0x-prefixed hex.

    Raises:
        ProofError: If any element cannot be decoded to a 32-byte digest
    """
    if isinstance(proof, (str, bytes)):
        raise ProofError("Proof must be a sequence of digests")
    siblings: list[bytes] = []
    for i, sibling in enumerate(proof):
        if isinstance(sibling, (bytes, bytearray)):
            siblings.append(bytes(sibling))
            continue
        try:
            siblings.append(digest_from_hex(sibling))
        except (TypeError, ValueError) as e:
            raise ProofError(
                f"Malformed proof element at position {i}: {e}",
                details={"position": i},
            ) from e
    return siblings


class ClaimVerifier:
    def __init__(
        self,
        store: LedgerStore,
        tokens: TokenRegistry,
        clock: Clock,
        *,
        custody: str,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.clock = clock
        self.custody = normalize_address(custody)

    def claim_reward(
        self,
        caller: str,
        campaign_id: int,
        amount: int,
        proof: ProofInput,
    ) -> None:
        """
        Verify caller's (recipient, amount) leaf against the stored root and pay.

        Raises:
            NotFoundError: Unknown campaign id
            StateError: Results not published, or already claimed
            ValidationError: Zero or malformed amount
            ProofError: Proof does not verify
            TransferError: Escrow payout failed (claim flag rolled back)
            OSError: Store file could not be written (nothing paid)
        """
        recipient = principal(caller, "recipient")
        require_amount(amount, "amount")

        with self.store.transaction() as store:
            campaign = store.get_campaign(campaign_id)
            if not campaign.results_published:
                raise StateError("Results not published yet", campaign_id=campaign_id)
            if amount == 0:
                raise ValidationError("Amount must be greater than zero", field_path="amount")
            if store.is_claimed(campaign_id, recipient):
                raise StateError(
                    "Reward already claimed",
                    campaign_id=campaign_id,
                    details={"recipient": recipient},
                )

            siblings = coerce_proof(proof)
            root = digest_from_hex(campaign.merkle_root)
            if not MerkleVerifier.verify_claim(root, recipient, amount, siblings):
                raise ProofError(
                    "Invalid Merkle proof",
                    details={
                        "campaign_id": campaign_id,
                        "recipient": recipient,
                        "merkle_root": campaign.merkle_root,
                    },
                )

            # Effects before interaction: the flag is set before funds move
            store.mark_claimed(campaign_id, recipient)
            store.flush()
            token = self.tokens.get(campaign.reward_token)
            token.transfer(self.custody, recipient, amount)

            store.emit(RewardClaimed(
                campaign_id=campaign_id,
                recipient=recipient,
                amount=amount,
                timestamp=self.clock.now(),
            ))

        logger.info(f"Campaign {campaign_id}: {recipient} claimed {amount}")

    def has_claimed(self, campaign_id: int, recipient: str) -> bool:
        """
        Raises:
            NotFoundError: Unknown campaign id
        """
        self.store.get_campaign(campaign_id)
        try:
            return self.store.is_claimed(campaign_id, recipient)
        except ValueError:
            return False


__all__ = ["ClaimVerifier", "coerce_proof"]
