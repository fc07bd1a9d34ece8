"""
Reward Ledger Service

Process-wide composition of the Campaign Ledger, Settlement Authority and
Claim Verifier over one LedgerStore. This is the object the API, the CLI
and the in-process oracle client talk to.

Usage:
    token = InMemoryToken(TOKEN_ADDRESS)
    ledger = RewardLedger(owner=OWNER, tokens=TokenRegistry([token]))
    ledger.set_oracle(OWNER, ORACLE)

    token.approve(BRAND, ledger.address, 1000)
    campaign_id = ledger.create_campaign(BRAND, token.address, 1000, end_time)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from core.crypto.addresses import normalize_address
from core.crypto.hashing import sha256
from core.schemas.campaign import Campaign, CampaignDetails, CampaignStatus
from ledger.authority import SettlementAuthority
from ledger.campaigns import CampaignLedger
from ledger.claims import ClaimVerifier, ProofInput
from ledger.clock import Clock, SystemClock
from ledger.events import EventLog
from ledger.store import LedgerStore
from ledger.token import TokenRegistry


logger = logging.getLogger(__name__)


def derive_custody_address(owner: str) -> str:
    """Deterministic custody address for a ledger deployed by owner."""
    digest = sha256(b"reward-ledger:" + normalize_address(owner).encode("ascii"))
    return "0x" + digest[-20:].hex()


class RewardLedger:
    """
    Single authoritative ledger.

    Every mutating method takes the calling principal first; every method
    runs as one atomic transaction against the shared store.
    """

    def __init__(
        self,
        owner: str,
        *,
        tokens: Optional[TokenRegistry] = None,
        clock: Optional[Clock] = None,
        oracle: Optional[str] = None,
        address: Optional[str] = None,
        store: Optional[LedgerStore] = None,
    ) -> None:
        self.store = store or LedgerStore(owner, oracle=oracle)
        if normalize_address(owner) != self.store.owner:
            raise ValueError(
                f"Store belongs to owner {self.store.owner}, not {normalize_address(owner)}"
            )
        self.address = normalize_address(address) if address else derive_custody_address(owner)
        self.tokens = tokens or TokenRegistry()
        self.clock = clock or SystemClock()

        self.campaigns = CampaignLedger(self.store, self.tokens, self.clock, custody=self.address)
        self.authority = SettlementAuthority(self.store, self.clock)
        self.claims = ClaimVerifier(self.store, self.tokens, self.clock, custody=self.address)

    @classmethod
    def open(
        cls,
        owner: str,
        state_path: Union[str, Path],
        **kwargs,
    ) -> "RewardLedger":
        """Load state from state_path if it exists, else start empty there."""
        path = Path(state_path)
        if path.exists():
            store = LedgerStore.load(path)
        else:
            store = LedgerStore(owner, oracle=kwargs.pop("oracle", None), path=path)
        kwargs.pop("oracle", None)
        return cls(owner, store=store, **kwargs)

    @property
    def events(self) -> EventLog:
        return self.store.events

    # -------------------------------------------------------------------------
    # Roles
    # -------------------------------------------------------------------------

    def owner(self) -> str:
        return self.authority.owner

    def oracle(self) -> Optional[str]:
        return self.authority.oracle

    def set_oracle(self, caller: str, new_oracle: str) -> None:
        self.authority.set_oracle(caller, new_oracle)

    # -------------------------------------------------------------------------
    # Campaigns
    # -------------------------------------------------------------------------

    def create_campaign(self, caller: str, reward_token: str, budget: int, end_time: int) -> int:
        return self.campaigns.create_campaign(caller, reward_token, budget, end_time)

    def close_campaign(self, caller: str, campaign_id: int) -> None:
        self.campaigns.close_campaign(caller, campaign_id)

    def get_campaign(self, campaign_id: int) -> CampaignDetails:
        return self.campaigns.get_campaign(campaign_id)

    def get_campaign_struct(self, campaign_id: int) -> Campaign:
        return self.campaigns.get_campaign_struct(campaign_id)

    def get_campaign_status(self, campaign_id: int) -> CampaignStatus:
        return self.campaigns.get_campaign_status(campaign_id)

    def campaign_count(self) -> int:
        return self.campaigns.campaign_count()

    # -------------------------------------------------------------------------
    # Settlement
    # -------------------------------------------------------------------------

    def publish_results(
        self,
        caller: str,
        campaign_id: int,
        merkle_root: Union[bytes, str],
        total_allocated: int,
    ) -> None:
        self.authority.publish_results(caller, campaign_id, merkle_root, total_allocated)

    def claim_reward(self, caller: str, campaign_id: int, amount: int, proof: ProofInput) -> None:
        self.claims.claim_reward(caller, campaign_id, amount, proof)

    def has_claimed(self, campaign_id: int, recipient: str) -> bool:
        return self.claims.has_claimed(campaign_id, recipient)
