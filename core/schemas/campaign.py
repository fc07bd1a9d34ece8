"""
Campaign Schemas

The authoritative campaign record plus the read-only projections handed
out by the ledger. Amounts are integer token base units; times are unix
seconds.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.crypto.addresses import normalize_address
from core.crypto.hashing import ZERO_DIGEST, to_hex


# Stored root of a campaign whose results are not yet published
ZERO_ROOT: str = to_hex(ZERO_DIGEST)

# Amounts are committed as 32-byte unsigned integers
MAX_AMOUNT: int = 2**256 - 1


class Campaign(BaseModel):
    """
    One funded, time-bounded reward pool.

    brand, reward_token, budget and end_time never change after creation.
    merkle_root is written once by the oracle; is_active only ever goes
    from True to False.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: int = Field(..., ge=1, description="Campaign id, starting at 1")
    brand: str = Field(..., description="Funding principal")
    reward_token: str = Field(..., description="Escrowed token address")
    budget: int = Field(..., gt=0, le=MAX_AMOUNT)
    end_time: int = Field(..., description="Campaign end (unix seconds)")
    is_active: bool = True
    merkle_root: str = Field(default=ZERO_ROOT, description="0x-prefixed 32-byte root")
    total_allocated: int = Field(default=0, ge=0, le=MAX_AMOUNT)

    @field_validator("brand", "reward_token")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_address(value)

    @field_validator("merkle_root")
    @classmethod
    def _lowercase_root(cls, value: str) -> str:
        return value.lower()

    @property
    def results_published(self) -> bool:
        return self.merkle_root != ZERO_ROOT

    @property
    def remaining_budget(self) -> int:
        return self.budget - self.total_allocated

    def has_ended(self, now: int) -> bool:
        return now >= self.end_time


class CampaignDetails(BaseModel):
    """Flattened campaign view returned by get_campaign."""

    model_config = ConfigDict(extra="forbid")

    id: int
    brand: str
    reward_token: str
    budget: int
    end_time: int
    is_active: bool
    has_ended: bool
    results_published: bool
    merkle_root: str
    total_allocated: int

    @classmethod
    def from_campaign(cls, campaign: Campaign, now: int) -> "CampaignDetails":
        return cls(
            id=campaign.id,
            brand=campaign.brand,
            reward_token=campaign.reward_token,
            budget=campaign.budget,
            end_time=campaign.end_time,
            is_active=campaign.is_active,
            has_ended=campaign.has_ended(now),
            results_published=campaign.results_published,
            merkle_root=campaign.merkle_root,
            total_allocated=campaign.total_allocated,
        )


class CampaignStatus(BaseModel):
    """Lifecycle projection returned by get_campaign_status."""

    model_config = ConfigDict(extra="forbid")

    has_ended: bool
    results_published: bool
    is_active: bool
    remaining_budget: int

    @classmethod
    def from_campaign(cls, campaign: Campaign, now: int) -> "CampaignStatus":
        return cls(
            has_ended=campaign.has_ended(now),
            results_published=campaign.results_published,
            is_active=campaign.is_active,
            remaining_budget=campaign.remaining_budget,
        )


__all__ = [
    "ZERO_ROOT",
    "MAX_AMOUNT",
    "Campaign",
    "CampaignDetails",
    "CampaignStatus",
]
