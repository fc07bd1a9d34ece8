"""
Ledger Events

Records emitted by committed ledger transactions. Events of a failed
transaction are discarded together with its state changes.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class CampaignCreated(BaseModel):
    """Full initial record of a newly created campaign."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    event: Literal["CampaignCreated"] = "CampaignCreated"
    campaign_id: int
    brand: str
    reward_token: str
    budget: int
    end_time: int
    is_active: bool = True
    merkle_root: str
    total_allocated: int = 0


class CampaignClosed(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    event: Literal["CampaignClosed"] = "CampaignClosed"
    campaign_id: int
    brand: str
    timestamp: int


class ResultsPublished(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    event: Literal["ResultsPublished"] = "ResultsPublished"
    campaign_id: int
    merkle_root: str
    total_allocated: int
    timestamp: int


class RewardClaimed(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    event: Literal["RewardClaimed"] = "RewardClaimed"
    campaign_id: int
    recipient: str
    amount: int
    timestamp: int


LedgerEvent = Union[CampaignCreated, CampaignClosed, ResultsPublished, RewardClaimed]


class EventRecord(BaseModel):
    """An event with its position in the ledger's event sequence."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    sequence: int = Field(..., ge=0)
    payload: LedgerEvent = Field(..., discriminator="event")


__all__ = [
    "CampaignCreated",
    "CampaignClosed",
    "ResultsPublished",
    "RewardClaimed",
    "LedgerEvent",
    "EventRecord",
]
