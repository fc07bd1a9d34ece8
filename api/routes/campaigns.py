"""
Campaign Routes

Creation, closing, result publication and the read projections.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.deps import get_caller, get_ledger
from api.models.requests import CreateCampaignRequest, PublishResultsRequest
from api.models.responses import (
    CampaignActionResponse,
    CampaignCountResponse,
    CampaignCreatedResponse,
)
from core.schemas.campaign import CampaignDetails, CampaignStatus
from ledger.service import RewardLedger


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


@router.get("/count", response_model=CampaignCountResponse)
def campaign_count(ledger: RewardLedger = Depends(get_ledger)) -> CampaignCountResponse:
    return CampaignCountResponse(count=ledger.campaign_count())


@router.post("", response_model=CampaignCreatedResponse, status_code=201)
def create_campaign(
    request: CreateCampaignRequest,
    caller: str = Depends(get_caller),
    ledger: RewardLedger = Depends(get_ledger),
) -> CampaignCreatedResponse:
    """
    Escrow the budget from the caller and open a campaign.

    The caller must have approved the ledger's custody address for at
    least `budget` units of `reward_token`.
    """
    campaign_id = ledger.create_campaign(
        caller, request.reward_token, request.budget, request.end_time
    )
    return CampaignCreatedResponse(campaign_id=campaign_id)


@router.get("/{campaign_id}", response_model=CampaignDetails)
def get_campaign(campaign_id: int, ledger: RewardLedger = Depends(get_ledger)) -> CampaignDetails:
    return ledger.get_campaign(campaign_id)


@router.get("/{campaign_id}/status", response_model=CampaignStatus)
def get_campaign_status(
    campaign_id: int,
    ledger: RewardLedger = Depends(get_ledger),
) -> CampaignStatus:
    return ledger.get_campaign_status(campaign_id)


@router.post("/{campaign_id}/close", response_model=CampaignActionResponse)
def close_campaign(
    campaign_id: int,
    caller: str = Depends(get_caller),
    ledger: RewardLedger = Depends(get_ledger),
) -> CampaignActionResponse:
    ledger.close_campaign(caller, campaign_id)
    return CampaignActionResponse(campaign_id=campaign_id)


@router.post("/{campaign_id}/results", response_model=CampaignActionResponse)
def publish_results(
    campaign_id: int,
    request: PublishResultsRequest,
    caller: str = Depends(get_caller),
    ledger: RewardLedger = Depends(get_ledger),
) -> CampaignActionResponse:
    """Oracle only. Commits the allocation root; a committed root is final."""
    ledger.publish_results(caller, campaign_id, request.merkle_root, request.total_allocated)
    return CampaignActionResponse(campaign_id=campaign_id)
