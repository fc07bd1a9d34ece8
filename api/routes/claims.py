"""
Claim Routes
"""

from fastapi import APIRouter, Depends

from api.deps import get_caller, get_ledger
from api.models.requests import ClaimRequest
from api.models.responses import ClaimResponse, ClaimStatusResponse
from core.crypto.addresses import normalize_address
from ledger.service import RewardLedger


router = APIRouter(prefix="/campaigns", tags=["claims"])


@router.post("/{campaign_id}/claims", response_model=ClaimResponse)
def claim_reward(
    campaign_id: int,
    request: ClaimRequest,
    caller: str = Depends(get_caller),
    ledger: RewardLedger = Depends(get_ledger),
) -> ClaimResponse:
    """Pay the caller the amount proven against the campaign's root."""
    ledger.claim_reward(caller, campaign_id, request.amount, request.proof)
    return ClaimResponse(
        campaign_id=campaign_id,
        recipient=normalize_address(caller),
        amount=request.amount,
    )


@router.get("/{campaign_id}/claims/{recipient}", response_model=ClaimStatusResponse)
def has_claimed(
    campaign_id: int,
    recipient: str,
    ledger: RewardLedger = Depends(get_ledger),
) -> ClaimStatusResponse:
    return ClaimStatusResponse(
        campaign_id=campaign_id,
        recipient=recipient.lower(),
        claimed=ledger.has_claimed(campaign_id, recipient),
    )
