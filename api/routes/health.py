"""
Health Check Route

Simple health check endpoint for liveness probes.
"""

from fastapi import APIRouter, Depends

from api.deps import get_ledger
from api.models.responses import HealthResponse
from ledger.service import RewardLedger


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(ledger: RewardLedger = Depends(get_ledger)) -> HealthResponse:
    """
    Health check endpoint.

    Returns service status and the number of campaigns on the ledger.
    """
    return HealthResponse(ok=True, campaigns=ledger.campaign_count())
