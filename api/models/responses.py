"""
API Response Models

Pydantic models for API response serialization. Campaign reads return
the ledger's own CampaignDetails and CampaignStatus models.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "reward-ledger-api"
    version: str = "v1"
    campaigns: int = 0


class CampaignCountResponse(BaseModel):
    count: int


class CampaignCreatedResponse(BaseModel):
    ok: bool = True
    campaign_id: int


class CampaignActionResponse(BaseModel):
    """Acknowledgement for close and publish."""

    ok: bool = True
    campaign_id: int


class ClaimResponse(BaseModel):
    ok: bool = True
    campaign_id: int
    recipient: str
    amount: int


class ClaimStatusResponse(BaseModel):
    campaign_id: int
    recipient: str
    claimed: bool


class RolesResponse(BaseModel):
    owner: str
    oracle: Optional[str] = None


class ErrorDetail(BaseModel):
    """Error details."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail
