"""API request and response models."""

from api.models.requests import (
    ClaimRequest,
    CreateCampaignRequest,
    PublishResultsRequest,
    SetOracleRequest,
)
from api.models.responses import (
    CampaignActionResponse,
    CampaignCountResponse,
    CampaignCreatedResponse,
    ClaimResponse,
    ClaimStatusResponse,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    RolesResponse,
)

__all__ = [
    "CreateCampaignRequest",
    "PublishResultsRequest",
    "ClaimRequest",
    "SetOracleRequest",
    "HealthResponse",
    "CampaignCountResponse",
    "CampaignCreatedResponse",
    "CampaignActionResponse",
    "ClaimResponse",
    "ClaimStatusResponse",
    "RolesResponse",
    "ErrorDetail",
    "ErrorResponse",
]
