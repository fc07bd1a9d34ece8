"""
API Request Models

Pydantic models for request validation. Identities and amounts are
checked by the ledger itself; these models only fix the body shape.
"""

from pydantic import BaseModel, Field


class CreateCampaignRequest(BaseModel):
    """Request body for POST /campaigns."""

    reward_token: str = Field(..., description="Address of the escrowed token")
    budget: int = Field(..., description="Escrow amount in token base units")
    end_time: int = Field(..., description="Campaign end (unix seconds)")


class PublishResultsRequest(BaseModel):
    """Request body for POST /campaigns/{id}/results."""

    merkle_root: str = Field(..., description="0x-prefixed 32-byte allocation root")
    total_allocated: int = Field(..., description="Sum of all allocations")


class ClaimRequest(BaseModel):
    """Request body for POST /campaigns/{id}/claims."""

    amount: int
    proof: list[str] = Field(default_factory=list, description="0x-prefixed sibling digests")


class SetOracleRequest(BaseModel):
    """Request body for PUT /admin/oracle."""

    oracle: str
