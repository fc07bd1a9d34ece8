"""
Admin Routes

Owner and oracle roles.
"""

from fastapi import APIRouter, Depends

from api.deps import get_caller, get_ledger
from api.models.requests import SetOracleRequest
from api.models.responses import RolesResponse
from ledger.service import RewardLedger


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/roles", response_model=RolesResponse)
def get_roles(ledger: RewardLedger = Depends(get_ledger)) -> RolesResponse:
    return RolesResponse(owner=ledger.owner(), oracle=ledger.oracle())


@router.put("/oracle", response_model=RolesResponse)
def set_oracle(
    request: SetOracleRequest,
    caller: str = Depends(get_caller),
    ledger: RewardLedger = Depends(get_ledger),
) -> RolesResponse:
    """Owner only. Replaces the oracle; the null identity is rejected."""
    ledger.set_oracle(caller, request.oracle)
    return RolesResponse(owner=ledger.owner(), oracle=ledger.oracle())
