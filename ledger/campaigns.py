"""
Campaign Ledger

Creation, escrow and closing of campaigns, plus the read projections.

create_campaign writes the record before pulling the budget from the
brand, and flushes it to the store first; if the pull fails the enclosing
transaction rolls the record back, so a failed escrow never leaves a
campaign behind.
"""

from __future__ import annotations

import logging

from core.crypto.addresses import normalize_address
from core.schemas.campaign import MAX_AMOUNT, ZERO_ROOT, Campaign, CampaignDetails, CampaignStatus
from core.schemas.errors import AuthorizationError, StateError, ValidationError
from core.schemas.events import CampaignClosed, CampaignCreated
from ledger.clock import Clock
from ledger.store import LedgerStore
from ledger.token import TokenRegistry


logger = logging.getLogger(__name__)


def principal(caller: str, role: str = "caller") -> str:
    """
    Normalise a caller identity.

    Raises:
        ValidationError: If caller is not a well-formed address
    """
    try:
        return normalize_address(caller)
    except ValueError as e:
        raise ValidationError(f"Invalid {role} identity: {caller!r}", field_path=role) from e


def require_amount(value: int, field_path: str) -> int:
    """
    Raises:
        ValidationError: If value is not an integer in [0, 2**256 - 1]
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"{field_path} must be an integer, got {type(value).__name__}",
            field_path=field_path,
        )
    if value < 0 or value > MAX_AMOUNT:
        raise ValidationError(f"{field_path} out of range: {value}", field_path=field_path)
    return value


class CampaignLedger:
    """
    Usage:
        campaigns = CampaignLedger(store, tokens, clock, custody=ledger_address)
        campaign_id = campaigns.create_campaign(brand, token.address, 1000, end_time)
    """

    def __init__(
        self,
        store: LedgerStore,
        tokens: TokenRegistry,
        clock: Clock,
        *,
        custody: str,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.clock = clock
        self.custody = normalize_address(custody)

    def create_campaign(
        self,
        caller: str,
        reward_token: str,
        budget: int,
        end_time: int,
    ) -> int:
        """
        Escrow budget units of reward_token from caller and open a campaign.

        Returns:
            The new campaign id

        Raises:
            ValidationError: Zero budget, end time not in the future,
                unknown token or malformed identities
            TransferError: Caller's allowance or balance is insufficient
        """
        brand = principal(caller, "brand")
        require_amount(budget, "budget")
        if budget == 0:
            raise ValidationError("Budget must be greater than zero", field_path="budget")
        if isinstance(end_time, bool) or not isinstance(end_time, int):
            raise ValidationError("End time must be an integer timestamp", field_path="end_time")
        now = self.clock.now()
        if end_time <= now:
            raise ValidationError(
                "End time must be in the future",
                field_path="end_time",
                details={"end_time": end_time, "now": now},
            )
        token = self.tokens.get(reward_token)

        with self.store.transaction() as store:
            campaign = Campaign(
                id=store.next_campaign_id(),
                brand=brand,
                reward_token=token.address,
                budget=budget,
                end_time=end_time,
                is_active=True,
                merkle_root=ZERO_ROOT,
                total_allocated=0,
            )
            store.append_campaign(campaign)
            store.flush()

            token.transfer_from(self.custody, brand, self.custody, budget)

            store.emit(CampaignCreated(
                campaign_id=campaign.id,
                brand=campaign.brand,
                reward_token=campaign.reward_token,
                budget=campaign.budget,
                end_time=campaign.end_time,
                is_active=campaign.is_active,
                merkle_root=campaign.merkle_root,
                total_allocated=campaign.total_allocated,
            ))

        logger.info(
            f"Campaign {campaign.id} created by {brand}: "
            f"budget={budget} token={token.address} end_time={end_time}"
        )
        return campaign.id

    def close_campaign(self, caller: str, campaign_id: int) -> None:
        """
        Deactivate a campaign. Escrow and allocation fields are untouched.

        Raises:
            NotFoundError: Unknown campaign id
            AuthorizationError: Caller is not the campaign's brand
            StateError: Campaign is already inactive
        """
        closer = principal(caller)
        with self.store.transaction() as store:
            campaign = store.get_campaign(campaign_id)
            if closer != campaign.brand:
                raise AuthorizationError(
                    "Only campaign creator can close",
                    caller=closer,
                    required="brand",
                )
            if not campaign.is_active:
                raise StateError("Campaign is already closed", campaign_id=campaign_id)

            store.replace_campaign(campaign.model_copy(update={"is_active": False}))
            store.emit(CampaignClosed(
                campaign_id=campaign_id,
                brand=campaign.brand,
                timestamp=self.clock.now(),
            ))

        logger.info(f"Campaign {campaign_id} closed by {closer}")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_campaign(self, campaign_id: int) -> CampaignDetails:
        return CampaignDetails.from_campaign(self.store.get_campaign(campaign_id), self.clock.now())

    def get_campaign_struct(self, campaign_id: int) -> Campaign:
        return self.store.get_campaign(campaign_id).model_copy()

    def get_campaign_status(self, campaign_id: int) -> CampaignStatus:
        return CampaignStatus.from_campaign(self.store.get_campaign(campaign_id), self.clock.now())

    def campaign_count(self) -> int:
        return self.store.campaign_count
