"""
Settlement Authority

Two independent single-principal capabilities:
- owner: fixed at construction, may replace the oracle
- oracle: may publish one commitment per campaign

publish_results does not require the campaign to have ended; the
end-time gate is enforced by the oracle pipeline.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from core.crypto.addresses import is_zero_address
from core.crypto.hashing import ZERO_DIGEST, digest_from_hex, to_hex
from core.schemas.errors import AuthorizationError, StateError, ValidationError
from core.schemas.events import ResultsPublished
from ledger.campaigns import principal, require_amount
from ledger.clock import Clock
from ledger.store import LedgerStore


logger = logging.getLogger(__name__)


def coerce_root(merkle_root: Union[bytes, str]) -> bytes:
    """
    Accept a root as 32 raw bytes or 0x-prefixed hex.

    Raises:
        ValidationError: On any other shape
    """
    if isinstance(merkle_root, (bytes, bytearray)):
        if len(merkle_root) != len(ZERO_DIGEST):
            raise ValidationError(
                f"Merkle root must be {len(ZERO_DIGEST)} bytes", field_path="merkle_root"
            )
        return bytes(merkle_root)
    try:
        return digest_from_hex(merkle_root)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Malformed Merkle root: {e}", field_path="merkle_root") from e


class SettlementAuthority:
    def __init__(self, store: LedgerStore, clock: Clock) -> None:
        self.store = store
        self.clock = clock

    @property
    def owner(self) -> str:
        return self.store.owner

    @property
    def oracle(self) -> Optional[str]:
        return self.store.oracle

    def set_oracle(self, caller: str, new_oracle: str) -> None:
        """
        Raises:
            AuthorizationError: Caller is not the owner
            ValidationError: new_oracle is malformed or the null identity
        """
        sender = principal(caller)
        if sender != self.store.owner:
            raise AuthorizationError(
                "Only owner can call this function",
                caller=sender,
                required="owner",
            )
        oracle = principal(new_oracle, "oracle")
        if is_zero_address(oracle):
            raise ValidationError("Oracle cannot be zero address", field_path="oracle")

        with self.store.transaction() as store:
            previous = store.oracle
            store.set_oracle(oracle)

        logger.info(f"Oracle changed from {previous} to {oracle}")

    def publish_results(
        self,
        caller: str,
        campaign_id: int,
        merkle_root: Union[bytes, str],
        total_allocated: int,
    ) -> None:
        """
        Commit the allocation root for a campaign. A committed root is final.

        Raises:
            AuthorizationError: Caller is not the oracle
            NotFoundError: Unknown campaign id
            ValidationError: Zero root, zero total or total above budget
            StateError: Results already published
        """
        sender = principal(caller)
        with self.store.transaction() as store:
            if store.oracle is None or sender != store.oracle:
                raise AuthorizationError(
                    "Only oracle can call this function",
                    caller=sender,
                    required="oracle",
                )
            campaign = store.get_campaign(campaign_id)

            root = coerce_root(merkle_root)
            if root == ZERO_DIGEST:
                raise ValidationError("Merkle root cannot be empty", field_path="merkle_root")
            require_amount(total_allocated, "total_allocated")
            if total_allocated == 0:
                raise ValidationError(
                    "Total allocated must be greater than zero", field_path="total_allocated"
                )
            if total_allocated > campaign.budget:
                raise ValidationError(
                    "Allocated amount exceeds budget",
                    field_path="total_allocated",
                    details={"budget": campaign.budget, "total_allocated": total_allocated},
                )
            if campaign.results_published:
                raise StateError("Results already published", campaign_id=campaign_id)

            root_hex = to_hex(root)
            store.replace_campaign(campaign.model_copy(update={
                "merkle_root": root_hex,
                "total_allocated": total_allocated,
                "is_active": False,
            }))
            store.emit(ResultsPublished(
                campaign_id=campaign_id,
                merkle_root=root_hex,
                total_allocated=total_allocated,
                timestamp=self.clock.now(),
            ))

        logger.info(
            f"Results published for campaign {campaign_id}: "
            f"root={root_hex} total_allocated={total_allocated}"
        )
