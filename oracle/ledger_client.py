"""
Ledger Clients

The oracle talks to the ledger through this narrow interface, either
in-process or over the REST API. Domain errors come back as the same
exception classes in both cases; only transport failures become
SubmissionError.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, runtime_checkable

from core.crypto.addresses import normalize_address
from core.http import HttpClient, HttpError, HttpResponse
from core.schemas.campaign import CampaignDetails
from core.schemas.errors import SettlementError, SubmissionError
from ledger.service import RewardLedger


logger = logging.getLogger(__name__)

CALLER_HEADER = "X-Caller"


@runtime_checkable
class LedgerClient(Protocol):
    identity: str

    def campaign_count(self) -> int:
        ...

    def get_campaign(self, campaign_id: int) -> CampaignDetails:
        ...

    def publish_results(self, campaign_id: int, merkle_root: str, total_allocated: int) -> None:
        ...


class LocalLedgerClient:
    """Calls a RewardLedger in the same process, acting as identity."""

    def __init__(self, ledger: RewardLedger, identity: str) -> None:
        self.ledger = ledger
        self.identity = normalize_address(identity)

    def campaign_count(self) -> int:
        return self.ledger.campaign_count()

    def get_campaign(self, campaign_id: int) -> CampaignDetails:
        return self.ledger.get_campaign(campaign_id)

    def publish_results(self, campaign_id: int, merkle_root: str, total_allocated: int) -> None:
        self.ledger.publish_results(self.identity, campaign_id, merkle_root, total_allocated)


class HttpLedgerClient:
    """
    Calls the ledger REST API.

    Usage:
        client = HttpLedgerClient(HttpClient(base_url=url), identity=ORACLE)
        client.publish_results(1, "0x...", 325)
    """

    def __init__(self, client: HttpClient, identity: str) -> None:
        self.client = client
        self.identity = normalize_address(identity)

    def _headers(self) -> dict[str, str]:
        return {CALLER_HEADER: self.identity}

    def _send(self, method: str, path: str, json: Optional[Any] = None) -> Any:
        try:
            response = self.client.request(method, path, headers=self._headers(), json=json)
        except HttpError as e:
            raise SubmissionError(
                f"{method} {path} failed: {e}",
                retryable=True,
                details={"path": path},
            ) from e

        if response.ok:
            return response.json()
        raise self._error_from(response, method, path)

    @staticmethod
    def _error_from(response: HttpResponse, method: str, path: str) -> Exception:
        """Rebuild the domain exception carried in an error body."""
        try:
            body = response.json()
            error = SettlementError.model_validate(body["error"])
        except (ValueError, KeyError, TypeError):
            error = None

        transient = response.status_code >= 500 or response.status_code == 429
        if error is not None and not transient:
            return error.to_exception()
        return SubmissionError(
            f"{method} {path} returned HTTP {response.status_code}",
            retryable=transient,
            details={"status_code": response.status_code, "path": path},
        )

    def campaign_count(self) -> int:
        return int(self._send("GET", "/campaigns/count")["count"])

    def get_campaign(self, campaign_id: int) -> CampaignDetails:
        return CampaignDetails.model_validate(self._send("GET", f"/campaigns/{campaign_id}"))

    def publish_results(self, campaign_id: int, merkle_root: str, total_allocated: int) -> None:
        self._send(
            "POST",
            f"/campaigns/{campaign_id}/results",
            json={"merkle_root": merkle_root, "total_allocated": total_allocated},
        )
