"""
Engagement Sources

Where the oracle reads per-recipient engagement metrics for a finished
campaign. A source returns {recipient: metrics}; metrics is either a
number or a mapping of named numeric counters.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from core.http import HttpClient, HttpError
from core.schemas.errors import SubmissionError, ValidationError


logger = logging.getLogger(__name__)

EngagementData = dict[str, Any]


@runtime_checkable
class EngagementSource(Protocol):
    def engagement_data(self, campaign_id: int) -> EngagementData:
        ...


class StaticEngagementSource:
    """In-memory source keyed by campaign id. Used by tests and demos."""

    def __init__(self, data: Optional[Mapping[int, Mapping[str, Any]]] = None) -> None:
        self._data: dict[int, EngagementData] = {
            int(cid): dict(metrics) for cid, metrics in (data or {}).items()
        }

    def set(self, campaign_id: int, metrics: Mapping[str, Any]) -> None:
        self._data[campaign_id] = dict(metrics)

    def engagement_data(self, campaign_id: int) -> EngagementData:
        return dict(self._data.get(campaign_id, {}))


class JsonFileEngagementSource:
    """
    Reads <directory>/campaign-<id>.json.

    The file holds either the metrics mapping itself or an object with an
    "engagement" key.
    """

    def __init__(self, directory: str | Path, pattern: str = "campaign-{campaign_id}.json") -> None:
        self.directory = Path(directory)
        self.pattern = pattern

    def path_for(self, campaign_id: int) -> Path:
        return self.directory / self.pattern.format(campaign_id=campaign_id)

    def engagement_data(self, campaign_id: int) -> EngagementData:
        path = self.path_for(campaign_id)
        if not path.exists():
            raise ValidationError(
                f"No engagement data for campaign {campaign_id}",
                field_path="engagement",
                details={"path": str(path)},
            )
        with open(path) as f:
            payload = json.load(f)
        return _unwrap(payload, campaign_id)


class HttpEngagementSource:
    """
    Fetches GET <base_url>/campaigns/<id>/engagement.

    Connection failures and 5xx responses raise a retryable SubmissionError.
    """

    def __init__(
        self,
        client: HttpClient,
        path: str = "/campaigns/{campaign_id}/engagement",
    ) -> None:
        self.client = client
        self.path = path

    def engagement_data(self, campaign_id: int) -> EngagementData:
        url = self.path.format(campaign_id=campaign_id)
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except HttpError as e:
            raise SubmissionError(
                f"Engagement fetch failed for campaign {campaign_id}: {e}",
                retryable=e.transient,
                details={"status_code": e.status_code},
            ) from e
        return _unwrap(response.json(), campaign_id)


def _unwrap(payload: Any, campaign_id: int) -> EngagementData:
    if isinstance(payload, dict) and isinstance(payload.get("engagement"), dict):
        payload = payload["engagement"]
    if not isinstance(payload, dict):
        raise ValidationError(
            f"Engagement data for campaign {campaign_id} must be an object",
            field_path="engagement",
        )
    return payload
