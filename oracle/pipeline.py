"""
Oracle Settlement Pipeline

Computes and commits the allocation for finished campaigns:

    1. Read the campaign; skip it if already settled or (by default) not ended
    2. Fetch the engagement snapshot
    3. Score it into {recipient: amount} with sum <= budget
    4. Build the commitment and write the claims manifest
    5. Publish (root, total) to the ledger

The pipeline holds no state between runs: rerunning it on the same
snapshot rebuilds the same manifest, and a publish that finds results
already on the ledger counts as success. Transient ledger and engagement
failures are retried with exponential backoff; authorization, validation
and not-found errors are permanent and surface immediately.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, TypeVar

from core.config import OracleConfig
from core.http import HttpError
from core.merkle import RewardTree
from core.schemas.campaign import CampaignDetails
from core.schemas.errors import (
    SettlementError,
    SettlementException,
    StateError,
    SubmissionError,
)
from ledger.clock import Clock, SystemClock
from oracle.engagement import EngagementSource
from oracle.ledger_client import LedgerClient
from oracle.manifest import ClaimsManifest, manifest_path
from oracle.scoring import ProportionalScorer, ScoringFunction, validate_allocations


logger = logging.getLogger(__name__)

T = TypeVar("T")


class SettlementStatus(str, Enum):
    PUBLISHED = "published"
    ALREADY_PUBLISHED = "already_published"
    NOT_ENDED = "not_ended"
    FAILED = "failed"


@dataclass
class SettlementResult:
    """Outcome of settling one campaign."""
    campaign_id: int
    status: SettlementStatus
    merkle_root: Optional[str] = None
    total_allocated: int = 0
    recipients: int = 0
    attempts: int = 0
    manifest: Optional[ClaimsManifest] = None
    manifest_path: Optional[Path] = None
    error: Optional[SettlementError] = None

    @property
    def ok(self) -> bool:
        return self.status != SettlementStatus.FAILED

    def to_dict(self) -> dict:
        return {
            "campaign_id": self.campaign_id,
            "status": self.status.value,
            "merkle_root": self.merkle_root,
            "total_allocated": self.total_allocated,
            "recipients": self.recipients,
            "attempts": self.attempts,
            "manifest_path": str(self.manifest_path) if self.manifest_path else None,
            "error": self.error.model_dump() if self.error else None,
        }


class OraclePipeline:
    """
    Usage:
        pipeline = OraclePipeline(
            LocalLedgerClient(ledger, ORACLE),
            StaticEngagementSource({1: {"0xaa...": 10, "0xbb...": 30}}),
        )
        result = pipeline.process_campaign(1)
    """

    def __init__(
        self,
        ledger: LedgerClient,
        engagement: EngagementSource,
        scorer: Optional[ScoringFunction] = None,
        *,
        config: Optional[OracleConfig] = None,
        clock: Optional[Clock] = None,
        sleep: Callable[[float], None] = time.sleep,
        write_manifests: bool = True,
    ) -> None:
        self.ledger = ledger
        self.engagement = engagement
        self.scorer = scorer or ProportionalScorer()
        self.config = config or OracleConfig()
        self.clock = clock or SystemClock()
        self.sleep = sleep
        self.write_manifests = write_manifests

    # -------------------------------------------------------------------------
    # Retry
    # -------------------------------------------------------------------------

    def _backoff(self, attempt: int) -> float:
        delay = self.config.retry_delay * (self.config.backoff_factor ** attempt)
        return min(delay, self.config.max_delay)

    def _with_retry(self, description: str, operation: Callable[[], T]) -> tuple[T, int]:
        """
        Run operation, retrying transient failures.

        Returns:
            (result, attempts used)

        Raises:
            SubmissionError: Transient failures persisted past max_retries
            SettlementException: Any permanent error, unchanged
        """
        attempts = self.config.max_retries + 1
        last_error: Optional[Exception] = None
        for attempt in range(attempts):
            try:
                return operation(), attempt + 1
            except SubmissionError as e:
                if not e.retryable:
                    raise
                last_error = e
            except HttpError as e:
                if not e.transient:
                    raise SubmissionError(f"{description} failed: {e}") from e
                last_error = e

            if attempt < attempts - 1:
                delay = self._backoff(attempt)
                logger.warning(
                    f"{description} failed (attempt {attempt + 1}/{attempts}): "
                    f"{last_error}; retrying in {delay:.1f}s"
                )
                self.sleep(delay)

        logger.error(f"{description} failed after {attempts} attempts: {last_error}")
        raise SubmissionError(
            f"{description} failed after {attempts} attempts: {last_error}",
            retryable=True,
            details={"attempts": attempts},
        ) from last_error

    # -------------------------------------------------------------------------
    # Settlement
    # -------------------------------------------------------------------------

    def build_manifest(self, details: CampaignDetails) -> ClaimsManifest:
        """
        Score the campaign's engagement snapshot and commit it.

        Raises:
            ValidationError: Nothing to allocate, or allocations over budget
        """
        campaign_id = details.id
        engagement, _ = self._with_retry(
            f"Engagement fetch for campaign {campaign_id}",
            lambda: self.engagement.engagement_data(campaign_id),
        )
        allocations = validate_allocations(
            self.scorer.allocate(engagement, details.budget),
            details.budget,
        )
        tree = RewardTree(allocations)
        return ClaimsManifest.from_tree(campaign_id, tree, engagement)

    def process_campaign(self, campaign_id: int) -> SettlementResult:
        """
        Settle one campaign.

        Raises:
            NotFoundError: Unknown campaign id
            AuthorizationError: This oracle is not the ledger's oracle
            ValidationError: The snapshot cannot be committed
            SubmissionError: Transient failures outlasted the retry budget
        """
        details, _ = self._with_retry(
            f"Read of campaign {campaign_id}",
            lambda: self.ledger.get_campaign(campaign_id),
        )
        if details.results_published:
            logger.info(f"Campaign {campaign_id} already settled with root {details.merkle_root}")
            return SettlementResult(
                campaign_id=campaign_id,
                status=SettlementStatus.ALREADY_PUBLISHED,
                merkle_root=details.merkle_root,
                total_allocated=details.total_allocated,
            )
        if self.config.require_ended and not details.has_ended:
            logger.debug(f"Campaign {campaign_id} has not ended (end_time={details.end_time})")
            return SettlementResult(campaign_id=campaign_id, status=SettlementStatus.NOT_ENDED)

        manifest = self.build_manifest(details)
        path = None
        if self.write_manifests:
            path = manifest.save(manifest_path(self.config.manifest_dir, campaign_id))
            logger.debug(f"Wrote claims manifest for campaign {campaign_id} to {path}")

        status = SettlementStatus.PUBLISHED
        try:
            _, attempts = self._with_retry(
                f"Publish for campaign {campaign_id}",
                lambda: self.ledger.publish_results(
                    campaign_id, manifest.merkle_root, manifest.total_allocated
                ),
            )
        except StateError:
            # A previous run (or a concurrent one) got there first
            attempts = 1
            status = SettlementStatus.ALREADY_PUBLISHED
            current = self.ledger.get_campaign(campaign_id)
            if current.merkle_root != manifest.merkle_root:
                logger.warning(
                    f"Campaign {campaign_id} holds root {current.merkle_root}, "
                    f"recomputed {manifest.merkle_root}"
                )

        logger.info(
            f"Campaign {campaign_id} {status.value}: root={manifest.merkle_root} "
            f"total_allocated={manifest.total_allocated} recipients={len(manifest.claims)}"
        )
        return SettlementResult(
            campaign_id=campaign_id,
            status=status,
            merkle_root=manifest.merkle_root,
            total_allocated=manifest.total_allocated,
            recipients=len(manifest.claims),
            attempts=attempts,
            manifest=manifest,
            manifest_path=path,
        )

    def process_ready_campaigns(self) -> list[SettlementResult]:
        """
        Settle every ended, unsettled campaign.

        A campaign that fails permanently is reported with status FAILED
        and does not stop the scan.
        """
        count, _ = self._with_retry("Campaign count", self.ledger.campaign_count)
        results: list[SettlementResult] = []
        for campaign_id in range(1, count + 1):
            try:
                result = self.process_campaign(campaign_id)
            except SettlementException as e:
                logger.error(f"Campaign {campaign_id} could not be settled: {e.message}")
                result = SettlementResult(
                    campaign_id=campaign_id,
                    status=SettlementStatus.FAILED,
                    error=e.to_error_model(),
                )
            if result.status != SettlementStatus.NOT_ENDED:
                results.append(result)
        return results

    def wait_and_process(
        self,
        campaign_id: int,
        timeout: Optional[float] = None,
    ) -> SettlementResult:
        """
        Poll until the campaign ends, then settle it.

        Returns a NOT_ENDED result if timeout (seconds) elapses first.
        """
        started = self.clock.now()
        while True:
            result = self.process_campaign(campaign_id)
            if result.status != SettlementStatus.NOT_ENDED:
                return result

            details = self.ledger.get_campaign(campaign_id)
            remaining = max(details.end_time - self.clock.now(), 1)
            delay = min(self.config.poll_interval, remaining)
            if timeout is not None and self.clock.now() - started + delay > timeout:
                return result
            logger.debug(f"Campaign {campaign_id} ends in {remaining}s; sleeping {delay}s")
            self.sleep(delay)
