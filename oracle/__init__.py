"""
Settlement Oracle

Off-ledger computation of campaign allocations and their commitment.
"""

from oracle.engagement import (
    EngagementSource,
    HttpEngagementSource,
    JsonFileEngagementSource,
    StaticEngagementSource,
)
from oracle.ledger_client import HttpLedgerClient, LedgerClient, LocalLedgerClient
from oracle.manifest import ClaimEntry, ClaimsManifest, manifest_path, verify_manifest
from oracle.pipeline import OraclePipeline, SettlementResult, SettlementStatus
from oracle.scoring import ProportionalScorer, ScoringFunction, validate_allocations

__all__ = [
    "OraclePipeline",
    "SettlementResult",
    "SettlementStatus",
    "EngagementSource",
    "StaticEngagementSource",
    "JsonFileEngagementSource",
    "HttpEngagementSource",
    "LedgerClient",
    "LocalLedgerClient",
    "HttpLedgerClient",
    "ClaimsManifest",
    "ClaimEntry",
    "manifest_path",
    "verify_manifest",
    "ScoringFunction",
    "ProportionalScorer",
    "validate_allocations",
]
