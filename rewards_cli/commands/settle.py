"""
CLI Settle Command

Run the oracle pipeline against a ledger API.

Usage:
    rewards settle --campaign-id 1 [--wait] [--engagement-dir DIR] [--json]
    rewards settle --all [--engagement-dir DIR]

The ledger URL, oracle identity and engagement URL default to the
runtime config (http.ledger_url, ledger.oracle, http.engagement_url).
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace

from core.config import RuntimeConfig
from core.http import HttpClient
from core.schemas.errors import SettlementException
from oracle.engagement import EngagementSource, HttpEngagementSource, JsonFileEngagementSource
from oracle.ledger_client import HttpLedgerClient
from oracle.pipeline import OraclePipeline, SettlementResult


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def build_engagement_source(args: Namespace, config: RuntimeConfig) -> EngagementSource:
    if args.engagement_dir:
        return JsonFileEngagementSource(args.engagement_dir)
    if config.http.engagement_url:
        return HttpEngagementSource(
            HttpClient(base_url=config.http.engagement_url, timeout=config.http.timeout)
        )
    raise ValueError("No engagement source: pass --engagement-dir or set http.engagement_url")


def build_pipeline(args: Namespace, config: RuntimeConfig) -> OraclePipeline:
    ledger_url = args.ledger_url or config.http.ledger_url
    identity = args.identity or config.ledger.oracle
    if not ledger_url:
        raise ValueError("No ledger URL: pass --ledger-url or set http.ledger_url")
    if not identity:
        raise ValueError("No oracle identity: pass --identity or set ledger.oracle")

    if args.manifest_dir:
        config.oracle.manifest_dir = args.manifest_dir
    ledger = HttpLedgerClient(
        HttpClient(base_url=ledger_url, timeout=config.http.timeout),
        identity=identity,
    )
    return OraclePipeline(ledger, build_engagement_source(args, config), config=config.oracle)


def _print_result(result: SettlementResult) -> None:
    line = f"Campaign {result.campaign_id}: {result.status.value}"
    if result.merkle_root:
        line += f" root={result.merkle_root} total={result.total_allocated}"
    if result.error:
        line += f" error={result.error.code}: {result.error.message}"
    print(line)
    if result.manifest_path:
        print(f"  manifest: {result.manifest_path}")


def settle_cmd(args: Namespace) -> int:
    """Execute the settle command."""
    config: RuntimeConfig = args.runtime_config
    if args.campaign_id is None and not args.all:
        print("Error: pass --campaign-id N or --all", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        pipeline = build_pipeline(args, config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        if args.all:
            results = pipeline.process_ready_campaigns()
        elif args.wait:
            results = [pipeline.wait_and_process(args.campaign_id, timeout=args.timeout)]
        else:
            results = [pipeline.process_campaign(args.campaign_id)]
    except SettlementException as e:
        if args.json:
            print(json.dumps({"ok": False, "error": e.to_error_model().model_dump()}, indent=2))
        else:
            print(f"Error: [{e.code}] {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
    else:
        if not results:
            print("No campaigns ready for settlement")
        for result in results:
            _print_result(result)

    return EXIT_SUCCESS if all(r.ok for r in results) else EXIT_RUNTIME_ERROR
