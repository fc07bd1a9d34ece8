"""
CLI Status Command

Show a campaign's record and lifecycle flags from a ledger API.

Usage:
    rewards status 1 [--ledger-url URL] [--json]
"""

from __future__ import annotations

import json
import sys
from argparse import Namespace

from core.config import RuntimeConfig
from core.crypto.addresses import ZERO_ADDRESS
from core.http import HttpClient
from core.schemas.errors import SettlementException
from oracle.ledger_client import HttpLedgerClient


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def status_cmd(args: Namespace) -> int:
    """Execute the status command."""
    config: RuntimeConfig = args.runtime_config
    ledger_url = args.ledger_url or config.http.ledger_url
    if not ledger_url:
        print("Error: No ledger URL: pass --ledger-url or set http.ledger_url", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    client = HttpLedgerClient(
        HttpClient(base_url=ledger_url, timeout=config.http.timeout),
        identity=config.ledger.oracle or ZERO_ADDRESS,
    )
    try:
        details = client.get_campaign(args.campaign_id)
    except SettlementException as e:
        print(f"Error: [{e.code}] {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if args.json:
        print(json.dumps(details.model_dump(), indent=2))
        return EXIT_SUCCESS

    print(f"Campaign {details.id}")
    print(f"  brand:             {details.brand}")
    print(f"  reward token:      {details.reward_token}")
    print(f"  budget:            {details.budget}")
    print(f"  end time:          {details.end_time}")
    print(f"  active:            {details.is_active}")
    print(f"  ended:             {details.has_ended}")
    print(f"  results published: {details.results_published}")
    if details.results_published:
        print(f"  merkle root:       {details.merkle_root}")
        print(f"  total allocated:   {details.total_allocated}")
    return EXIT_SUCCESS
