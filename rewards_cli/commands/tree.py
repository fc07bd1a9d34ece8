"""
CLI Tree Command

Commit an allocations file and write the claims manifest.

The allocations file is a JSON object {recipient: amount}, or an object
with an "allocations" key.

Usage:
    rewards tree allocations.json --campaign-id 1 --out manifest.json [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Any

from core.merkle import RewardTree
from core.schemas.errors import ValidationError
from oracle.manifest import ClaimsManifest


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def load_allocations(path: Path) -> dict[str, Any]:
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, dict) and isinstance(data.get("allocations"), dict):
        data = data["allocations"]
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object of recipient -> amount")
    return data


def tree_cmd(args: Namespace) -> int:
    """Execute the tree command."""
    path = Path(args.allocations)
    if not path.exists():
        print(f"Error: Allocations file not found: {path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        allocations = load_allocations(path)
        tree = RewardTree(allocations)
    except (ValueError, ValidationError) as e:
        print(f"Error: Invalid allocations: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    manifest = ClaimsManifest.from_tree(args.campaign_id, tree, allocations)
    if args.out:
        manifest.save(args.out)
        logger.info(f"Wrote manifest for {len(manifest.claims)} recipient(s) to {args.out}")

    if args.json:
        print(json.dumps({
            "campaign_id": manifest.campaign_id,
            "merkle_root": manifest.merkle_root,
            "total_allocated": manifest.total_allocated,
            "recipients": len(manifest.claims),
            "manifest": str(args.out) if args.out else None,
        }, indent=2))
    else:
        print(f"Merkle root:     {manifest.merkle_root}")
        print(f"Total allocated: {manifest.total_allocated}")
        print(f"Recipients:      {len(manifest.claims)}")
        if args.out:
            print(f"Manifest:        {args.out}")

    return EXIT_SUCCESS
