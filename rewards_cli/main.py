"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m rewards_cli tree <allocations.json> --campaign-id N [--out PATH] [--json]
    python -m rewards_cli verify-proof <manifest.json> [--json]
    python -m rewards_cli verify-proof --root R --recipient A --amount N --proof P [P ...]
    python -m rewards_cli settle --campaign-id N [--wait] [--engagement-dir DIR]
    python -m rewards_cli settle --all
    python -m rewards_cli status <campaign_id>
    python -m rewards_cli config --init

Environment Variables:
    REWARDS_LEDGER_URL          Ledger API base URL
    REWARDS_ORACLE              Oracle identity used by settle
    REWARDS_ENGAGEMENT_URL      Engagement data service base URL
    REWARDS_LOG_LEVEL           Log level (default: INFO)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from rewards_cli.commands import proof, settle, status, tree
from rewards_cli.config import get_default_config_template, load_config


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the CLI."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="rewards",
        description="Rewards CLI - Commit allocations, verify proofs and settle campaigns.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./rewards.json or ~/.config/rewards/config.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print tracebacks on error",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- tree command ---
    tree_parser = subparsers.add_parser(
        "tree",
        help="Build a Merkle root and claims manifest from allocations",
        description="Commit a {recipient: amount} JSON file and optionally write the claims manifest.",
    )
    tree_parser.add_argument("allocations", type=str, help="Path to allocations JSON")
    tree_parser.add_argument(
        "--campaign-id",
        type=int,
        default=1,
        help="Campaign id recorded in the manifest (default: 1)",
    )
    tree_parser.add_argument("--out", "-o", type=str, default=None, help="Manifest output path")
    tree_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    tree_parser.set_defaults(func=tree.tree_cmd)

    # --- verify-proof command ---
    proof_parser = subparsers.add_parser(
        "verify-proof",
        help="Verify a claims manifest or a single claim proof",
        description="Recompute a manifest's root, or check one proof against a root.",
    )
    proof_parser.add_argument("manifest", type=str, nargs="?", default=None, help="Manifest path")
    proof_parser.add_argument("--root", type=str, default=None, help="0x-prefixed Merkle root")
    proof_parser.add_argument("--recipient", type=str, default=None, help="Claiming address")
    proof_parser.add_argument("--amount", type=int, default=None, help="Claimed amount")
    proof_parser.add_argument(
        "--proof",
        type=str,
        nargs="*",
        default=None,
        help="0x-prefixed sibling digests, leaf to root",
    )
    proof_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    proof_parser.set_defaults(func=proof.verify_proof_cmd)

    # --- settle command ---
    settle_parser = subparsers.add_parser(
        "settle",
        help="Compute and publish results for ended campaigns",
        description="Run the oracle pipeline against a ledger API.",
    )
    target = settle_parser.add_mutually_exclusive_group()
    target.add_argument("--campaign-id", type=int, default=None, help="Campaign to settle")
    target.add_argument(
        "--all",
        action="store_true",
        default=False,
        help="Settle every ended, unsettled campaign",
    )
    settle_parser.add_argument(
        "--wait",
        action="store_true",
        default=False,
        help="Poll until the campaign ends before settling",
    )
    settle_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Give up waiting after this many seconds",
    )
    settle_parser.add_argument("--ledger-url", type=str, default=None, help="Ledger API base URL")
    settle_parser.add_argument("--identity", type=str, default=None, help="Oracle identity")
    settle_parser.add_argument(
        "--engagement-dir",
        type=str,
        default=None,
        help="Directory of campaign-<id>.json engagement files",
    )
    settle_parser.add_argument(
        "--manifest-dir",
        type=str,
        default=None,
        help="Where claims manifests are written (default: from config)",
    )
    settle_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    settle_parser.set_defaults(func=settle.settle_cmd)

    # --- status command ---
    status_parser = subparsers.add_parser(
        "status",
        help="Show a campaign's state",
        description="Fetch a campaign from the ledger API.",
    )
    status_parser.add_argument("campaign_id", type=int, help="Campaign id")
    status_parser.add_argument("--ledger-url", type=str, default=None, help="Ledger API base URL")
    status_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    status_parser.set_defaults(func=status.status_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show the effective configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default="rewards.json",
        help="Config file path for --init (default: rewards.json)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (REWARDS_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.runtime_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    print("Usage: rewards config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    setup_logging(level=args.log_level or config.log_level)

    # Attach config to args for commands to use
    args.runtime_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
