"""
CLI Verify-Proof Command

Check a whole claims manifest, or a single (recipient, amount, proof)
against a root.

Usage:
    rewards verify-proof manifest.json [--json]
    rewards verify-proof --root 0x... --recipient 0x... --amount 100 --proof 0x... 0x...
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path

from core.crypto.hashing import digest_from_hex
from core.merkle import MerkleVerifier
from oracle.manifest import ClaimsManifest, verify_manifest


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def _verify_single(args: Namespace) -> tuple[bool, list[str]]:
    root = digest_from_hex(args.root)
    siblings = [digest_from_hex(p) for p in args.proof or []]
    ok = MerkleVerifier.verify_claim(root, args.recipient, args.amount, siblings)
    return ok, [] if ok else [f"Proof does not verify for {args.recipient}"]


def verify_proof_cmd(args: Namespace) -> int:
    """Execute the verify-proof command."""
    if args.manifest:
        path = Path(args.manifest)
        if not path.exists():
            print(f"Error: Manifest not found: {path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR
        try:
            manifest = ClaimsManifest.load(path)
        except ValueError as e:
            print(f"Error loading manifest: {e}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR
        problems = verify_manifest(manifest)
        ok = not problems
        subject = f"manifest {path} ({len(manifest.claims)} claims)"
    else:
        if not (args.root and args.recipient and args.amount is not None):
            print("Error: pass a manifest, or --root, --recipient and --amount", file=sys.stderr)
            return EXIT_RUNTIME_ERROR
        try:
            ok, problems = _verify_single(args)
        except ValueError as e:
            print(f"Error: Malformed digest: {e}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR
        subject = f"claim of {args.amount} for {args.recipient}"

    if args.json:
        print(json.dumps({"ok": ok, "problems": problems}, indent=2))
    else:
        print(f"{'PASS' if ok else 'FAIL'}: {subject}")
        for problem in problems:
            print(f"  - {problem}")

    if ok:
        logger.info("Verification passed")
        return EXIT_SUCCESS
    logger.warning("Verification failed")
    return EXIT_VERIFICATION_FAILED
