"""
Rewards CLI

Command-line interface for the reward ledger and settlement oracle.

Usage:
    python -m rewards_cli tree allocations.json --campaign-id 1 --out manifest.json
    python -m rewards_cli verify-proof manifest.json
    python -m rewards_cli settle --campaign-id 1 --engagement-dir ./engagement
    python -m rewards_cli status 1
"""

__version__ = "0.1.0"
