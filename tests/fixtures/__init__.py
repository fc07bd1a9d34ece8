"""
Test fixtures package for the rewards ledger tests.

- common.py: principals, token/ledger factories, scenario allocations

Usage:
    from fixtures.common import make_ledger, create_funded_campaign

    def test_something():
        ledger = make_ledger()
"""

from .common import (
    create_funded_campaign,
    make_ledger,
    make_reward_tree,
    make_token,
    proof_hex,
)

__all__ = [
    "make_token",
    "make_ledger",
    "create_funded_campaign",
    "make_reward_tree",
    "proof_hex",
]
