"""
Reward Ledger

Authoritative campaign store, settlement authority and claim verifier.
"""

from ledger.authority import SettlementAuthority
from ledger.campaigns import CampaignLedger
from ledger.claims import ClaimVerifier
from ledger.clock import Clock, FrozenClock, SystemClock
from ledger.events import EventLog
from ledger.service import RewardLedger, derive_custody_address
from ledger.store import LedgerSnapshot, LedgerStore
from ledger.token import FungibleToken, InMemoryToken, TokenRegistry, TokenState

__all__ = [
    "RewardLedger",
    "derive_custody_address",
    "CampaignLedger",
    "SettlementAuthority",
    "ClaimVerifier",
    "LedgerStore",
    "LedgerSnapshot",
    "EventLog",
    "Clock",
    "SystemClock",
    "FrozenClock",
    "FungibleToken",
    "InMemoryToken",
    "TokenRegistry",
    "TokenState",
]
