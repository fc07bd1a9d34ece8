"""
Common test fixtures shared by all modules.

Provides well-known principals and factory functions for:
- InMemoryToken with a funded brand
- RewardLedger wired to a FrozenClock
- Funded campaigns
- Allocation sets and their RewardTree
"""

from typing import Optional

from core.merkle import RewardTree
from ledger.clock import FrozenClock
from ledger.service import RewardLedger
from ledger.token import InMemoryToken, TokenRegistry


# =============================================================================
# Principals
# =============================================================================

OWNER = "0x" + "0a" * 20
ORACLE = "0x" + "0b" * 20
BRAND = "0x" + "0c" * 20
OTHER_BRAND = "0x" + "0d" * 20
STRANGER = "0x" + "0e" * 20

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20
DAVE = "0x" + "d4" * 20

TOKEN_ADDRESS = "0x" + "70" * 20
CUSTODY = "0x" + "cc" * 20

BRAND_FUNDS = 1_000_000
ONE_DAY = 86_400

# Allocation used by the reference settlement scenario
SCENARIO_ALLOCATIONS = {ALICE: 100, BOB: 150, CAROL: 75}


# =============================================================================
# Token / Ledger Factories
# =============================================================================

def make_token(
    address: str = TOKEN_ADDRESS,
    funded: Optional[dict[str, int]] = None,
) -> InMemoryToken:
    """Create an InMemoryToken, minting BRAND_FUNDS to BRAND and OTHER_BRAND by default."""
    token = InMemoryToken(address)
    for holder, amount in (funded or {BRAND: BRAND_FUNDS, OTHER_BRAND: BRAND_FUNDS}).items():
        token.mint(holder, amount)
    return token


def make_ledger(
    clock: Optional[FrozenClock] = None,
    token: Optional[InMemoryToken] = None,
    oracle: Optional[str] = ORACLE,
) -> RewardLedger:
    """
    Create a RewardLedger owned by OWNER with custody at CUSTODY.

    The oracle is installed through set_oracle so the owner path is used.
    """
    token = token or make_token()
    ledger = RewardLedger(
        OWNER,
        tokens=TokenRegistry([token]),
        clock=clock or FrozenClock(),
        address=CUSTODY,
    )
    if oracle is not None:
        ledger.set_oracle(OWNER, oracle)
    return ledger


def create_funded_campaign(
    ledger: RewardLedger,
    token: InMemoryToken,
    budget: int = 1000,
    brand: str = BRAND,
    duration: int = ONE_DAY,
) -> int:
    """Approve budget for the ledger and create a campaign ending after duration seconds."""
    token.approve(brand, ledger.address, budget)
    return ledger.create_campaign(brand, token.address, budget, ledger.clock.now() + duration)


def make_reward_tree(allocations: Optional[dict[str, int]] = None) -> RewardTree:
    return RewardTree(allocations or SCENARIO_ALLOCATIONS)


def proof_hex(tree: RewardTree, recipient: str) -> list[str]:
    return ["0x" + p.hex() for p in tree.proof_for(recipient)]
