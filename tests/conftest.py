"""
Pytest configuration and shared fixtures for the rewards ledger tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

make_token = _common.make_token
make_ledger = _common.make_ledger
create_funded_campaign = _common.create_funded_campaign
make_reward_tree = _common.make_reward_tree

from ledger.clock import FrozenClock


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def clock():
    """Frozen clock at FrozenClock.DEFAULT_TIME."""
    return FrozenClock()


@pytest.fixture
def token():
    """Token with BRAND and OTHER_BRAND funded."""
    return make_token()


@pytest.fixture
def ledger(clock, token):
    """Ledger owned by OWNER with ORACLE installed."""
    return make_ledger(clock=clock, token=token)


@pytest.fixture
def campaign_id(ledger, token):
    """A funded campaign with budget 1000 ending one day from now."""
    return create_funded_campaign(ledger, token)


@pytest.fixture
def reward_tree():
    """RewardTree over the 100/150/75 scenario allocations."""
    return make_reward_tree()


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "scenario: end-to-end settlement scenarios"
    )
