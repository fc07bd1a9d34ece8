"""
API Dependencies

Dependency injection for the API: the process-wide ledger and the
calling principal.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from fastapi import Header, Request

from core.config.runtime import RuntimeConfig
from core.crypto.addresses import normalize_address
from core.schemas.errors import AuthorizationError
from ledger.service import RewardLedger
from ledger.token import InMemoryToken, TokenRegistry

logger = logging.getLogger(__name__)


def _load_runtime_config() -> RuntimeConfig:
    """Load RuntimeConfig from the first config file found, then overlay env vars.

    Search order for config file:
      1. ./rewards.json
      2. ./.rewards.json
      3. ~/.config/rewards/config.json
    """
    return RuntimeConfig.load()


def token_state_path(state_path: Union[str, Path], token_address: str) -> Path:
    """ledger.json -> ledger.<token address>.json in the same directory."""
    path = Path(state_path)
    return path.with_name(f"{path.stem}.{normalize_address(token_address)}{path.suffix or '.json'}")


def build_ledger(config: Optional[RuntimeConfig] = None) -> RewardLedger:
    """
    Build the ledger described by config.

    Reward tokens listed in the config are served by in-process
    InMemoryToken instances; deployments backed by a real token system
    pass their own RewardLedger to create_app instead. With a state_path,
    each token keeps its balances in a file beside the ledger state so
    escrow survives a restart.

    Raises:
        RuntimeError: If no owner is configured
    """
    config = config or _load_runtime_config()
    if not config.ledger.owner:
        raise RuntimeError("Ledger owner not configured (set REWARDS_OWNER or ledger.owner)")

    if config.ledger.state_path:
        tokens = TokenRegistry([
            InMemoryToken.open(address, token_state_path(config.ledger.state_path, address))
            for address in config.ledger.tokens
        ])
        ledger = RewardLedger.open(
            config.ledger.owner,
            config.ledger.state_path,
            oracle=config.ledger.oracle,
            tokens=tokens,
        )
    else:
        tokens = TokenRegistry([InMemoryToken(address) for address in config.ledger.tokens])
        ledger = RewardLedger(config.ledger.owner, oracle=config.ledger.oracle, tokens=tokens)

    logger.info(
        f"Ledger ready: owner={ledger.owner()} oracle={ledger.oracle()} "
        f"campaigns={ledger.campaign_count()} tokens={len(config.ledger.tokens)}"
    )
    return ledger


def get_ledger(request: Request) -> RewardLedger:
    """Return the app's ledger, building it from config on first use."""
    ledger = getattr(request.app.state, "ledger", None)
    if ledger is None:
        ledger = build_ledger()
        request.app.state.ledger = ledger
    return ledger


def get_caller(x_caller: Optional[str] = Header(default=None, alias="X-Caller")) -> str:
    """
    Identity of the calling principal.

    Raises:
        AuthorizationError: If the header is missing
    """
    if not x_caller:
        raise AuthorizationError("Missing X-Caller header", required="caller")
    return x_caller
