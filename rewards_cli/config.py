"""
CLI Configuration

The CLI reads the same RuntimeConfig as the API and the oracle: a config
file (explicit, or the first of the default locations) overlaid with
REWARDS_* environment variables.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.config.runtime import CONFIG_SEARCH_PATHS, RuntimeConfig


# Environment variable prefix
ENV_PREFIX = "REWARDS_"


def load_config(config_path: Path | None = None) -> RuntimeConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings. An explicit config_path
    that does not exist is an error.
    """
    if config_path is not None and not Path(config_path).exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return RuntimeConfig.load(config_path)


def default_config_paths() -> list[Path]:
    return list(CONFIG_SEARCH_PATHS)


def get_default_config_template() -> str:
    """Get a template configuration file."""
    template = RuntimeConfig().to_dict()
    template["ledger"].update({
        "owner": "0x0000000000000000000000000000000000000001",
        "oracle": "0x0000000000000000000000000000000000000002",
        "state_path": "ledger-state.json",
    })
    template["http"].update({
        "ledger_url": "http://localhost:8000",
        "engagement_url": "http://localhost:8001",
    })
    return json.dumps(template, indent=2) + "\n"
