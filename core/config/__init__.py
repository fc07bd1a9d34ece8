"""
Runtime Configuration Module

Provides configuration loading and management for the rewards ledger and oracle.
"""

from .runtime import (
    CONFIG_SEARCH_PATHS,
    HttpConfig,
    LedgerConfig,
    OracleConfig,
    RuntimeConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "CONFIG_SEARCH_PATHS",
    "RuntimeConfig",
    "LedgerConfig",
    "OracleConfig",
    "HttpConfig",
    "get_default_config",
    "set_default_config",
]
