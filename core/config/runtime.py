"""
Runtime Configuration

Central configuration for the ledger service, the settlement oracle and
their HTTP collaborators.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Optional
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


CONFIG_SEARCH_PATHS = (
    Path("rewards.json"),
    Path(".rewards.json"),
    Path.home() / ".config" / "rewards" / "config.json",
)


@dataclass
class LedgerConfig:
    """Configuration for the ledger service."""
    owner: Optional[str] = None
    oracle: Optional[str] = None
    state_path: Optional[str] = None
    tokens: list[str] = field(default_factory=list)


@dataclass
class OracleConfig:
    """Configuration for the settlement oracle."""
    max_retries: int = 3
    retry_delay: float = 1.0
    backoff_factor: float = 2.0
    max_delay: float = 30.0
    require_ended: bool = True
    manifest_dir: str = "manifests"
    poll_interval: float = 60.0


@dataclass
class HttpConfig:
    """Configuration for HTTP clients."""
    timeout: float = 30.0
    ledger_url: Optional[str] = None
    engagement_url: Optional[str] = None


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration.

    Can be loaded from:
    - Environment variables
    - YAML or JSON file
    - Programmatic construction
    """
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    oracle: OracleConfig = field(default_factory=OracleConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        Supported variables:
        - REWARDS_OWNER: Ledger owner identity
        - REWARDS_ORACLE: Initial oracle identity
        - REWARDS_STATE_PATH: Ledger snapshot file
        - REWARDS_TOKENS: Comma-separated reward token addresses
        - REWARDS_LEDGER_URL: Base URL of the ledger API (oracle side)
        - REWARDS_ENGAGEMENT_URL: Base URL of the engagement data service
        - REWARDS_HTTP_TIMEOUT: HTTP timeout in seconds
        - REWARDS_MAX_RETRIES: Oracle submission retries
        - REWARDS_REQUIRE_ENDED: Only settle ended campaigns (true/false)
        - REWARDS_MANIFEST_DIR: Where claim manifests are written
        - REWARDS_LOG_LEVEL: Logging level name
        """
        overrides: dict[str, Any] = {}

        # Ledger settings
        if os.getenv("REWARDS_OWNER"):
            overrides.setdefault("ledger", {})["owner"] = os.getenv("REWARDS_OWNER")
        if os.getenv("REWARDS_ORACLE"):
            overrides.setdefault("ledger", {})["oracle"] = os.getenv("REWARDS_ORACLE")
        if os.getenv("REWARDS_STATE_PATH"):
            overrides.setdefault("ledger", {})["state_path"] = os.getenv("REWARDS_STATE_PATH")
        if os.getenv("REWARDS_TOKENS"):
            overrides.setdefault("ledger", {})["tokens"] = [
                t.strip() for t in os.getenv("REWARDS_TOKENS").split(",") if t.strip()
            ]

        # HTTP settings
        if os.getenv("REWARDS_LEDGER_URL"):
            overrides.setdefault("http", {})["ledger_url"] = os.getenv("REWARDS_LEDGER_URL")
        if os.getenv("REWARDS_ENGAGEMENT_URL"):
            overrides.setdefault("http", {})["engagement_url"] = os.getenv("REWARDS_ENGAGEMENT_URL")
        if os.getenv("REWARDS_HTTP_TIMEOUT"):
            overrides.setdefault("http", {})["timeout"] = float(os.getenv("REWARDS_HTTP_TIMEOUT"))

        # Oracle settings
        if os.getenv("REWARDS_MAX_RETRIES"):
            overrides.setdefault("oracle", {})["max_retries"] = int(os.getenv("REWARDS_MAX_RETRIES"))
        if os.getenv("REWARDS_REQUIRE_ENDED"):
            overrides.setdefault("oracle", {})["require_ended"] = (
                os.getenv("REWARDS_REQUIRE_ENDED", "true").lower() == "true"
            )
        if os.getenv("REWARDS_MANIFEST_DIR"):
            overrides.setdefault("oracle", {})["manifest_dir"] = os.getenv("REWARDS_MANIFEST_DIR")

        if os.getenv("REWARDS_LOG_LEVEL"):
            overrides["log_level"] = os.getenv("REWARDS_LOG_LEVEL").upper()

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_file(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a JSON or YAML file, by extension."""
        path = Path(path)
        if path.suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        ledger_data = data.get("ledger", {})
        oracle_data = data.get("oracle", {})
        http_data = data.get("http", {})

        ledger = LedgerConfig(**ledger_data) if ledger_data else LedgerConfig()
        oracle = OracleConfig(**oracle_data) if oracle_data else OracleConfig()
        http = HttpConfig(**http_data) if http_data else HttpConfig()

        return cls(
            ledger=ledger,
            oracle=oracle,
            http=http,
            log_level=str(data.get("log_level", "INFO")).upper(),
            extra=data.get("extra", {}),
        )

    @classmethod
    def load(cls, path: Optional[str | Path] = None) -> "RuntimeConfig":
        """
        Load from path, or the first existing file in CONFIG_SEARCH_PATHS,
        then overlay environment variables.
        """
        if path is not None:
            return cls.from_file(path).with_env_overrides()
        for candidate in CONFIG_SEARCH_PATHS:
            if candidate.exists():
                return cls.from_file(candidate).with_env_overrides()
        return cls.from_env()

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        import copy
        new_config = copy.deepcopy(self)

        for section in ("ledger", "oracle", "http"):
            for key, value in overrides.get(section, {}).items():
                setattr(getattr(new_config, section), key, value)

        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "ledger": {
                "owner": self.ledger.owner,
                "oracle": self.ledger.oracle,
                "state_path": self.ledger.state_path,
                "tokens": list(self.ledger.tokens),
            },
            "oracle": {
                "max_retries": self.oracle.max_retries,
                "retry_delay": self.oracle.retry_delay,
                "backoff_factor": self.oracle.backoff_factor,
                "max_delay": self.oracle.max_delay,
                "require_ended": self.oracle.require_ended,
                "manifest_dir": self.oracle.manifest_dir,
                "poll_interval": self.oracle.poll_interval,
            },
            "http": {
                "timeout": self.http.timeout,
                "ledger_url": self.http.ledger_url,
                "engagement_url": self.http.engagement_url,
            },
            "log_level": self.log_level,
            "extra": self.extra,
        }


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: Optional[RuntimeConfig]) -> None:
    """Set the default runtime configuration (None resets to env on next get)."""
    global _default_config
    _default_config = config
