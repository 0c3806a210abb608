"""
Objkt Signal Configuration - Thresholds, pool size and upstream settings.

The operator wallet is never embedded in code. It is supplied through
SignalConfig or the OBJKT_SELF_ADDRESS environment variable.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError


DEFAULT_GRAPHQL_URL = "https://data.objkt.com/v3/graphql"


@dataclass(frozen=True)
class AvailabilityThresholds:
    """
    Strict-inequality gate for the availability classifier.

    Available iff min_listed < listed < max_listed, sold > min_sold
    and listed > sold. Boundary values are NOT available.
    """
    min_listed: int = 1
    max_listed: int = 100
    min_sold: int = 2

    def validate(self) -> None:
        if self.min_listed >= self.max_listed:
            raise ConfigurationError(
                f"min_listed ({self.min_listed}) must be below max_listed ({self.max_listed})"
            )
        if self.min_sold < 0:
            raise ConfigurationError(f"min_sold must be >= 0, got {self.min_sold}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "min_listed": self.min_listed,
            "max_listed": self.max_listed,
            "min_sold": self.min_sold,
        }


@dataclass
class SignalConfig:
    """Main configuration for the signal pipeline."""

    # Operator wallet used by the ownership filter
    self_address: Optional[str] = None

    thresholds: AvailabilityThresholds = field(default_factory=AvailabilityThresholds)

    # Worker pool
    concurrency_limit: int = 5
    fetch_timeout_seconds: float = 30.0

    # Discovery
    discovery_limit: int = 30

    # Upstream
    graphql_url: str = DEFAULT_GRAPHQL_URL
    request_timeout_seconds: float = 15.0

    def validate(self) -> None:
        """Raise ConfigurationError on invalid values."""
        self.thresholds.validate()
        if self.concurrency_limit < 1:
            raise ConfigurationError(
                f"concurrency_limit must be >= 1, got {self.concurrency_limit}"
            )
        if self.fetch_timeout_seconds <= 0:
            raise ConfigurationError(
                f"fetch_timeout_seconds must be > 0, got {self.fetch_timeout_seconds}"
            )
        if self.discovery_limit < 1:
            raise ConfigurationError(
                f"discovery_limit must be >= 1, got {self.discovery_limit}"
            )

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "SignalConfig":
        """Build configuration from environment variables (and .env)."""
        load_dotenv(env_file)

        def _int(name: str, default: int) -> int:
            raw = os.getenv(name)
            if raw is None or raw == "":
                return default
            try:
                return int(raw)
            except ValueError:
                raise ConfigurationError(f"{name} must be an integer, got {raw!r}")

        def _float(name: str, default: float) -> float:
            raw = os.getenv(name)
            if raw is None or raw == "":
                return default
            try:
                return float(raw)
            except ValueError:
                raise ConfigurationError(f"{name} must be a number, got {raw!r}")

        defaults = AvailabilityThresholds()
        config = cls(
            self_address=os.getenv("OBJKT_SELF_ADDRESS") or None,
            thresholds=AvailabilityThresholds(
                min_listed=_int("OBJKT_MIN_LISTED", defaults.min_listed),
                max_listed=_int("OBJKT_MAX_LISTED", defaults.max_listed),
                min_sold=_int("OBJKT_MIN_SOLD", defaults.min_sold),
            ),
            concurrency_limit=_int("OBJKT_CONCURRENCY_LIMIT", 5),
            fetch_timeout_seconds=_float("OBJKT_FETCH_TIMEOUT_SECONDS", 30.0),
            discovery_limit=_int("OBJKT_DISCOVERY_LIMIT", 30),
            graphql_url=os.getenv("OBJKT_GRAPHQL_URL") or DEFAULT_GRAPHQL_URL,
        )
        config.validate()
        return config

    def to_dict(self) -> dict[str, Any]:
        return {
            "self_address": self.self_address,
            "thresholds": self.thresholds.to_dict(),
            "concurrency_limit": self.concurrency_limit,
            "fetch_timeout_seconds": self.fetch_timeout_seconds,
            "discovery_limit": self.discovery_limit,
            "graphql_url": self.graphql_url,
            "request_timeout_seconds": self.request_timeout_seconds,
        }


# Default configuration instance
_default_config: Optional[SignalConfig] = None


def get_config() -> SignalConfig:
    """Get the default configuration, loading it from the environment once."""
    global _default_config
    if _default_config is None:
        _default_config = SignalConfig.from_env()
    return _default_config


def set_config(config: SignalConfig) -> None:
    """Set the default configuration."""
    global _default_config
    _default_config = config
