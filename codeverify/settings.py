"""
Runtime configuration from environment variables.

- CODEVERIFY_RPC_URL: Endpoint override applied to every network
- CODEVERIFY_NETWORK_PASSPHRASE: Stellar passphrase override
- CODEVERIFY_NETWORKS_FILE: JSON file declaring custom networks
- CODEVERIFY_RPC_TIMEOUT: Remote fetch timeout in seconds (default: 8)
- CODEVERIFY_LOG_LEVEL: Logging level (default: WARNING)

Command-line options take precedence over these values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from codeverify.errors import ConfigurationError

PREFIX = "CODEVERIFY_"
DEFAULT_TIMEOUT = 8.0


def _opt(name: str, default: str) -> str:
    """Get optional environment variable with default."""
    return os.getenv(PREFIX + name, default)


def _opt_float(name: str, default: float) -> float:
    """Parse positive float environment variable."""
    v = os.getenv(PREFIX + name)
    if v is None or not v.strip():
        return default
    try:
        f = float(v)
    except ValueError:
        raise ConfigurationError(f"{PREFIX + name} must be a number, got {v!r}")
    if f <= 0:
        raise ConfigurationError(f"{PREFIX + name} must be positive, got {v!r}")
    return f


@dataclass(frozen=True)
class Settings:
    """Environment-level defaults for a verification run."""

    RPC_URL: str = ""
    NETWORK_PASSPHRASE: str = ""
    NETWORKS_FILE: str = ""
    RPC_TIMEOUT: float = DEFAULT_TIMEOUT
    LOG_LEVEL: str = "WARNING"

    @staticmethod
    def load() -> Settings:
        """Load settings from environment variables."""
        return Settings(
            RPC_URL=_opt("RPC_URL", ""),
            NETWORK_PASSPHRASE=_opt("NETWORK_PASSPHRASE", ""),
            NETWORKS_FILE=_opt("NETWORKS_FILE", ""),
            RPC_TIMEOUT=_opt_float("RPC_TIMEOUT", DEFAULT_TIMEOUT),
            LOG_LEVEL=_opt("LOG_LEVEL", "WARNING").upper(),
        )
