"""Core package initialization."""

from php_opcache_reset.core.config import (
    ConfigurationError,
    TransportOptions,
    TriggerConfig,
)

__all__ = [
    "ConfigurationError",
    "TransportOptions",
    "TriggerConfig",
]
