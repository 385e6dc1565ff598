"""Settings for the opcache reset CLI.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Command line arguments take precedence over these values.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from php_opcache_reset.core.config import DEFAULT_REQUEST_TIMEOUT_SECONDS, DEFAULT_RETRY_WAIT_MS


class ResetSettings(BaseSettings):
    """Settings for the opcache reset tasks.

    Environment variables:
    - LOG_LEVEL                       (optional)
    - OPCACHE_RESET_BASE_URL          (optional, required by `execute` unless passed)
    - OPCACHE_RESET_RETRY             (optional)
    - OPCACHE_RESET_RETRY_WAIT_MS     (optional)
    - OPCACHE_RESET_INITIAL_WAIT_MS   (optional)
    - OPCACHE_RESET_TIMEOUT           (optional, seconds)
    - OPCACHE_RESET_VERIFY_TLS        (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `ResetSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )
    base_url: str = Field(
        default="",
        validation_alias="OPCACHE_RESET_BASE_URL",
        description="Base URL under which the reset script is reachable",
    )
    retry: int = Field(
        default=0,
        validation_alias="OPCACHE_RESET_RETRY",
        description="Retries after the first attempt (clamped to 10)",
    )
    retry_wait_ms: int = Field(
        default=DEFAULT_RETRY_WAIT_MS,
        ge=0,
        validation_alias="OPCACHE_RESET_RETRY_WAIT_MS",
        description="Wait between attempts in milliseconds",
    )
    initial_wait_ms: int = Field(
        default=0,
        ge=0,
        validation_alias="OPCACHE_RESET_INITIAL_WAIT_MS",
        description="Wait before the first attempt in milliseconds",
    )
    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS,
        gt=0,
        validation_alias="OPCACHE_RESET_TIMEOUT",
        description="Per-request timeout in seconds",
    )
    verify_tls: bool = Field(
        default=True,
        validation_alias="OPCACHE_RESET_VERIFY_TLS",
        description="Verify TLS certificates of the web server",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    def to_options(self) -> dict[str, Any]:
        """Return the settings as a task option map."""

        options: dict[str, Any] = {
            "retry": self.retry,
            "retryWait": self.retry_wait_ms,
            "initialWait": self.initial_wait_ms,
            "transportOptions": {"timeout": self.request_timeout, "verify": self.verify_tls},
        }
        if self.base_url:
            options["baseUrl"] = self.base_url
        return options
