"""Core configuration for the opcache reset tasks.

Framework option maps use the camelCase names of the deployment tool
(`baseUrl`, `scriptIdentifier`, `retry`, ...). They are parsed once into an
immutable `TriggerConfig`; waits are given in milliseconds and stored in
microseconds.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

SCRIPT_FILENAME_PREFIX = "surf-opcache-reset-"
MAX_RETRY_COUNT = 10
DEFAULT_RETRY_WAIT_MS = 1000
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0

# Identifiers end up in a file name and a URL path segment.
SCRIPT_IDENTIFIER_PATTERN = r"^[A-Za-z0-9_-]+$"


class ConfigurationError(ValueError):
    """Raised when a task is given missing or invalid options."""


def script_filename(script_identifier: str) -> str:
    """Return the file name of the reset script for an identifier."""

    return f"{SCRIPT_FILENAME_PREFIX}{script_identifier}.php"


def validate_script_identifier(script_identifier: str) -> str:
    """Return the identifier, or raise `ConfigurationError` if it is not a plain token."""

    if not re.fullmatch(SCRIPT_IDENTIFIER_PATTERN, script_identifier):
        raise ConfigurationError(
            f"Invalid script identifier {script_identifier!r}: only letters, digits, "
            '"_" and "-" are allowed'
        )
    return script_identifier


def _as_bool(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _as_int(value: object) -> int:
    """Integer option value; numeric strings such as "2.5" are truncated."""

    if isinstance(value, str):
        return int(float(value.strip()))
    return int(value)  # type: ignore[call-overload]


def _split_header_lines(value: object) -> dict[str, str]:
    if isinstance(value, str):
        lines = value.split("\r\n") if "\r\n" in value else value.split("\n")
    elif isinstance(value, list | tuple):
        lines = [str(v) for v in value]
    else:
        return {}

    headers: dict[str, str] = {}
    for line in lines:
        name, sep, val = line.partition(":")
        if sep and name.strip():
            headers[name.strip()] = val.strip()
    return headers


class TransportOptions(BaseModel):
    """Settings handed to the HTTP layer (TLS, proxy, headers, timeout)."""

    model_config = ConfigDict(frozen=True)

    verify: bool | str = Field(
        default=True,
        description="Verify TLS certificates, or a path to a CA bundle",
    )
    cert: str | tuple[str, str] | None = Field(
        default=None,
        description="Client certificate path, or (certificate, key) paths",
    )
    proxies: dict[str, str] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float | None = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS,
        gt=0,
        description="Per-request timeout in seconds (None disables it)",
    )

    @field_validator("headers")
    @classmethod
    def _headers_encodable(cls, value: dict[str, str]) -> dict[str, str]:
        # http.client sends header lines as latin-1.
        for name, val in value.items():
            try:
                name.encode("latin-1")
                val.encode("latin-1")
            except UnicodeEncodeError as e:
                raise ValueError(f"Header {name!r} cannot be encoded as latin-1") from e
        return value

    @classmethod
    def from_stream_context(cls, context: Mapping[str, Any]) -> TransportOptions:
        """Translate a PHP `stream_context` style mapping.

        Only the `ssl` and `http` wrappers are understood; unknown keys are ignored.
        """

        data: dict[str, Any] = {}

        ssl = context.get("ssl")
        if isinstance(ssl, Mapping):
            cafile = ssl.get("cafile")
            if isinstance(cafile, str) and cafile:
                data["verify"] = cafile
            for key in ("verify_peer", "verify_peer_name"):
                if key in ssl and not _as_bool(ssl[key]):
                    data["verify"] = False

            local_cert = ssl.get("local_cert")
            if isinstance(local_cert, str) and local_cert:
                local_pk = ssl.get("local_pk")
                data["cert"] = (local_cert, local_pk) if isinstance(local_pk, str) else local_cert

        http = context.get("http")
        if isinstance(http, Mapping):
            proxy = http.get("proxy")
            if isinstance(proxy, str) and proxy:
                if proxy.startswith("tcp://"):
                    proxy = "http://" + proxy[len("tcp://") :]
                data["proxies"] = {"http": proxy, "https": proxy}

            headers = _split_header_lines(http.get("header"))
            user_agent = http.get("user_agent")
            if isinstance(user_agent, str) and user_agent:
                headers["User-Agent"] = user_agent
            if headers:
                data["headers"] = headers

            if http.get("timeout") is not None:
                data["timeout"] = float(http["timeout"])

        return cls(**data)

    def merged_with(self, overrides: Mapping[str, Any]) -> TransportOptions:
        """Return a copy with native option overrides applied."""

        return type(self).model_validate({**self.model_dump(), **dict(overrides)})


class TriggerConfig(BaseModel):
    """Immutable configuration for one opcache reset invocation."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(min_length=1, description="Root URL of the deployed reset script")
    script_identifier: str = Field(
        min_length=1,
        pattern=SCRIPT_IDENTIFIER_PATTERN,
        description="Identifier passed on by the create-script task",
    )
    retry_count: int = Field(default=0, description="Retries after the first attempt")
    retry_wait_micros: int = Field(default=DEFAULT_RETRY_WAIT_MS * 1000, ge=0)
    initial_wait_micros: int = Field(default=0, ge=0)
    transport: TransportOptions = Field(default_factory=TransportOptions)
    fail_on_exhausted: bool = Field(
        default=False,
        description="Report a task failure when no attempt returned success",
    )

    @field_validator("base_url", "script_identifier", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("retry_count")
    @classmethod
    def _clamp_retry_count(cls, value: int) -> int:
        return max(0, min(MAX_RETRY_COUNT, value))

    @property
    def script_url(self) -> str:
        """Full URL of the reset script."""

        return f"{self.base_url.rstrip('/')}/{script_filename(self.script_identifier)}"

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> TriggerConfig:
        """Build a config from a deployment option map.

        Raises:
            ConfigurationError: If a required option is missing or a value is invalid.
        """

        base_url = options.get("baseUrl")
        if base_url is None or not str(base_url).strip():
            raise ConfigurationError('No "baseUrl" option provided for WebOpcacheResetExecuteTask')

        script_identifier = options.get("scriptIdentifier")
        if script_identifier is None or not str(script_identifier).strip():
            raise ConfigurationError(
                'No "scriptIdentifier" option provided for WebOpcacheResetExecuteTask, make sure '
                'to execute "WebOpcacheResetCreateScriptTask" before this task or pass one '
                "explicitly"
            )

        data: dict[str, Any] = {
            "base_url": str(base_url),
            "script_identifier": validate_script_identifier(str(script_identifier).strip()),
        }

        try:
            if options.get("retry") is not None:
                data["retry_count"] = _as_int(options["retry"])
            if options.get("retryWait") is not None:
                data["retry_wait_micros"] = _as_int(options["retryWait"]) * 1000
            if options.get("initialWait") is not None:
                data["initial_wait_micros"] = _as_int(options["initialWait"]) * 1000
            if options.get("failOnExhausted") is not None:
                data["fail_on_exhausted"] = _as_bool(options["failOnExhausted"])

            transport = TransportOptions()
            stream_context = options.get("stream_context")
            if isinstance(stream_context, Mapping):
                transport = TransportOptions.from_stream_context(stream_context)
            native = options.get("transportOptions")
            if isinstance(native, Mapping):
                transport = transport.merged_with(native)
            data["transport"] = transport

            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid opcache reset options: {e}") from e
        except (TypeError, ValueError, OverflowError) as e:
            raise ConfigurationError(f"Invalid opcache reset option value: {e}") from e
