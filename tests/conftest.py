"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from types import TracebackType

import pytest

from php_opcache_reset.core.config import TransportOptions, TriggerConfig
from php_opcache_reset.tasks.http.client import RemoteCallFailure


class FakeResetScriptClient:
    """Replays a scripted sequence of bodies (or failures) for `fetch`."""

    def __init__(self, responses: Sequence[str | RemoteCallFailure]) -> None:
        self._responses = list(responses)
        self.requested: list[str] = []
        self.transport: TransportOptions | None = None
        self.closed = False

    def fetch(self, url: str) -> str:
        self.requested.append(url)
        response = self._responses.pop(0)
        if isinstance(response, RemoteCallFailure):
            raise response
        return response

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> FakeResetScriptClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def factory(self, transport: TransportOptions) -> FakeResetScriptClient:
        self.transport = transport
        return self


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def trigger_config() -> TriggerConfig:
    """Provide a config with two retries, 250 ms apart."""
    return TriggerConfig(
        base_url="http://host/deploy/",
        script_identifier="abc123",
        retry_count=2,
        retry_wait_micros=250_000,
    )


@pytest.fixture
def make_client() -> type[FakeResetScriptClient]:
    """Provide the fake client class; instantiate it with the responses to replay."""
    return FakeResetScriptClient
