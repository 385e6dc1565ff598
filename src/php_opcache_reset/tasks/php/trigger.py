"""Trigger a PHP opcache reset by calling a deployed reset script over HTTP.

Semantics:
    - the script answers with the literal body ``success`` once the cache is reset
    - any other body, a transport error or a non-2xx status counts as a failed attempt
    - failed attempts are retried up to ``retry_count`` times, waiting in between
    - running out of attempts is logged but is not an error (see `TriggerOutcome.state`)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from php_opcache_reset.core.config import ConfigurationError, TransportOptions, TriggerConfig
from php_opcache_reset.tasks.http.client import RemoteCallFailure, ResetScriptClient
from php_opcache_reset.tasks.workflow.state_machine import TriggerState, TriggerStateMachine

EXPECTED_BODY = "success"

ClientFactory = Callable[[TransportOptions], ResetScriptClient]
Logger = logging.Logger | logging.LoggerAdapter


@dataclass(frozen=True, slots=True)
class AttemptResult:
    """Outcome of a single request to the reset script."""

    attempt: int
    ok: bool
    body: str | None = None
    error: str | None = None

    @property
    def observed(self) -> str:
        """What was seen instead of the success marker."""

        if self.error is not None:
            return self.error
        return self.body or ""


@dataclass(frozen=True, slots=True)
class TriggerOutcome:
    url: str
    state: TriggerState
    attempts: list[AttemptResult]
    history: list[TriggerState]

    @property
    def succeeded(self) -> bool:
        return self.state is TriggerState.SUCCESS


class ResetTrigger:
    """Call the reset script until it reports success or the retries run out.

    Waits go through ``sleep`` (seconds). When ``cancel_event`` is given, waits use
    ``cancel_event.wait`` instead and a set event ends the run as cancelled.
    """

    def __init__(
        self,
        *,
        client_factory: ClientFactory = ResetScriptClient,
        sleep: Callable[[float], None] = time.sleep,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._client_factory = client_factory
        self._sleep = sleep
        self._cancel_event = cancel_event

    def _wait(self, micros: int) -> bool:
        """Block for ``micros`` microseconds. Returns False when cancelled."""

        seconds = micros / 1_000_000
        if self._cancel_event is not None:
            return not self._cancel_event.wait(seconds)
        self._sleep(seconds)
        return True

    def _cancelled(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()

    def run(self, config: TriggerConfig, logger: Logger) -> TriggerOutcome:
        """Execute the reset.

        Raises:
            ConfigurationError: If the base URL or script identifier is empty. No request is made.
        """

        if not config.base_url.strip():
            raise ConfigurationError("No base URL configured for the opcache reset script")
        if not config.script_identifier.strip():
            raise ConfigurationError("No script identifier configured for the opcache reset script")

        url = config.script_url
        machine = TriggerStateMachine()
        attempts: list[AttemptResult] = []

        def _outcome() -> TriggerOutcome:
            return TriggerOutcome(
                url=url,
                state=machine.state,
                attempts=attempts,
                history=list(machine.history),
            )

        if config.initial_wait_micros > 0:
            machine.transition(TriggerState.WAITING)
            logger.info(
                "Waiting before executing PHP opcache reset script",
                extra={"url": url, "wait_ms": config.initial_wait_micros // 1000},
            )
            if not self._wait(config.initial_wait_micros):
                machine.transition(TriggerState.CANCELLED)
                logger.warning("PHP opcache reset cancelled", extra={"url": url})
                return _outcome()

        with self._client_factory(config.transport) as client:
            for attempt in range(config.retry_count + 1):
                if self._cancelled():
                    machine.transition(TriggerState.CANCELLED)
                    logger.warning("PHP opcache reset cancelled", extra={"url": url})
                    return _outcome()
                machine.transition(TriggerState.ATTEMPTING)

                result = self._attempt(client, url, attempt)
                attempts.append(result)
                if result.ok:
                    machine.transition(TriggerState.SUCCESS)
                    logger.info(
                        "PHP opcache reset script executed",
                        extra={"url": url, "attempts": len(attempts)},
                    )
                    return _outcome()

                logger.warning(
                    f'Executing PHP opcache reset script at "{url}" did not return expected result',
                    extra={"url": url, "result": result.observed[:200], "attempt": attempt},
                )

                if attempt < config.retry_count:
                    machine.transition(TriggerState.WAITING)
                    logger.warning(
                        f'Will try again in "{config.retry_wait_micros // 1000}" ms',
                        extra={"url": url, "wait_ms": config.retry_wait_micros // 1000},
                    )
                    if not self._wait(config.retry_wait_micros):
                        machine.transition(TriggerState.CANCELLED)
                        logger.warning("PHP opcache reset cancelled", extra={"url": url})
                        return _outcome()

        machine.transition(TriggerState.EXHAUSTED)
        logger.warning(
            "PHP opcache reset script never returned expected result",
            extra={"url": url, "attempts": len(attempts)},
        )
        return _outcome()

    @staticmethod
    def _attempt(client: ResetScriptClient, url: str, attempt: int) -> AttemptResult:
        try:
            body = client.fetch(url)
        except RemoteCallFailure as e:
            return AttemptResult(attempt=attempt, ok=False, error=e.reason)
        return AttemptResult(attempt=attempt, ok=body == EXPECTED_BODY, body=body)
