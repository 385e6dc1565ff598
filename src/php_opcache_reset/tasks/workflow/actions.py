from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from php_opcache_reset.core.config import ConfigurationError, TriggerConfig
from php_opcache_reset.tasks.php.script import generate_script_identifier, write_reset_script
from php_opcache_reset.tasks.php.trigger import ResetTrigger
from php_opcache_reset.tasks.workflow.state_machine import TriggerState

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TaskResult:
    ok: bool
    message: str
    details: dict[str, object] | None = None


class Task(Protocol):
    """A single deployment step driven by an option map."""

    def execute(self, options: Mapping[str, Any]) -> TaskResult: ...


@dataclass(frozen=True, slots=True)
class WebOpcacheResetCreateScriptTask(Task):
    """Place the reset script into a web directory.

    Options:
      - scriptBasePath (required): directory served under the execute task's baseUrl
      - scriptIdentifier (optional): generated when not given

    The identifier is returned in ``details["scriptIdentifier"]`` for the execute task.
    """

    def execute(self, options: Mapping[str, Any]) -> TaskResult:
        base_path = options.get("scriptBasePath")
        if not base_path:
            return TaskResult(
                ok=False,
                message='No "scriptBasePath" option provided for WebOpcacheResetCreateScriptTask',
            )

        script_identifier = str(options.get("scriptIdentifier") or generate_script_identifier())
        try:
            path = write_reset_script(base_path=Path(base_path), script_identifier=script_identifier)
        except ConfigurationError as e:
            return TaskResult(ok=False, message=str(e), details={"state": "configuration_error"})
        except OSError as e:
            return TaskResult(ok=False, message=str(e), details={"path": str(base_path)})

        return TaskResult(
            ok=True,
            message="Created",
            details={"scriptIdentifier": script_identifier, "path": str(path)},
        )


@dataclass(frozen=True, slots=True)
class WebOpcacheResetExecuteTask(Task):
    """Reset the PHP opcache by requesting the prepared script.

    Running out of retries is reported as ``ok=True`` unless the ``failOnExhausted``
    option is set.
    """

    trigger: ResetTrigger = field(default_factory=ResetTrigger)
    log: logging.Logger | logging.LoggerAdapter = logger

    def execute(
        self,
        options: Mapping[str, Any],
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> TaskResult:
        """Run the reset; ``logger`` overrides the task's ``log`` for this call."""

        try:
            config = TriggerConfig.from_options(options)
            outcome = self.trigger.run(config, logger if logger is not None else self.log)
        except ConfigurationError as e:
            return TaskResult(ok=False, message=str(e), details={"state": "configuration_error"})

        details: dict[str, object] = {
            "url": outcome.url,
            "state": outcome.state.value,
            "attempts": len(outcome.attempts),
        }
        if outcome.state is TriggerState.SUCCESS:
            return TaskResult(ok=True, message="Opcache reset", details=details)
        if outcome.state is TriggerState.CANCELLED:
            return TaskResult(ok=False, message="Cancelled", details=details)

        if outcome.attempts:
            details["last_result"] = outcome.attempts[-1].observed[:200]
        return TaskResult(
            ok=not config.fail_on_exhausted,
            message="Reset script did not return expected result",
            details=details,
        )
