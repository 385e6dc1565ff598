"""Unit tests for the create-script and execute tasks."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from php_opcache_reset.tasks.php.trigger import ResetTrigger
from php_opcache_reset.tasks.workflow.actions import (
    WebOpcacheResetCreateScriptTask,
    WebOpcacheResetExecuteTask,
)


def _execute_task(client, sleep) -> WebOpcacheResetExecuteTask:
    return WebOpcacheResetExecuteTask(
        trigger=ResetTrigger(client_factory=client.factory, sleep=sleep)
    )


def test_create_script_returns_identifier(tmp_path: Path) -> None:
    result = WebOpcacheResetCreateScriptTask().execute({"scriptBasePath": str(tmp_path)})

    assert result.ok
    assert result.details is not None
    identifier = result.details["scriptIdentifier"]
    assert (tmp_path / f"surf-opcache-reset-{identifier}.php").exists()


def test_create_script_keeps_given_identifier(tmp_path: Path) -> None:
    result = WebOpcacheResetCreateScriptTask().execute(
        {"scriptBasePath": str(tmp_path), "scriptIdentifier": "fixed"}
    )

    assert result.ok
    assert result.details == {
        "scriptIdentifier": "fixed",
        "path": str(tmp_path / "surf-opcache-reset-fixed.php"),
    }


def test_create_script_without_base_path_fails() -> None:
    result = WebOpcacheResetCreateScriptTask().execute({})

    assert not result.ok
    assert "scriptBasePath" in result.message


def test_create_script_with_missing_directory_fails(tmp_path: Path) -> None:
    result = WebOpcacheResetCreateScriptTask().execute({"scriptBasePath": str(tmp_path / "nope")})

    assert not result.ok


def test_execute_success(make_client, sleep) -> None:
    client = make_client(["success"])

    result = _execute_task(client, sleep).execute(
        {"baseUrl": "http://host/deploy/", "scriptIdentifier": "abc123"}
    )

    assert result.ok
    assert result.details == {
        "url": "http://host/deploy/surf-opcache-reset-abc123.php",
        "state": "success",
        "attempts": 1,
    }


def test_execute_missing_option_makes_no_request(make_client, sleep) -> None:
    client = make_client(["success"])

    result = _execute_task(client, sleep).execute({"baseUrl": "http://host"})

    assert not result.ok
    assert result.details == {"state": "configuration_error"}
    assert client.requested == []


def test_execute_exhausted_is_lenient_by_default(make_client, sleep) -> None:
    client = make_client(["fail", "fail"])

    result = _execute_task(client, sleep).execute(
        {"baseUrl": "http://host", "scriptIdentifier": "x", "retry": 1, "retryWait": 10}
    )

    assert result.ok
    assert result.details is not None
    assert result.details["state"] == "exhausted"
    assert result.details["attempts"] == 2
    assert result.details["last_result"] == "fail"
    assert sleep.calls == [0.01]


def test_execute_exhausted_fails_when_requested(make_client, sleep) -> None:
    client = make_client(["fail"])

    result = _execute_task(client, sleep).execute(
        {"baseUrl": "http://host", "scriptIdentifier": "x", "failOnExhausted": True}
    )

    assert not result.ok
    assert result.details is not None
    assert result.details["state"] == "exhausted"


def test_create_then_execute_pass_identifier(tmp_path: Path, make_client, sleep) -> None:
    created = WebOpcacheResetCreateScriptTask().execute({"scriptBasePath": str(tmp_path)})
    assert created.details is not None
    client = make_client(["success"])

    result = _execute_task(client, sleep).execute(
        {"baseUrl": "http://host", "scriptIdentifier": created.details["scriptIdentifier"]}
    )

    assert result.ok
    assert client.requested == [
        f"http://host/surf-opcache-reset-{created.details['scriptIdentifier']}.php"
    ]


def test_create_script_when_target_is_a_directory_fails(tmp_path: Path) -> None:
    (tmp_path / "surf-opcache-reset-x.php").mkdir()

    result = WebOpcacheResetCreateScriptTask().execute(
        {"scriptBasePath": str(tmp_path), "scriptIdentifier": "x"}
    )

    assert not result.ok
    assert result.details == {"path": str(tmp_path)}


def test_create_script_rejects_path_like_identifier(tmp_path: Path) -> None:
    base_path = tmp_path / "a" / "b"
    base_path.mkdir(parents=True)

    result = WebOpcacheResetCreateScriptTask().execute(
        {"scriptBasePath": str(base_path), "scriptIdentifier": "/../../outside"}
    )

    assert not result.ok
    assert result.details == {"state": "configuration_error"}
    assert list(tmp_path.rglob("*.php")) == []


def test_execute_rejects_path_like_identifier(make_client, sleep) -> None:
    client = make_client(["success"])

    result = _execute_task(client, sleep).execute(
        {"baseUrl": "http://host", "scriptIdentifier": "/../../outside"}
    )

    assert not result.ok
    assert result.details == {"state": "configuration_error"}
    assert client.requested == []


def test_execute_with_unencodable_header_is_a_configuration_error(make_client, sleep) -> None:
    client = make_client(["success"])

    result = _execute_task(client, sleep).execute(
        {
            "baseUrl": "http://host",
            "scriptIdentifier": "x",
            "retry": 1,
            "stream_context": {"http": {"header": "X-Deploy: €"}},
        }
    )

    assert not result.ok
    assert result.details == {"state": "configuration_error"}
    assert client.requested == []


def test_execute_logs_to_given_logger(make_client, sleep, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="tests.deploy")
    client = make_client(["success"])

    result = _execute_task(client, sleep).execute(
        {"baseUrl": "http://host", "scriptIdentifier": "x"},
        logging.getLogger("tests.deploy"),
    )

    assert result.ok
    messages = [(r.name, r.getMessage()) for r in caplog.records]
    assert ("tests.deploy", "PHP opcache reset script executed") in messages
