"""CLI entrypoint for the opcache reset tasks."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from pydantic import ValidationError

from php_opcache_reset import __version__
from php_opcache_reset.tasks.config import ResetSettings
from php_opcache_reset.tasks.logging import configure_logging
from php_opcache_reset.tasks.workflow.actions import (
    TaskResult,
    WebOpcacheResetCreateScriptTask,
    WebOpcacheResetExecuteTask,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CONFIGURATION = 2
EXIT_EXHAUSTED = 4
EXIT_CANCELLED = 5


def _add_script_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--path",
        dest="script_base_path",
        required=True,
        help="Web directory the reset script is written to",
    )


def _add_execute_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--base-url",
        default=None,
        help="URL under which the script directory is served (default: OPCACHE_RESET_BASE_URL)",
    )
    parser.add_argument("--retry", type=int, default=None, help="Retries after the first attempt")
    parser.add_argument(
        "--retry-wait",
        type=int,
        default=None,
        help="Wait between attempts in milliseconds",
    )
    parser.add_argument(
        "--initial-wait",
        type=int,
        default=None,
        help="Wait before the first attempt in milliseconds",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Do not verify the TLS certificate of the web server",
    )
    parser.add_argument(
        "--fail-on-exhausted",
        action="store_true",
        help="Exit non-zero when the script never returns the expected result",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="opcache-reset",
        description="Reset the PHP opcache of a web server through a deployed script",
    )
    parser.add_argument(
        "--version", action="version", version=f"php-opcache-reset {__version__}"
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "plain"],
        default="json",
        help="Log output format",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    create_script = subparsers.add_parser(
        "create-script",
        help="Write the reset script into a web directory and print its identifier",
    )
    _add_script_arguments(create_script)
    create_script.add_argument(
        "--identifier",
        default=None,
        help="Script identifier (generated when omitted)",
    )

    execute = subparsers.add_parser(
        "execute",
        help="Request a previously created reset script",
    )
    execute.add_argument("--identifier", required=True, help="Script identifier")
    _add_execute_arguments(execute)

    reset = subparsers.add_parser(
        "reset",
        help="Create the reset script, then request it",
    )
    _add_script_arguments(reset)
    _add_execute_arguments(reset)

    return parser


def _execute_options(settings: ResetSettings, args: argparse.Namespace) -> dict[str, Any]:
    options = settings.to_options()
    if args.base_url:
        options["baseUrl"] = args.base_url
    if args.retry is not None:
        options["retry"] = args.retry
    if args.retry_wait is not None:
        options["retryWait"] = args.retry_wait
    if args.initial_wait is not None:
        options["initialWait"] = args.initial_wait
    if args.timeout is not None:
        options["transportOptions"]["timeout"] = args.timeout
    if args.insecure:
        options["transportOptions"]["verify"] = False
    options["failOnExhausted"] = args.fail_on_exhausted
    return options


def _exit_code(result: TaskResult) -> int:
    if result.ok:
        return EXIT_OK
    state = (result.details or {}).get("state")
    if state == "configuration_error":
        return EXIT_CONFIGURATION
    if state == "exhausted":
        return EXIT_EXHAUSTED
    if state == "cancelled":
        return EXIT_CANCELLED
    return EXIT_ERROR


def _run_execute(options: dict[str, Any]) -> int:
    result = WebOpcacheResetExecuteTask().execute(options)
    details = result.details or {}
    if result.ok:
        print(f"{result.message}: {details.get('url', '')} ({details.get('state')})")
    else:
        print(result.message, file=sys.stderr)
    return _exit_code(result)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = ResetSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_CONFIGURATION

    configure_logging(settings.log_level, log_format=args.log_format)

    try:
        if args.command == "create-script":
            result = WebOpcacheResetCreateScriptTask().execute(
                {
                    "scriptBasePath": args.script_base_path,
                    "scriptIdentifier": args.identifier,
                }
            )
            if not result.ok:
                print(result.message, file=sys.stderr)
                return EXIT_CONFIGURATION
            print((result.details or {})["scriptIdentifier"])
            return EXIT_OK

        if args.command == "execute":
            options = _execute_options(settings, args)
            options["scriptIdentifier"] = args.identifier
            return _run_execute(options)

        if args.command == "reset":
            created = WebOpcacheResetCreateScriptTask().execute(
                {"scriptBasePath": args.script_base_path}
            )
            if not created.ok:
                print(created.message, file=sys.stderr)
                return EXIT_CONFIGURATION

            options = _execute_options(settings, args)
            options["scriptIdentifier"] = (created.details or {})["scriptIdentifier"]
            return _run_execute(options)

        logger.error("Unknown command", extra={"command": args.command})
        return EXIT_CONFIGURATION

    except Exception:
        logger.exception("Command failed")
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
