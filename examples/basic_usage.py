#!/usr/bin/env python3
"""Programmatic opcache reset example.

This demonstrates using the task components directly:

* load settings from `.env`
* write the reset script into a local web directory
* request it with retries and report the outcome

The web directory and its public URL are passed as arguments.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from php_opcache_reset.core.config import TriggerConfig
from php_opcache_reset.tasks.config import ResetSettings
from php_opcache_reset.tasks.logging import configure_logging
from php_opcache_reset.tasks.php.script import generate_script_identifier, write_reset_script
from php_opcache_reset.tasks.php.trigger import ResetTrigger


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reset the PHP opcache (programmatic example).")
    parser.add_argument("--path", required=True, help="Web directory to place the script in")
    parser.add_argument("--base-url", required=True, help="Public URL of that directory")
    parser.add_argument("--retry", type=int, default=3, help="Retries after the first attempt")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = ResetSettings()
    configure_logging(settings.log_level, log_format="plain")

    identifier = generate_script_identifier()
    path = write_reset_script(base_path=Path(args.path), script_identifier=identifier)

    options = settings.to_options()
    options.update(baseUrl=args.base_url, scriptIdentifier=identifier, retry=args.retry)
    config = TriggerConfig.from_options(options)

    outcome = ResetTrigger().run(config, logging.getLogger("basic_usage"))

    print(f"Script: {path}")
    print(f"URL: {outcome.url}")
    print(f"State: {outcome.state.value} after {len(outcome.attempts)} attempt(s)")
    return 0 if outcome.succeeded else 4


if __name__ == "__main__":
    raise SystemExit(main())
