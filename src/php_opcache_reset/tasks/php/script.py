"""Render and place the server-side opcache reset script.

The script resets the opcache of the PHP process serving the request, deletes itself and
answers with the literal ``success`` the trigger waits for.
"""

from __future__ import annotations

import logging
import secrets
from pathlib import Path

from php_opcache_reset.core.config import script_filename, validate_script_identifier

logger = logging.getLogger(__name__)

RESET_SCRIPT_TEMPLATE = """<?php
if (function_exists("opcache_reset")) {
    opcache_reset();
}
@unlink(__FILE__);
echo "success";
"""


def generate_script_identifier() -> str:
    """Return a random, URL-safe identifier (32 hex characters)."""

    return secrets.token_hex(16)


def render_reset_script() -> str:
    return RESET_SCRIPT_TEMPLATE


def write_reset_script(*, base_path: Path, script_identifier: str) -> Path:
    """Write the reset script into ``base_path`` and return its path.

    Raises:
        ConfigurationError: If ``script_identifier`` is not a plain token.
        FileNotFoundError: If ``base_path`` is not an existing directory.
        OSError: If the file cannot be written.
    """

    validate_script_identifier(script_identifier)
    if not base_path.is_dir():
        raise FileNotFoundError(f"Script base path does not exist: {base_path}")

    path = base_path / script_filename(script_identifier)
    path.write_text(render_reset_script(), encoding="utf-8")
    logger.info(
        "PHP opcache reset script created",
        extra={"path": str(path), "script_identifier": script_identifier},
    )
    return path
