"""Console script entrypoint.

The CLI is implemented in `php_opcache_reset.tasks.main`.
"""

from __future__ import annotations

from php_opcache_reset.tasks.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
