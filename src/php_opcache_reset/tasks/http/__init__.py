"""HTTP transport for calling deployed scripts."""

from php_opcache_reset.tasks.http.client import RemoteCallFailure, ResetScriptClient

__all__ = ["RemoteCallFailure", "ResetScriptClient"]
