"""HTTP client used to call the deployed reset script.

This intentionally wraps `requests` to keep transport details out of the task code and make
tests easy.
"""

from __future__ import annotations

import logging
from types import TracebackType

import requests

from php_opcache_reset import __version__
from php_opcache_reset.core.config import TransportOptions

logger = logging.getLogger(__name__)


class RemoteCallFailure(Exception):
    """Raised when the reset script could not be fetched (network error or non-2xx)."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Request to {url} failed: {reason}")
        self.url = url
        self.reason = reason


class ResetScriptClient:
    """Small wrapper around a `requests.Session` for GET requests to the reset script."""

    def __init__(
        self,
        transport: TransportOptions | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self._transport = transport or TransportOptions()
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": f"php-opcache-reset/{__version__}"})
        self._session.headers.update(self._transport.headers)
        if self._transport.proxies:
            self._session.proxies.update(self._transport.proxies)
        self._session.verify = self._transport.verify
        if self._transport.cert is not None:
            self._session.cert = self._transport.cert

    @property
    def transport(self) -> TransportOptions:
        return self._transport

    def fetch(self, url: str) -> str:
        """GET `url` and return the full response body as text.

        Raises:
            RemoteCallFailure: On connection errors, timeouts, non-2xx responses and
                request lines or headers http.client cannot encode.
        """

        try:
            resp = self._session.get(url, timeout=self._transport.timeout)
            resp.raise_for_status()
        except (requests.RequestException, UnicodeError) as e:
            logger.debug("Reset script request failed", extra={"url": url, "error": str(e)})
            raise RemoteCallFailure(url, str(e)) from e

        logger.debug(
            "Reset script responded",
            extra={"url": url, "status_code": resp.status_code},
        )
        return resp.text

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> ResetScriptClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
