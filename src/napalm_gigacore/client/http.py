"""Low-level HTTP client wrapper for GigaCore endpoints."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Any

import requests

from napalm_gigacore.client.errors import GigaCoreRequestError, GigaCoreResponseError

logger = logging.getLogger(__name__)

try:
    _VERSION: str = importlib.metadata.version("napalm-gigacore")
except importlib.metadata.PackageNotFoundError:
    _VERSION = "0.0.0"

_USER_AGENT: str = f"napalm-gigacore/{_VERSION}"


def _normalise_base_url(url: str) -> str:
    """Ensure the URL has a scheme and no trailing slash."""
    url = url.rstrip("/")
    if not url.startswith(("http://", "https://")):
        url = "http://" + url
    return url


class GigaCoreHTTP:
    """Low-level HTTP wrapper around :class:`requests.Session`.

    Handles a default ``User-Agent`` header, basic authentication, timeout,
    and maps transport/HTTP errors to :mod:`.errors` types.  Every call
    blocks; :class:`~napalm_gigacore.client.session.GigaCoreSession` moves
    them off the event loop.

    Args:
        base_url: Switch base URL, e.g. ``http://192.168.1.1``.
        auth: ``(username, password)`` for HTTP basic auth, or ``None``.
        timeout_s: Request timeout in seconds (default 10).
    """

    def __init__(
        self,
        base_url: str,
        auth: tuple[str, str] | None = None,
        timeout_s: float = 10.0,
    ) -> None:
        self.base_url: str = _normalise_base_url(base_url)
        self.timeout_s: float = timeout_s
        self._session: requests.Session = requests.Session()
        self._session.headers.update({"User-Agent": _USER_AGENT})
        if auth is not None:
            self._session.auth = auth

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send one request and return the response.

        Args:
            method: HTTP method.
            path: URL path relative to :attr:`base_url` (leading ``/``).
            **kwargs: Passed through to :meth:`requests.Session.request`.

        Returns:
            The :class:`requests.Response`.

        Raises:
            GigaCoreRequestError: On any transport-level failure.
            GigaCoreResponseError: On a non-2xx HTTP status code.
        """
        url = self.base_url + path
        try:
            resp = self._session.request(method, url, timeout=self.timeout_s, **kwargs)
        except requests.exceptions.RequestException as exc:
            raise GigaCoreRequestError(url, exc) from exc
        self._raise_for_status(resp)
        return resp

    def close(self) -> None:
        """Close the underlying :class:`requests.Session`."""
        self._session.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _raise_for_status(resp: requests.Response) -> None:
        if not resp.ok:
            raise GigaCoreResponseError(resp.status_code, resp.url)
