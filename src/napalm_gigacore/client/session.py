"""Asynchronous request executor for GigaCore switches."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import requests

from napalm_gigacore.client.errors import GigaCoreError
from napalm_gigacore.client.http import GigaCoreHTTP

logger = logging.getLogger(__name__)

# Both device generations only know a single, fixed account.
DEFAULT_USERNAME: str = "admin"

ResponseCallback = Callable[[requests.Response], None]
FailureCallback = Callable[[GigaCoreError], None]


@dataclass(frozen=True)
class GigaCoreCredentials:
    """Immutable credentials for a GigaCore switch.

    Args:
        password: Device password, ``""`` when authentication is disabled.
        username: Login username (always ``admin`` on current firmware).
    """

    password: str = ""
    username: str = DEFAULT_USERNAME

    @property
    def auth(self) -> tuple[str, str]:
        """Basic-auth pair, always sent by the polling protocol."""
        return self.username, self.password

    @property
    def auth_if_set(self) -> tuple[str, str] | None:
        """Basic-auth pair, or ``None`` when no password is configured."""
        return self.auth if self.password else None


class GigaCoreSession:
    """Issues request/response exchanges without blocking the event loop.

    Wraps :class:`.GigaCoreHTTP` and adds:
    - Awaitable exchanges executed in the loop's default thread pool.
    - Fire-and-forget submission: :meth:`submit` returns immediately and the
      response is handed to a callback once it arrives.  Completion order is
      not guaranteed to match submission order.
    - Outcome classification: every success calls *on_success* and every
      :class:`~.errors.GigaCoreError` calls *on_failure* (both optional), so
      the owner can track connectivity without handling each request.

    Args:
        base_url: Switch base URL, e.g. ``http://192.168.1.1``.
        auth: Basic-auth pair or ``None``.
        timeout_s: Request timeout in seconds.
        on_success: Called with every successful response.
        on_failure: Called with every classified failure.
    """

    def __init__(
        self,
        base_url: str,
        auth: tuple[str, str] | None = None,
        timeout_s: float = 10.0,
        on_success: ResponseCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> None:
        self._http: GigaCoreHTTP = GigaCoreHTTP(base_url, auth=auth, timeout_s=timeout_s)
        self._on_success = on_success
        self._on_failure = on_failure
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed: bool = False

    # ------------------------------------------------------------------
    # Public request methods
    # ------------------------------------------------------------------

    async def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Perform one exchange and return the response.

        Raises:
            GigaCoreRequestError: On any transport-level failure.
            GigaCoreResponseError: On a non-2xx HTTP status code.
        """
        loop = asyncio.get_running_loop()
        call = functools.partial(self._http.request, method, path, **kwargs)
        return await loop.run_in_executor(None, call)

    def submit(
        self,
        method: str,
        path: str,
        callback: ResponseCallback | None = None,
        **kwargs: Any,
    ) -> asyncio.Task[None] | None:
        """Schedule an exchange and return without waiting for it.

        Must be called from within a running event loop.

        Returns:
            The scheduled task, or ``None`` if the session is closed.
        """
        if self._closed:
            logger.debug("Session closed; dropping %s %s", method, path)
            return None
        logger.debug("%s %s", method, path)
        if kwargs:
            logger.debug("%s %s payload: %s", method, path, kwargs)
        task = asyncio.get_running_loop().create_task(
            self._exchange(method, path, callback, kwargs)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until no submitted exchange is outstanding.

        Exchanges submitted by callbacks while draining are waited for too.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Cancel outstanding exchanges and close the HTTP session."""
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        self._http.close()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def base_url(self) -> str:
        return self._http.base_url

    @property
    def pending(self) -> int:
        """Number of exchanges submitted but not yet completed."""
        return len(self._tasks)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _exchange(
        self,
        method: str,
        path: str,
        callback: ResponseCallback | None,
        kwargs: dict[str, Any],
    ) -> None:
        try:
            resp = await self.request(method, path, **kwargs)
        except GigaCoreError as exc:
            logger.debug("CMD error on %s %s: %s", method, path, exc)
            if self._on_failure is not None:
                self._on_failure(exc)
            return
        if self._on_success is not None:
            self._on_success(resp)
        if callback is not None:
            callback(resp)
