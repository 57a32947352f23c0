"""Protocol-independent part of a GigaCore device adapter."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine, Sequence
from typing import Any, ClassVar

import requests

from napalm_gigacore.client.errors import GigaCoreError, GigaCoreRejection
from napalm_gigacore.client.session import GigaCoreCredentials, GigaCoreSession
from napalm_gigacore.model.changes import ChangeSet
from napalm_gigacore.model.state import DeviceState
from napalm_gigacore.utils.dispatch import ConnectionStatus, ConsumerHooks, Dispatcher
from napalm_gigacore.utils.reconcile import Reconciler
from napalm_gigacore.vendor.gigacore import endpoints as ep

logger = logging.getLogger(__name__)


def next_member_id(ids: Sequence[int], current: int) -> int | None:
    """Return the id following *current* in *ids*, wrapping to the first.

    An id not present in *ids* is followed by the first entry.  Returns
    ``None`` when *ids* is empty.
    """
    if not ids:
        return None
    try:
        idx = list(ids).index(current) + 1
    except ValueError:
        idx = 0
    if idx >= len(ids):
        idx = 0
    return ids[idx]


class DeviceAdapter(ABC):
    """Capability set shared by both GigaCore protocol generations.

    An adapter exclusively owns one :class:`DeviceState` and the transport
    resources of one device.  Mutators never block: they schedule the
    request on the running event loop and return.  Every port mutator is
    refused locally when the port is protected; refusals are recorded on
    :attr:`rejections`.

    Args:
        hooks: Consumer callbacks receiving change notifications and status.
        timeout_s: Timeout of each HTTP exchange in seconds.
        retry_delay: Seconds before a failed handshake is attempted again.
    """

    nr_profiles: ClassVar[int]
    max_groups: ClassVar[int]
    max_trunks: ClassVar[int]

    def __init__(
        self,
        hooks: ConsumerHooks | None = None,
        *,
        timeout_s: float = 10.0,
        retry_delay: float = ep.RECONNECT_DELAY,
    ) -> None:
        self.dispatcher: Dispatcher = Dispatcher(hooks)
        self.state: DeviceState = DeviceState()
        self.reconciler: Reconciler = Reconciler(self.state)
        self.rejections: list[GigaCoreRejection] = []
        self.address: str | None = None
        self.credentials: GigaCoreCredentials = GigaCoreCredentials()
        self.status: ConnectionStatus = ConnectionStatus.DISCONNECTED
        self.status_message: str | None = None
        self.timeout_s = timeout_s
        self.retry_delay = retry_delay
        self._http: GigaCoreSession | None = None
        self._timers: set[asyncio.TimerHandle] = set()
        self._tasks: set[asyncio.Task[Any]] = set()
        self._retry: asyncio.TimerHandle | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def configure(self, address: str, credentials: GigaCoreCredentials) -> None:
        """Point the adapter at *address*, starting from a fresh model."""
        if self._http is not None:
            self._http.close()
        self.address = address
        self.credentials = credentials
        self.state = DeviceState()
        self.reconciler = Reconciler(self.state)
        self._http = GigaCoreSession(
            f"http://{address}",
            auth=self._auth(),
            timeout_s=self.timeout_s,
            on_success=self._request_succeeded,
            on_failure=self._request_failed,
        )
        logger.debug("Configured %s for %s", type(self).__name__, address)

    def connect(self) -> asyncio.Task[None]:
        """Start the connection handshake without waiting for it.

        Must be called from within a running event loop after
        :meth:`configure`.

        Returns:
            The task running the handshake.
        """
        if self._http is None:
            raise GigaCoreError("connect() called before configure()")
        self._cancel_retry()
        self._set_status(ConnectionStatus.CONNECTING)
        logger.debug("init connection to %s", self.address)
        return self._spawn(self._handshake())

    @abstractmethod
    def disconnect(self, reason: str) -> None:
        """Report the connection as lost for *reason*."""

    async def destroy(self) -> None:
        """Cancel every timer and task and release the transport."""
        for handle in list(self._timers):
            handle.cancel()
        self._timers.clear()
        self._retry = None
        tasks = [t for t in self._tasks if t is not asyncio.current_task()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if self._http is not None:
            self._http.close()
            self._http = None
        self._set_status(ConnectionStatus.DISCONNECTED)
        logger.debug("Destroyed %s for %s", type(self).__name__, self.address)

    async def drain(self) -> None:
        """Wait for every submitted HTTP exchange to complete."""
        if self._http is not None:
            await self._http.drain()

    # ------------------------------------------------------------------
    # Domain operations
    # ------------------------------------------------------------------

    @abstractmethod
    def identify(self, duration: int) -> None:
        """Make the device flash its LEDs for *duration* seconds."""

    @abstractmethod
    def reboot(self, delay_ms: int) -> None:
        """Reboot the device after *delay_ms* milliseconds."""

    @abstractmethod
    def reset(self, keep_ip: bool, keep_profiles: bool, delay_ms: int) -> None:
        """Factory-reset the device after *delay_ms* milliseconds."""

    @abstractmethod
    def recall_profile(self, profile_id: int, keep_ip: bool, delay_ms: int) -> None:
        """Activate the configuration saved in profile slot *profile_id*."""

    @abstractmethod
    def save_profile(self, profile_id: int, name: str) -> None:
        """Save the running configuration to slot *profile_id* as *name*."""

    @abstractmethod
    def set_port_group(self, port_number: int, group_id: int) -> None: ...

    @abstractmethod
    def set_port_trunk(self, port_number: int, trunk_id: int) -> None: ...

    @abstractmethod
    def increment_port_membership(self, port_number: int) -> None:
        """Move a port to the next group (or trunk) in device order."""

    @abstractmethod
    def set_port_poe(self, port_number: int, enabled: bool) -> None: ...

    @abstractmethod
    def set_port_link_enabled(self, port_number: int, enabled: bool) -> None: ...

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    @abstractmethod
    async def _handshake(self) -> None:
        """Perform the initial exchange and start receiving state."""

    def _auth(self) -> tuple[str, str] | None:
        return self.credentials.auth

    def _request_succeeded(self, resp: requests.Response) -> None:
        """Called after every successful HTTP exchange."""

    def _handshake_failed(self, exc: Exception) -> None:
        """Report a failed handshake and schedule another attempt."""
        logger.debug("failed connection to %s: %s", self.address, exc)
        self._set_status(ConnectionStatus.CONNECTION_FAILURE, str(exc))
        self._cancel_retry()
        self._retry = self._call_later(self.retry_delay, self._retry_handshake)

    def _retry_handshake(self) -> None:
        self._retry = None
        logger.debug("retrying connection to %s", self.address)
        self._spawn(self._handshake())

    def _cancel_retry(self) -> None:
        if self._retry is not None:
            self._retry.cancel()
            self._timers.discard(self._retry)
            self._retry = None

    def _request_failed(self, exc: GigaCoreError) -> None:
        """Called after every failed HTTP exchange."""

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _ingest(self, changes: ChangeSet) -> None:
        self.dispatcher.dispatch(changes)

    def _set_status(self, status: ConnectionStatus, message: str | None = None) -> None:
        if status is self.status and message == self.status_message:
            return
        self.status = status
        self.status_message = message
        logger.debug("Status of %s: %s %s", self.address, status.value, message or "")
        self.dispatcher.status(status, message)

    def _reject(self, operation: str, target: int, reason: str) -> None:
        rejection = GigaCoreRejection(operation, target, reason)
        self.rejections.append(rejection)
        logger.info("rejected: %s", rejection)

    def _guard_port(self, operation: str, port_number: int) -> bool:
        """Return ``True`` if *port_number* may be changed, else record a rejection."""
        if self.state.port_protected(port_number):
            self._reject(operation, port_number, f"port {port_number} is protected")
            return False
        return True

    def _guard_recall(self, profile_id: int) -> bool:
        """Return ``True`` if profile *profile_id* may be recalled, else record a rejection."""
        if self.state.profile_protected(profile_id):
            self._reject(
                "recall_profile",
                profile_id,
                f"profile {profile_id} is protected and cannot be recalled",
            )
            return False
        if self.state.profile_empty(profile_id):
            self._reject(
                "recall_profile",
                profile_id,
                f"profile {profile_id} is empty and cannot be recalled",
            )
            return False
        return True

    def _require_http(self) -> GigaCoreSession:
        if self._http is None:
            raise GigaCoreError(f"{type(self).__name__} is not configured")
        return self._http

    def _submit(
        self,
        method: str,
        path: str,
        callback: Callable[[requests.Response], None] | None = None,
        **kwargs: Any,
    ) -> asyncio.Task[None] | None:
        if self._http is None:
            logger.debug("Not configured; dropping %s %s", method, path)
            return None
        return self._http.submit(method, path, callback, **kwargs)

    def _call_later(
        self, delay: float, callback: Callable[..., None], *args: Any
    ) -> asyncio.TimerHandle:
        """Schedule *callback* on the running loop; cancelled by :meth:`destroy`."""

        def fire() -> None:
            self._timers.discard(handle)
            callback(*args)

        handle = asyncio.get_running_loop().call_later(delay, fire)
        self._timers.add(handle)
        return handle

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
