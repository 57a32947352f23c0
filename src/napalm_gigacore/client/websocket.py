"""Persistent WebSocket session for gen2 GigaCore push notifications.

The session is an explicit state machine driven by three kinds of events:
socket events (connected, message, closed, error), timer expiry
(ping, pong timeout, reconnect) and owner calls (start, disconnect, close)::

    DISCONNECTED -> CONNECTING -> OPEN -> READY
                       ^                   |
                       |             (disconnect)
                       |                   v
                       +------------- RECONNECTING

    any state --close()--> CLOSED (terminal)
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Coroutine, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

import aiohttp
from aiohttp import ClientWebSocketResponse, WSMsgType

from napalm_gigacore.client.errors import GigaCoreLivenessError
from napalm_gigacore.vendor.gigacore.endpoints import (
    API_PREFIX,
    PING_INTERVAL,
    PONG_TIMEOUT,
    RECONNECT_DELAY,
    WS_PATH,
)

logger = logging.getLogger(__name__)

PING: str = "ping"
PONG: str = "pong"


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    READY = "ready"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


@dataclass(frozen=True)
class Subscription:
    """One resource the session registers for after connecting.

    Attributes:
        path: Resource path without the ``/api/`` prefix (e.g. ``ports/port``).
        method: ``"full"`` to receive the whole resource on every change,
            ``"changes"`` to receive field-level deltas.
    """

    path: str
    method: Literal["full", "changes"]

    def payload(self) -> str:
        return json.dumps(
            {
                "subscription": {
                    "path": f"{API_PREFIX}{self.path}",
                    "action": "add",
                    "method": self.method,
                }
            }
        )


class PushSession:
    """Owns the WebSocket connection of one gen2 device.

    Handles connect, subscription registration, a ``ping``/``pong``
    heartbeat, liveness loss and reconnection on a fixed delay.  All timers
    live on the running event loop and are cancelled before being
    rescheduled, so repeated disconnects never stack timers.

    Args:
        host: Device address.
        subscriptions: Resources to register for on every (re)connect.
        on_open: Called when the socket opens.
        on_message: Called with every decoded non-``pong`` message.
        on_error: Called with a description of socket / connect errors.
        on_disconnect: Called with the reason of every disconnect.
        session: Existing :class:`aiohttp.ClientSession` to use; one is
            created (and closed on :meth:`close`) otherwise.
        headers: Extra handshake headers (e.g. ``Authorization``).
        ping_interval: Seconds between liveness pings.
        pong_timeout: Seconds to wait for ``pong`` after each ping.
        reconnect_delay: Seconds between a disconnect and the next attempt.
    """

    def __init__(
        self,
        host: str,
        subscriptions: Iterable[Subscription],
        *,
        on_open: Callable[[], None] | None = None,
        on_message: Callable[[Any], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        on_disconnect: Callable[[str], None] | None = None,
        session: aiohttp.ClientSession | None = None,
        headers: dict[str, str] | None = None,
        ping_interval: float = PING_INTERVAL,
        pong_timeout: float = PONG_TIMEOUT,
        reconnect_delay: float = RECONNECT_DELAY,
    ) -> None:
        self.url: str = f"ws://{host}{WS_PATH}"
        self.subscriptions: tuple[Subscription, ...] = tuple(subscriptions)
        self.state: SessionState = SessionState.DISCONNECTED
        self._on_open = on_open
        self._on_message = on_message
        self._on_error = on_error
        self._on_disconnect = on_disconnect
        self._client: aiohttp.ClientSession | None = session
        self._owns_client: bool = session is None
        self._headers: dict[str, str] = headers or {}
        self._ping_interval = ping_interval
        self._pong_timeout = pong_timeout
        self._reconnect_delay = reconnect_delay

        self._ws: ClientWebSocketResponse | None = None
        self._reader: asyncio.Task[None] | None = None
        self._ping_handle: asyncio.TimerHandle | None = None
        self._pong_handle: asyncio.TimerHandle | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._background: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------
    # Owner API
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Open a new connection, replacing any existing one.

        Must be called from within a running event loop.
        """
        if self.state is SessionState.CLOSED:
            logger.debug("Session to %s is closed; not starting", self.url)
            return
        self._cancel_reconnect()
        self._stop_heartbeat()
        self._drop_socket()
        self._set_state(SessionState.CONNECTING)
        self._reader = asyncio.get_running_loop().create_task(self._run())

    def disconnect(self, reason: str) -> None:
        """Drop the connection, notify the owner and schedule one reconnect."""
        if self.state is SessionState.CLOSED:
            return
        logger.info("WebSocket to %s disconnected: %s", self.url, reason)
        if self._on_disconnect is not None:
            self._on_disconnect(reason)
        self._schedule_reconnect()

    async def close(self) -> None:
        """Terminal shutdown: cancel every timer, close the socket, never reconnect."""
        if self.state is SessionState.CLOSED:
            return
        self._set_state(SessionState.CLOSED)
        self._cancel_reconnect()
        self._stop_heartbeat()
        ws, reader = self._ws, self._reader
        self._ws = None
        self._reader = None
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
        if ws is not None and not ws.closed:
            await ws.close()
        for task in list(self._background):
            task.cancel()
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    def send(self, data: str) -> None:
        """Queue *data* on the open socket; dropped (and logged) when there is none."""
        if self._ws is None or self._ws.closed:
            logger.debug("Msg %r lost because websocket is not open", data)
            return
        self._spawn(self._send(self._ws, data))

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self.state in (SessionState.OPEN, SessionState.READY)

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    # ------------------------------------------------------------------
    # Socket events
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        if self._client is None:
            self._client = aiohttp.ClientSession()
        try:
            ws = await self._client.ws_connect(self.url, headers=self._headers)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            logger.debug("WebSocket connect to %s failed: %s", self.url, exc)
            if self._on_error is not None:
                self._on_error(str(exc))
            self.disconnect(f"Connection failed: {exc}")
            return

        self._ws = ws
        self._opened()
        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                self._received(msg.data)
            elif msg.type == WSMsgType.ERROR:
                if self._on_error is not None:
                    self._on_error(str(ws.exception()))
                break
            else:
                logger.debug("Ignoring WebSocket message of type %s", msg.type)
        if self._ws is ws:
            self.disconnect(f"Connection closed with code {ws.close_code}")

    def _opened(self) -> None:
        self._set_state(SessionState.OPEN)
        self._start_heartbeat()
        if self._on_open is not None:
            self._on_open()
        self._set_state(SessionState.READY)
        for subscription in self.subscriptions:
            self.send(subscription.payload())

    def _received(self, data: str) -> None:
        try:
            value: Any = json.loads(data)
        except ValueError:
            value = data
        if value == PONG:
            self._cancel_pong()
            return
        if self._on_message is None:
            return
        try:
            self._on_message(value)
        except Exception:
            logger.exception("Error processing WebSocket message from %s", self.url)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _start_heartbeat(self) -> None:
        self._stop_heartbeat()
        loop = asyncio.get_running_loop()
        self._ping_handle = loop.call_later(self._ping_interval, self._ping)

    def _ping(self) -> None:
        loop = asyncio.get_running_loop()
        self._ping_handle = loop.call_later(self._ping_interval, self._ping)
        self._cancel_pong()
        self._pong_handle = loop.call_later(self._pong_timeout, self._pong_expired)
        self.send(PING)

    def _pong_expired(self) -> None:
        self._pong_handle = None
        self.disconnect(str(GigaCoreLivenessError("Websocket Pong timeout")))

    def _cancel_pong(self) -> None:
        if self._pong_handle is not None:
            self._pong_handle.cancel()
            self._pong_handle = None

    def _stop_heartbeat(self) -> None:
        if self._ping_handle is not None:
            self._ping_handle.cancel()
            self._ping_handle = None
        self._cancel_pong()

    def _schedule_reconnect(self) -> None:
        self._cancel_reconnect()
        self._stop_heartbeat()
        self._drop_socket()
        self._set_state(SessionState.RECONNECTING)
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(self._reconnect_delay, self._reconnect)

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        self.start()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _drop_socket(self) -> None:
        ws, reader = self._ws, self._reader
        self._ws = None
        self._reader = None
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
        if ws is not None and not ws.closed:
            self._spawn(ws.close())

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _send(self, ws: ClientWebSocketResponse, data: str) -> None:
        try:
            await ws.send_str(data)
        except (ConnectionError, aiohttp.ClientError) as exc:
            logger.debug("Sending %r to %s failed: %s", data, self.url, exc)

    def _set_state(self, state: SessionState) -> None:
        if state is not self.state:
            logger.debug("WebSocket %s: %s -> %s", self.url, self.state.value, state.value)
            self.state = state
