"""Adapter for gen2 GigaCore switches (REST commands + WebSocket push).

Covers the GigaCore30i, 20t, 18t, 16t, 16i, 10i, 10t, 16tf and 10t-IP.
After one HTTP handshake all state arrives as push notifications over a
:class:`~napalm_gigacore.client.websocket.PushSession`.  Commands are JSON
``PUT`` requests; their effect is observed through the matching
notification rather than the command response.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any

import aiohttp
import requests

from napalm_gigacore.adapter.base import DeviceAdapter, next_member_id
from napalm_gigacore.client.errors import GigaCoreDecodeError, GigaCoreError
from napalm_gigacore.client.session import GigaCoreCredentials
from napalm_gigacore.client.websocket import PushSession, Subscription
from napalm_gigacore.model.changes import ChangeSet
from napalm_gigacore.model.port import MemberType
from napalm_gigacore.parser.device import parse_device_record
from napalm_gigacore.parser.group import parse_group_records, parse_trunk_records
from napalm_gigacore.parser.poe import parse_poe_capable, parse_poe_records, parse_poe_updates
from napalm_gigacore.parser.port import parse_port_records, parse_port_updates
from napalm_gigacore.parser.profile import (
    parse_profile_name,
    parse_profile_records,
    parse_profile_updates,
)
from napalm_gigacore.utils.dispatch import ConnectionStatus, ConsumerHooks
from napalm_gigacore.utils.reconcile import POE_PORTS, PORTS, PROFILES
from napalm_gigacore.vendor.gigacore import endpoints as ep

logger = logging.getLogger(__name__)

SUBSCRIPTIONS: tuple[Subscription, ...] = (
    Subscription(ep.DEVICE, "full"),
    Subscription(ep.PORTS_PORT, "changes"),
    Subscription(ep.GROUPS_GROUP, "full"),
    Subscription(ep.TRUNKS_TRUNK, "full"),
    Subscription(ep.POE_CAPABLE, "full"),
    Subscription(ep.POE_PORTS, "changes"),
    Subscription(ep.CONFIG_NAME, "full"),
    Subscription(ep.CONFIG_PROFILES, "changes"),
)

# Command acknowledgements on these port sub-paths carry nothing to merge.
_IGNORED_PORT_SUFFIXES: tuple[str, ...] = ("member_of", "enabled")


def api_path(resource: str) -> str:
    return f"{ep.API_PREFIX}{resource}"


class PushAdapter(DeviceAdapter):
    """Gen2 adapter: push notifications feeding the reconciler.

    Args:
        hooks: Consumer callbacks.
        timeout_s: Timeout of each HTTP exchange in seconds.
        disconnect_grace: Seconds added to a reboot/reset/recall delay
            before the session is forcibly disconnected.
        ws_session: Optional :class:`aiohttp.ClientSession` for the push
            connection.
        **session_kwargs: Timing overrides passed to :class:`PushSession`
            (``ping_interval``, ``pong_timeout``, ``reconnect_delay``).
    """

    nr_profiles = 40
    max_groups = 255
    max_trunks = 255

    def __init__(
        self,
        hooks: ConsumerHooks | None = None,
        *,
        timeout_s: float = 10.0,
        disconnect_grace: float = ep.DISCONNECT_GRACE,
        ws_session: aiohttp.ClientSession | None = None,
        **session_kwargs: float,
    ) -> None:
        super().__init__(
            hooks,
            timeout_s=timeout_s,
            retry_delay=session_kwargs.get("reconnect_delay", ep.RECONNECT_DELAY),
        )
        self.disconnect_grace = disconnect_grace
        self.session: PushSession | None = None
        self._ws_session = ws_session
        self._session_kwargs = session_kwargs
        self._handlers: dict[str, Callable[[Any], ChangeSet | None]] = {
            ep.DEVICE: self._on_device,
            ep.PORTS_PORT: self._on_ports,
            ep.GROUPS_GROUP: self._on_groups,
            ep.TRUNKS_TRUNK: self._on_trunks,
            ep.POE_CAPABLE: self._on_poe_capable,
            ep.POE_PORTS: self._on_poe_ports,
            ep.CONFIG_NAME: self._on_config_name,
            ep.CONFIG_PROFILES: self._on_profiles,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def configure(self, address: str, credentials: GigaCoreCredentials) -> None:
        if self.session is not None:
            self._spawn(self.session.close())
        super().configure(address, credentials)
        self.session = PushSession(
            address,
            SUBSCRIPTIONS,
            on_open=self._session_open,
            on_message=self._session_message,
            on_error=self._session_error,
            on_disconnect=self._session_disconnect,
            session=self._ws_session,
            **self._session_kwargs,
        )

    def disconnect(self, reason: str) -> None:
        if self.session is not None:
            self.session.disconnect(reason)

    async def destroy(self) -> None:
        if self.session is not None:
            await self.session.close()
            self.session = None
        await super().destroy()

    async def _handshake(self) -> None:
        http = self._require_http()
        try:
            resp = await http.request("GET", api_path(ep.DEVICE))
            identity = parse_device_record(resp.json())
        except (GigaCoreError, ValueError) as exc:
            self._handshake_failed(exc)
            return
        logger.debug("device %s: %s", self.address, identity)
        self._ingest(self.reconciler.set_identity(identity))
        if self.session is not None:
            self.session.start()

    def _auth(self) -> tuple[str, str] | None:
        # Gen2 only sends basic auth when a password is configured.
        return self.credentials.auth_if_set

    # ------------------------------------------------------------------
    # Push session callbacks
    # ------------------------------------------------------------------

    def _session_open(self) -> None:
        logger.debug("Connection opened to %s", self.address)
        self._set_status(ConnectionStatus.OK)

    def _session_error(self, message: str) -> None:
        logger.error("WebSocket error: %s", message)

    def _session_disconnect(self, reason: str) -> None:
        logger.debug(reason)
        self._set_status(ConnectionStatus.DISCONNECTED, reason)

    def _session_message(self, message: Any) -> None:
        if not isinstance(message, dict) or "api_notification" not in message:
            logger.debug("Ignoring message without notification: %r", message)
            return
        notification = message["api_notification"]
        if not isinstance(notification, dict) or not {"path", "new_value"} <= notification.keys():
            logger.debug("invalid msg: %r", notification)
            return
        path = str(notification["path"]).removeprefix(ep.API_PREFIX)
        self._process(path, notification["new_value"])

    # ------------------------------------------------------------------
    # Ingest
    # ------------------------------------------------------------------

    def _process(self, path: str, data: Any) -> None:
        """Route one decoded value for *path* (``/api/`` stripped) to its handler."""
        handler = self._handlers.get(path)
        if handler is None:
            if path.startswith(ep.PORTS_PORT) and path.endswith(_IGNORED_PORT_SUFFIXES):
                return
            logger.debug("Unhandled path %s: %r", path, data)
            return
        try:
            changes = handler(data)
        except GigaCoreDecodeError as exc:
            logger.error("Unexpected value for %s: %s", path, exc)
            return
        if changes is not None:
            self._ingest(changes)

    def _on_device(self, data: Any) -> ChangeSet:
        return self.reconciler.set_identity(parse_device_record(data))

    def _on_ports(self, data: Any) -> ChangeSet | None:
        if self.reconciler.is_known(PORTS):
            return self.reconciler.merge_ports(parse_port_updates(data))
        if not isinstance(data, list):
            logger.debug("Dropping ports/port delta received before the first snapshot")
            return None
        return self.reconciler.apply_ports(parse_port_records(data))

    def _on_groups(self, data: Any) -> ChangeSet | None:
        if not data:
            return None
        return self.reconciler.apply_groups(parse_group_records(data))

    def _on_trunks(self, data: Any) -> ChangeSet | None:
        if not data:
            return None
        return self.reconciler.apply_trunks(parse_trunk_records(data))

    def _on_poe_capable(self, data: Any) -> ChangeSet:
        return self.reconciler.set_poe_capable(parse_poe_capable(data))

    def _on_poe_ports(self, data: Any) -> ChangeSet | None:
        if not data:
            return None
        if self.reconciler.is_known(POE_PORTS):
            return self.reconciler.merge_poe_ports(parse_poe_updates(data))
        return self.reconciler.apply_poe_ports(parse_poe_records(data))

    def _on_config_name(self, data: Any) -> ChangeSet:
        return self.reconciler.set_active_profile(parse_profile_name(data))

    def _on_profiles(self, data: Any) -> ChangeSet:
        if self.reconciler.is_known(PROFILES):
            return self.reconciler.merge_profiles(parse_profile_updates(data))
        return self.reconciler.apply_profiles(parse_profile_records(data))

    # ------------------------------------------------------------------
    # Domain operations
    # ------------------------------------------------------------------

    def identify(self, duration: int) -> None:
        logger.debug("identify")
        self._put(ep.IDENTIFY, {"duration": duration})

    def reboot(self, delay_ms: int) -> None:
        self._put(ep.REBOOT, {"wait": delay_ms})
        self._disconnect_after(delay_ms, "Reboot triggered")

    def reset(self, keep_ip: bool, keep_profiles: bool, delay_ms: int) -> None:
        self._put(ep.RESET, {"keep_ip": keep_ip, "keep_profiles": keep_profiles, "wait": delay_ms})
        self._disconnect_after(delay_ms, "Reset triggered")

    def recall_profile(self, profile_id: int, keep_ip: bool, delay_ms: int) -> None:
        if not self._guard_recall(profile_id):
            return
        self._put(
            f"{ep.CONFIG_PROFILES}/{profile_id - 1}/recall", {"keep_ip": keep_ip, "wait": delay_ms}
        )
        self._disconnect_after(delay_ms, "Profile recall triggered")

    def save_profile(self, profile_id: int, name: str) -> None:
        if self.state.profile_protected(profile_id):
            self._reject(
                "save_profile",
                profile_id,
                f"profile {profile_id} is protected and cannot be overwritten",
            )
            return
        self._put(f"{ep.CONFIG_PROFILES}/{profile_id - 1}/save", {"name": name})

    def set_port_group(self, port_number: int, group_id: int) -> None:
        if not self._guard_port("set_port_group", port_number):
            return
        logger.info("Changing group of port %d to %d", port_number, group_id)
        self._set_member_of(port_number, MemberType.GROUP, group_id)

    def set_port_trunk(self, port_number: int, trunk_id: int) -> None:
        if not self._guard_port("set_port_trunk", port_number):
            return
        logger.info("Changing trunk of port %d to %d", port_number, trunk_id)
        self._set_member_of(port_number, MemberType.TRUNK, trunk_id)

    def increment_port_membership(self, port_number: int) -> None:
        if not self._guard_port("increment_port_membership", port_number):
            return
        port = self.state.port(port_number)
        if port is None:
            self._reject("increment_port_membership", port_number, f"port {port_number} is unknown")
            return
        member_type = port.member_of.type
        if member_type is MemberType.GROUP:
            ids = [g.group_id for g in self.state.groups]
        elif member_type is MemberType.TRUNK:
            ids = [t.trunk_id for t in self.state.trunks]
        else:
            self._reject(
                "increment_port_membership",
                port_number,
                f"port {port_number} is not a member of a group or trunk",
            )
            return
        new_id = next_member_id(ids, port.member_of.id)
        if new_id is None:
            self._reject(
                "increment_port_membership", port_number, f"no {member_type.value}s known"
            )
            return
        logger.info("Changing %s of port %d to %d", member_type.value, port_number, new_id)
        self._set_member_of(port_number, member_type, new_id)

    def set_port_poe(self, port_number: int, enabled: bool) -> None:
        if not self._guard_port("set_port_poe", port_number):
            return
        self._put(f"{ep.POE_PORTS}/{port_number}/enabled", enabled)
        if not enabled:
            self._ingest(self.reconciler.disable_poe_locally(port_number))

    def set_port_link_enabled(self, port_number: int, enabled: bool) -> None:
        if not self._guard_port("set_port_link_enabled", port_number):
            return
        logger.debug("new link state for %d: %s", port_number, enabled)
        self._put(f"{ep.PORTS_PORT}/{port_number}/enabled", enabled)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _put(self, resource: str, body: Any) -> None:
        self._submit(
            "PUT",
            api_path(resource),
            functools.partial(self._on_command_response, resource),
            json=body,
        )

    def _on_command_response(self, resource: str, resp: requests.Response) -> None:
        if "application/json" not in resp.headers.get("content-type", ""):
            logger.debug("Non-JSON response to %s ignored", resource)
            return
        try:
            data = resp.json()
        except ValueError as exc:
            logger.warning("Dropping response to %s: %s", resource, exc)
            return
        self._process(resource, data)

    def _set_member_of(self, port_number: int, member_type: MemberType, member_id: int) -> None:
        self._put(
            f"{ep.PORTS_PORT}/{port_number}/member_of",
            {"type": member_type.value, "id": member_id},
        )

    def _disconnect_after(self, delay_ms: int, reason: str) -> None:
        self._call_later(delay_ms / 1000 + self.disconnect_grace, self.disconnect, reason)
