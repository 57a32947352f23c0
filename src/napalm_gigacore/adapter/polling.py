"""Adapter for gen1 GigaCore switches (poll-and-parse protocol).

Covers the GigaCore10, GigaCore12, GigaCore14R, GigaCore16Xt,
GigaCore16RFO and GigaCore26i.  State is pulled on two repeating cycles;
every response is decoded into typed fragments and reconciled into the
device model.  Mutations are fire-and-forget form posts, usually followed
by a re-fetch of the affected resource since the protocol offers no
confirmation channel.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from typing import Any

import requests

from napalm_gigacore.adapter.base import DeviceAdapter, next_member_id
from napalm_gigacore.client.errors import GigaCoreDecodeError, GigaCoreError
from napalm_gigacore.model.changes import ChangeSet
from napalm_gigacore.model.port import MemberType, PortUpdate
from napalm_gigacore.parser.device import parse_switch_legend
from napalm_gigacore.parser.group import parse_group_table
from napalm_gigacore.parser.poe import parse_poe_config, parse_poe_status
from napalm_gigacore.parser.port import parse_port_legends, parse_port_protect, parse_port_table
from napalm_gigacore.parser.profile import parse_active_profile, parse_profile_list
from napalm_gigacore.utils.dispatch import ConnectionStatus, ConsumerHooks
from napalm_gigacore.utils.reconcile import PORTS
from napalm_gigacore.vendor.gigacore import endpoints as ep
from napalm_gigacore.vendor.gigacore.mappings import (
    GEN1_DEFAULT_MODEL,
    GEN1_DUAL_MEDIA_PORTS,
    GEN1_ISL_GROUP_ID,
    GEN1_ISL_TRUNK_ID,
    GEN1_MAX_PORTS,
    GEN1_MODEL_BY_PORT_COUNT,
    GEN1_POE_MODE_OFF,
    GEN1_POE_MODE_PLUS,
    GEN1_SPEED_AUTO,
    GEN1_SPEED_AUTO_DUAL_MEDIA,
    GEN1_SPEED_DISABLED,
)

logger = logging.getLogger(__name__)


def model_for_port_count(nr_ports: int) -> str:
    """Derive the model label of a gen1 device from its port count."""
    return GEN1_MODEL_BY_PORT_COUNT.get(nr_ports, GEN1_DEFAULT_MODEL)


def slot_name(profile_id: int) -> str:
    """Return the gen1 slot name of a 1-based profile id (``Slot1`` .. ``SlotA``)."""
    return f"Slot{profile_id:X}"


class PollingAdapter(DeviceAdapter):
    """Gen1 adapter: two polling cycles feeding the reconciler.

    Args:
        hooks: Consumer callbacks.
        timeout_s: Timeout of each HTTP exchange in seconds.
        short_interval: Seconds between device-state polls.
        long_interval: Seconds between profile polls.
        disconnect_grace: Seconds between a reboot/reset/recall request and
            the forced disconnect.
        retry_delay: Seconds before a failed handshake is attempted again.
    """

    nr_profiles = 10
    max_groups = 20
    max_trunks = 1

    def __init__(
        self,
        hooks: ConsumerHooks | None = None,
        *,
        timeout_s: float = 10.0,
        short_interval: float = ep.SHORT_POLL_INTERVAL,
        long_interval: float = ep.LONG_POLL_INTERVAL,
        disconnect_grace: float = ep.DISCONNECT_GRACE,
        retry_delay: float = ep.RECONNECT_DELAY,
    ) -> None:
        super().__init__(hooks, timeout_s=timeout_s, retry_delay=retry_delay)
        self.short_interval = short_interval
        self.long_interval = long_interval
        self.disconnect_grace = disconnect_grace
        self._pollers: list[asyncio.Task[None]] = []
        # GETs not yet answered, per path.
        self._outstanding: dict[str, int] = {}
        self._text_handlers: dict[str, Callable[[str], ChangeSet]] = {
            ep.SWITCH_LEGEND: self._on_switch_legend,
            ep.PORT_LEGEND: self._on_port_legend,
            ep.PORTS: self._on_ports,
            ep.POE_CONFIG: self._on_poe_config,
            ep.POE_STATUS: self._on_poe_status,
            ep.GROUPS: self._on_groups,
            ep.PROFILE_NAME: self._on_profile_name,
            ep.PROFILE_LIST: self._on_profile_list,
        }
        self._json_handlers: dict[str, Callable[[Any], ChangeSet]] = {
            ep.PORT_PROTECT: self._on_port_protect,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def disconnect(self, reason: str) -> None:
        # Polling continues so the device is picked up again once it is back.
        logger.debug(reason)
        self._set_status(ConnectionStatus.DISCONNECTED, reason)

    async def destroy(self) -> None:
        self._stop_polling()
        await super().destroy()

    async def _handshake(self) -> None:
        self._stop_polling()
        http = self._require_http()
        try:
            resp = await http.request("GET", ep.SWITCH_LEGEND)
            identity = parse_switch_legend(resp.text)
        except GigaCoreError as exc:
            self._handshake_failed(exc)
            return
        logger.debug(resp.text)
        self._ingest(self.reconciler.set_identity({**identity, "model": GEN1_DEFAULT_MODEL}))
        self._set_status(ConnectionStatus.OK)
        self._fetch(ep.PORTS)
        self._start_polling()

    def _request_succeeded(self, resp: requests.Response) -> None:
        if self.status is not ConnectionStatus.OK:
            self._set_status(ConnectionStatus.OK)

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def _start_polling(self) -> None:
        self._stop_polling()
        self._pollers = [
            self._spawn(self._poll(self._poll_device, self.short_interval)),
            self._spawn(self._poll(self._poll_profiles, self.long_interval)),
        ]

    def _stop_polling(self) -> None:
        for task in self._pollers:
            task.cancel()
        self._pollers = []

    async def _poll(self, fetch: Callable[[], None], interval: float) -> None:
        while True:
            fetch()
            await asyncio.sleep(interval)

    def _poll_device(self) -> None:
        self._poll_path(ep.SWITCH_LEGEND)
        self._poll_path(ep.PORT_LEGEND)
        self._poll_path(ep.PORTS)
        self._poll_path(ep.POE_CONFIG)
        self._poll_path(ep.GROUPS)
        self._poll_path(ep.PORT_PROTECT)
        if self.state.poe_capable:
            self._poll_path(ep.POE_STATUS)

    def _poll_profiles(self) -> None:
        self._poll_path(ep.PROFILE_NAME)
        self._poll_path(ep.PROFILE_LIST)

    def _poll_path(self, path: str) -> None:
        """Fetch *path* unless a previous request for it is still unanswered."""
        if self._outstanding.get(path):
            logger.debug("Skipping poll of %s, previous request outstanding", path)
            return
        self._fetch(path)

    def _fetch(self, path: str) -> None:
        task = self._submit("GET", path, functools.partial(self._on_response, path))
        if task is None:
            return
        self._outstanding[path] = self._outstanding.get(path, 0) + 1
        task.add_done_callback(functools.partial(self._fetch_done, path))

    def _fetch_done(self, path: str, task: asyncio.Task[None]) -> None:
        remaining = self._outstanding.get(path, 0) - 1
        if remaining > 0:
            self._outstanding[path] = remaining
        else:
            self._outstanding.pop(path, None)

    def _post(self, path: str, data: dict[str, Any]) -> None:
        self._submit("POST", path, data=data)

    # ------------------------------------------------------------------
    # Ingest
    # ------------------------------------------------------------------

    def _on_response(self, path: str, resp: requests.Response) -> None:
        content_type = resp.headers.get("content-type", "")
        try:
            if "application/json" in content_type:
                handler = self._json_handlers.get(path)
                changes = handler(resp.json()) if handler else None
            else:
                text_handler = self._text_handlers.get(path)
                changes = text_handler(resp.text) if text_handler else None
        except (GigaCoreDecodeError, ValueError) as exc:
            logger.warning("Dropping response to %s: %s", path, exc)
            return
        if changes is None:
            logger.debug("Unhandled response to %s", path)
            return
        self._ingest(changes)

    def _on_switch_legend(self, text: str) -> ChangeSet:
        identity = parse_switch_legend(text)
        return self.reconciler.set_identity(
            {"name": identity["name"], "description": identity["description"]}
        )

    def _on_port_legend(self, text: str) -> ChangeSet:
        return self.reconciler.apply_port_legends(parse_port_legends(text))

    def _on_ports(self, text: str) -> ChangeSet:
        ports = parse_port_table(text)
        if not self.reconciler.is_known(PORTS):
            changes = self.reconciler.apply_ports(ports, fire_protected=False)
            if self.reconciler.is_known(PORTS):
                self.reconciler.set_identity({"model": model_for_port_count(self.state.nr_ports)})
            return changes
        # Legends and protection come from their own resources.
        return self.reconciler.merge_ports(
            [
                PortUpdate(port_number=p.port_number, enabled=p.enabled, link_up=p.link_up)
                for p in ports
            ]
        )

    def _on_poe_config(self, text: str) -> ChangeSet:
        capable, ports = parse_poe_config(text)
        changes = self.reconciler.set_poe_capable(capable)
        if not capable:
            return changes
        return changes.merge(self.reconciler.apply_poe_ports(ports, with_sourcing=False))

    def _on_poe_status(self, text: str) -> ChangeSet:
        if not self.state.poe_capable:
            return ChangeSet()
        return self.reconciler.apply_poe_sourcing(parse_poe_status(text))

    def _on_groups(self, text: str) -> ChangeSet:
        table = parse_group_table(text)
        changes = self.reconciler.apply_groups(table.groups)
        changes.merge(self.reconciler.apply_trunks(table.trunks))
        return changes.merge(self.reconciler.apply_memberships(table.members))

    def _on_port_protect(self, data: Any) -> ChangeSet:
        return self.reconciler.apply_port_protect(parse_port_protect(data))

    def _on_profile_name(self, text: str) -> ChangeSet:
        return self.reconciler.set_active_profile(parse_active_profile(text))

    def _on_profile_list(self, text: str) -> ChangeSet:
        return self.reconciler.apply_profiles(parse_profile_list(text))

    # ------------------------------------------------------------------
    # Domain operations
    # ------------------------------------------------------------------

    def identify(self, duration: int) -> None:
        # Gen1 winks for a fixed time; duration is not configurable.
        logger.debug("identify")
        self._post(ep.LMX, {"wink": 1})

    def reboot(self, delay_ms: int) -> None:
        self._call_later(
            delay_ms / 1000, self._post_then_disconnect, ep.MISC, {"now": 1}, "Reboot triggered"
        )

    def reset(self, keep_ip: bool, keep_profiles: bool, delay_ms: int) -> None:
        data: dict[str, Any] = {"factory": "yes"} if keep_ip else {"factory_full": "yes"}
        if not keep_profiles:
            data["clear_profiles"] = "yes"
        self._call_later(
            delay_ms / 1000, self._post_then_disconnect, ep.MISC, data, "Reset triggered"
        )

    def recall_profile(self, profile_id: int, keep_ip: bool, delay_ms: int) -> None:
        if not self._guard_recall(profile_id):
            return
        data: dict[str, Any] = {"slot_name": slot_name(profile_id)}
        if keep_ip:
            data["keep_ip"] = 1
        self._call_later(
            delay_ms / 1000,
            self._post_then_disconnect,
            ep.PROFILE_ACTIVATE,
            data,
            "Profile recall triggered",
        )

    def save_profile(self, profile_id: int, name: str) -> None:
        if self.state.profile_protected(profile_id):
            self._reject(
                "save_profile",
                profile_id,
                f"profile {profile_id} is protected and cannot be overwritten",
            )
            return
        self._post(ep.PROFILE_SAVE, {"slot_name": slot_name(profile_id), "profile_name": name})

    def set_port_group(self, port_number: int, group_id: int) -> None:
        if not self._guard_port("set_port_group", port_number):
            return
        logger.info("Changing group of port %d to %d", port_number, group_id)
        self._move_port(port_number, group_id)

    def set_port_trunk(self, port_number: int, trunk_id: int) -> None:
        if trunk_id != GEN1_ISL_TRUNK_ID:
            self._reject(
                "set_port_trunk",
                port_number,
                f"only trunk {GEN1_ISL_TRUNK_ID} (ISL) exists, {trunk_id} is invalid",
            )
            return
        if not self._guard_port("set_port_trunk", port_number):
            return
        logger.info("Changing trunk of port %d to %d", port_number, trunk_id)
        self._move_port(port_number, GEN1_ISL_GROUP_ID)

    def increment_port_membership(self, port_number: int) -> None:
        if not self._guard_port("increment_port_membership", port_number):
            return
        port = self.state.port(port_number)
        if port is None:
            self._reject("increment_port_membership", port_number, f"port {port_number} is unknown")
            return
        if port.member_of.type is not MemberType.GROUP:
            self._reject(
                "increment_port_membership",
                port_number,
                f"port {port_number} is an ISL port and cannot be changed to a group",
            )
            return
        group_id = next_member_id([g.group_id for g in self.state.groups], port.member_of.id)
        if group_id is None:
            self._reject("increment_port_membership", port_number, "no groups known")
            return
        logger.info("Changing group of port %d to %d", port_number, group_id)
        self._move_port(port_number, group_id)

    def set_port_poe(self, port_number: int, enabled: bool) -> None:
        if not self._guard_port("set_port_poe", port_number):
            return
        if not self.state.poe_capable:
            self._reject("set_port_poe", port_number, "device is not PoE capable")
            return
        mode = GEN1_POE_MODE_PLUS if enabled else GEN1_POE_MODE_OFF
        self._post(
            ep.POE_CONFIG,
            {f"hidden_portno_{port_number}": port_number, f"hidden_poe_mode_{port_number}": mode},
        )
        if not enabled:
            self._ingest(self.reconciler.disable_poe_locally(port_number, clear_enabled=True))

    def set_port_link_enabled(self, port_number: int, enabled: bool) -> None:
        if not self._guard_port("set_port_link_enabled", port_number):
            return
        speed = GEN1_SPEED_DISABLED
        if enabled:
            dual_media = (
                self.state.nr_ports == GEN1_MAX_PORTS and port_number in GEN1_DUAL_MEDIA_PORTS
            )
            speed = GEN1_SPEED_AUTO_DUAL_MEDIA if dual_media else GEN1_SPEED_AUTO
        logger.debug("new Speed for %d is %s", port_number, speed)
        self._post(ep.PORTS, {f"speed_{port_number}": speed})
        self._fetch(ep.PORTS)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _move_port(self, port_number: int, group_id: int) -> None:
        params = {"port": str(port_number), "group": str(group_id)}
        self._submit("GET", ep.GROUP_PORT, params=params)
        self._fetch(ep.GROUPS)

    def _post_then_disconnect(self, path: str, data: dict[str, Any], reason: str) -> None:
        self._post(path, data)
        self._call_later(self.disconnect_grace, self.disconnect, reason)
