"""GigaCore NAPALM driver: top-level NetworkDriver facade over the adapters."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from napalm.base.base import NetworkDriver

from napalm_gigacore.adapter.base import DeviceAdapter
from napalm_gigacore.adapter.factory import create_adapter
from napalm_gigacore.client.errors import GigaCoreError
from napalm_gigacore.model.config import GigaCoreConfig
from napalm_gigacore.model.state import DeviceState
from napalm_gigacore.utils.dispatch import ConnectionStatus, ConsumerHooks

logger = logging.getLogger(__name__)

_VENDOR: str = "Luminex"


def interface_name(port_number: int) -> str:
    return f"Port {port_number}"


class GigaCoreDriver(NetworkDriver):  # type: ignore[misc]
    """NAPALM driver for Luminex GigaCore switches.

    Unlike request/response drivers, the device model is kept up to date in
    the background (by polling on gen1 devices, by push notifications on
    gen2 devices), so :meth:`open` needs a running asyncio event loop and the
    getters read the locally synchronised model without any I/O.

    Args:
        hostname: IP address or hostname of the switch.
        username: Ignored; GigaCore switches only know the ``admin`` account.
        password: Device password (``""`` when authentication is disabled).
        timeout: Request timeout in seconds.
        optional_args: Optional driver configuration overrides.
            Supported keys:

            - ``gen1`` (bool): The device speaks the legacy polling protocol.
            - ``bonjour_host`` (str): ``"<ip>:<port>"`` of a discovered device;
              takes precedence over *hostname*.
            - ``hooks`` (:class:`~napalm_gigacore.utils.dispatch.ConsumerHooks`):
              Callbacks notified of model changes and connectivity.
    """

    def __init__(
        self,
        hostname: str,
        username: str,
        password: str,
        timeout: int = 60,
        optional_args: dict[str, Any] | None = None,
    ) -> None:
        self.hostname = hostname
        self.username = username
        self.password = password
        self.timeout = timeout
        self.optional_args: dict[str, Any] = optional_args or {}

        self.config = GigaCoreConfig(
            host=hostname,
            password=password,
            gen1=bool(self.optional_args.get("gen1", False)),
            bonjour_host=str(self.optional_args.get("bonjour_host", "")),
        )
        self.hooks: ConsumerHooks | None = self.optional_args.get("hooks")
        self.adapter: DeviceAdapter | None = None
        self._closing: asyncio.Task[None] | None = None

        logger.debug(
            "GigaCoreDriver initialised: host=%s gen1=%s",
            self.config.host_address(),
            self.config.gen1,
        )

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Build the adapter for the configured address and start connecting.

        Must be called from within a running event loop.

        Raises:
            GigaCoreError: If the configuration yields no usable address.
        """
        if self.config.host_address() is None:
            raise GigaCoreError("No usable host address configured")
        self._start()

    async def reconfigure(self, config: GigaCoreConfig) -> None:
        """Switch to *config*, tearing the current adapter down first.

        A new adapter (and so a fresh device model) is always built; the old
        one is fully destroyed before the new one is constructed, so state
        of two devices is never mixed.
        """
        old_address = self.config.host_address()
        if self.adapter is not None:
            if old_address != config.host_address() or self.config.gen1 != config.gen1:
                logger.info("Device changed from %s to %s", old_address, config.host_address())
            await self.adapter.destroy()
            self.adapter = None
        self.config = config
        if config.host_address() is None:
            logger.warning("No usable host address configured; staying disconnected")
            return
        self._start()

    def close(self) -> None:
        """Destroy the adapter (best-effort; never raises).

        Inside a running loop the teardown is scheduled; use :meth:`aclose`
        to wait for it.
        """
        if self.adapter is None:
            return
        adapter, self.adapter = self.adapter, None
        logger.info("Closing connection to %s", adapter.address)
        try:
            self._closing = asyncio.get_running_loop().create_task(adapter.destroy())
        except RuntimeError:
            logger.debug("No running loop; adapter for %s dropped", adapter.address)

    async def aclose(self) -> None:
        """Destroy the adapter and wait until every resource is released."""
        if self.adapter is not None:
            adapter, self.adapter = self.adapter, None
            logger.info("Closing connection to %s", adapter.address)
            await adapter.destroy()

    # ------------------------------------------------------------------
    # NAPALM getters
    # ------------------------------------------------------------------

    def get_facts(self) -> dict[str, Any]:
        """Return general device facts conforming to the NAPALM schema.

        Raises:
            GigaCoreError: If the driver is not open.
        """
        state = self.state
        identity = state.identity
        hostname = identity.name or self.config.host_address() or self.hostname
        return {
            "hostname": hostname,
            "fqdn": hostname,
            "vendor": _VENDOR,
            "model": identity.model or "unknown",
            "serial_number": identity.serial,
            "os_version": "",
            "uptime": -1.0,
            "interface_list": [interface_name(p.port_number) for p in state.ports],
        }

    def get_interfaces(self) -> dict[str, Any]:
        """Return interface information conforming to the NAPALM schema.

        Interfaces are named ``"Port <n>"``; the port legend is reported as
        the description.
        """
        result: dict[str, Any] = {}
        for port in self.state.ports:
            result[interface_name(port.port_number)] = {
                "is_up": port.link_up,
                "is_enabled": port.enabled,
                "description": port.legend,
                "last_flapped": -1.0,
                "speed": 0.0,
                "mtu": 0,
                "mac_address": "",
            }
        return result

    def get_vlans(self) -> dict[str, Any]:
        """Return groups as VLANs conforming to the NAPALM schema.

        Returns:
            Dict keyed by group id (as a string)::

                {"name": str, "interfaces": ["Port 1", ...]}
        """
        state = self.state
        result: dict[str, Any] = {}
        for group in sorted(state.groups, key=lambda g: g.group_id):
            result[str(group.group_id)] = {
                "name": group.name,
                "interfaces": [interface_name(n) for n in state.group_ports(group.group_id)],
            }
        return result

    def is_alive(self) -> dict[str, bool]:
        """Return whether the adapter currently reports a healthy connection."""
        return {
            "is_alive": self.adapter is not None and self.adapter.status is ConnectionStatus.OK
        }

    # ------------------------------------------------------------------
    # Model access
    # ------------------------------------------------------------------

    @property
    def state(self) -> DeviceState:
        """The synchronised device model (read-only for callers)."""
        return self._require_adapter().state

    def port_color(self, port_number: int) -> str | None:
        return self.state.port_color(port_number)

    def member_name_and_color(self, port_number: int) -> tuple[str, str] | None:
        port = self.state.port(port_number)
        return self.state.member_name_and_color(port.member_of if port else None)

    # ------------------------------------------------------------------
    # Device operations
    # ------------------------------------------------------------------

    def identify(self, duration: int = 10) -> None:
        self._require_adapter().identify(duration)

    def reboot(self, delay_ms: int = 0) -> None:
        self._require_adapter().reboot(delay_ms)

    def reset(self, keep_ip: bool = True, keep_profiles: bool = True, delay_ms: int = 0) -> None:
        self._require_adapter().reset(keep_ip, keep_profiles, delay_ms)

    def recall_profile(self, profile_id: int, keep_ip: bool = True, delay_ms: int = 0) -> None:
        self._require_adapter().recall_profile(profile_id, keep_ip, delay_ms)

    def save_profile(self, profile_id: int, name: str) -> None:
        self._require_adapter().save_profile(profile_id, name)

    def set_port_group(self, port_number: int, group_id: int) -> None:
        self._require_adapter().set_port_group(port_number, group_id)

    def set_port_trunk(self, port_number: int, trunk_id: int) -> None:
        self._require_adapter().set_port_trunk(port_number, trunk_id)

    def increment_port_membership(self, port_number: int) -> None:
        self._require_adapter().increment_port_membership(port_number)

    def set_port_poe(self, port_number: int, enabled: bool) -> None:
        self._require_adapter().set_port_poe(port_number, enabled)

    def set_port_link_enabled(self, port_number: int, enabled: bool) -> None:
        self._require_adapter().set_port_link_enabled(port_number, enabled)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _start(self) -> None:
        self.adapter = create_adapter(self.config, self.hooks, timeout_s=float(self.timeout))
        logger.info("Opening connection to %s", self.adapter.address)
        self.adapter.connect()

    def _require_adapter(self) -> DeviceAdapter:
        """Return the active adapter or raise :exc:`.GigaCoreError`."""
        if self.adapter is None:
            raise GigaCoreError("Driver not open, call open() first.")
        return self.adapter
