"""Canonical in-memory model of one GigaCore connection."""

from __future__ import annotations

from dataclasses import dataclass, field

from napalm_gigacore.model.device import DeviceIdentity, Profile
from napalm_gigacore.model.group import Group, Trunk
from napalm_gigacore.model.port import MemberOf, MemberType, PoePort, Port


@dataclass
class DeviceState:
    """Every collection known about a device, owned by a single adapter.

    Collections start empty ("unknown") and become "known" on their first
    observation.  Only the reconciler writes to them; consumers use the
    read accessors below.

    Attributes:
        identity: Device identity and scalar facts.
        ports: Ports in device-reported order.
        poe_ports: PoE state per port (empty on non-PoE devices).
        groups: Groups in device-reported order.
        trunks: Trunks in device-reported order.
        profiles: Saved configuration slots.
    """

    identity: DeviceIdentity = field(default_factory=DeviceIdentity)
    ports: list[Port] = field(default_factory=list)
    poe_ports: list[PoePort] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)
    trunks: list[Trunk] = field(default_factory=list)
    profiles: list[Profile] = field(default_factory=list)

    @property
    def nr_ports(self) -> int:
        return self.identity.nr_ports

    @property
    def poe_capable(self) -> bool:
        return self.identity.poe_capable

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def port(self, port_number: int) -> Port | None:
        return next((p for p in self.ports if p.port_number == port_number), None)

    def poe_port(self, port_number: int) -> PoePort | None:
        return next((p for p in self.poe_ports if p.port_number == port_number), None)

    def group(self, group_id: int) -> Group | None:
        return next((g for g in self.groups if g.group_id == group_id), None)

    def trunk(self, trunk_id: int) -> Trunk | None:
        return next((t for t in self.trunks if t.trunk_id == trunk_id), None)

    def profile(self, profile_id: int) -> Profile | None:
        return next((p for p in self.profiles if p.id == profile_id), None)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def port_protected(self, port_number: int) -> bool:
        """Return ``True`` if the port exists and is protected."""
        port = self.port(port_number)
        return port is not None and port.protected

    def profile_empty(self, profile_id: int) -> bool:
        """Return ``True`` if the profile exists and holds no configuration."""
        profile = self.profile(profile_id)
        return profile is not None and profile.empty

    def profile_protected(self, profile_id: int) -> bool:
        profile = self.profile(profile_id)
        return profile is not None and profile.protected

    def member_name_and_color(self, member_of: MemberOf | None) -> tuple[str, str] | None:
        """Resolve a membership to the ``(name, color)`` of its group or trunk.

        Returns ``None`` for no membership or when the referenced entity is
        not (yet) known, so a ``none`` membership never resolves to a name.
        """
        if member_of is None:
            return None
        if member_of.type is MemberType.GROUP:
            group = self.group(member_of.id)
            if group is not None:
                return group.name, group.color
        elif member_of.type is MemberType.TRUNK:
            trunk = self.trunk(member_of.id)
            if trunk is not None:
                return trunk.name, trunk.color
        return None

    def port_color(self, port_number: int) -> str | None:
        """Return the color of the group or trunk the port belongs to."""
        port = self.port(port_number)
        if port is None:
            return None
        resolved = self.member_name_and_color(port.member_of)
        return resolved[1] if resolved else None

    def group_ports(self, group_id: int) -> list[int]:
        """Return the port numbers currently assigned to *group_id*."""
        return [
            p.port_number
            for p in self.ports
            if p.member_of.type is MemberType.GROUP and p.member_of.id == group_id
        ]
