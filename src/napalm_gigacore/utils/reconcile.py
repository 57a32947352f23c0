"""State reconciler: merges decoded fragments into a :class:`DeviceState`.

Every method takes one decoded fragment, writes it into the model and
returns a :class:`~napalm_gigacore.model.changes.ChangeSet` describing what
actually changed.  The first observation of a collection initialises it
and fires every class that collection feeds; later observations are
compared field by field so that repeating a snapshot fires nothing.

The "first observation" test is a per-collection latch, independent of the
order in which fragments for different collections arrive.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from napalm_gigacore.model.changes import ChangeClass, ChangeSet, Rebuild
from napalm_gigacore.model.device import Profile, ProfileUpdate
from napalm_gigacore.model.group import Group, Trunk
from napalm_gigacore.model.port import (
    MemberOf,
    MemberType,
    PoePort,
    PoePortUpdate,
    Port,
    PortUpdate,
)
from napalm_gigacore.model.state import DeviceState

logger = logging.getLogger(__name__)

PORTS: str = "ports"
POE_PORTS: str = "poe_ports"
GROUPS: str = "groups"
TRUNKS: str = "trunks"
PROFILES: str = "profiles"

# Identity attributes that may be set from decoded identity fields.
_IDENTITY_FIELDS: frozenset[str] = frozenset(
    {"name", "description", "serial", "mac_address", "model", "active_profile"}
)


class Reconciler:
    """Owns all writes to one :class:`DeviceState`.

    Args:
        state: The model to maintain.  It must be fresh (empty) for a new
            connection; a reconciler never carries latches across models.
    """

    def __init__(self, state: DeviceState) -> None:
        self.state = state
        self._known: set[str] = set()
        # Last membership id received per port, kept while the type is none.
        self._member_ids: dict[int, int] = {}

    def is_known(self, collection: str) -> bool:
        """Return ``True`` once *collection* has been observed."""
        return collection in self._known

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def set_identity(self, fields: dict[str, Any]) -> ChangeSet:
        """Overwrite identity fields.  Identity is value-only: nothing fires."""
        identity = self.state.identity
        for key, value in fields.items():
            if key not in _IDENTITY_FIELDS:
                logger.debug("Ignoring unknown identity field %r", key)
                continue
            if getattr(identity, key) != value:
                setattr(identity, key, value)
        return ChangeSet()

    def set_active_profile(self, name: str) -> ChangeSet:
        return self.set_identity({"active_profile": name})

    # ------------------------------------------------------------------
    # Ports
    # ------------------------------------------------------------------

    def apply_ports(self, ports: list[Port], *, fire_protected: bool = True) -> ChangeSet:
        """Apply a complete port snapshot.

        The first non-empty snapshot initialises the port list, fixes
        ``nr_ports`` and requests a rebuild of actions, variables and
        presets.  Later snapshots are merged field by field.

        Args:
            ports: Decoded ports.
            fire_protected: Whether this resource carries the protected flag
                (gen2 does, the gen1 port table does not).
        """
        if self.is_known(PORTS):
            return self.merge_ports([_full_port_update(p) for p in ports])
        changes = ChangeSet()
        if not ports:
            logger.warning("Ignoring empty initial port snapshot")
            return changes
        self._known.add(PORTS)
        self.state.ports = [replace(p, member_of=replace(p.member_of)) for p in ports]
        self._member_ids = {p.port_number: p.member_of.id for p in ports}
        self.state.identity.nr_ports = len(ports)
        changes.fire(ChangeClass.LINK_STATE, ChangeClass.PORT_DISABLED, ChangeClass.PORT_MEMBERSHIP)
        if fire_protected:
            changes.fire(ChangeClass.PORT_PROTECTED)
        changes.request(Rebuild.ACTIONS, Rebuild.VARIABLES, Rebuild.PRESETS)
        for port in self.state.ports:
            changes.member_labels[port.port_number] = self.state.member_name_and_color(
                port.member_of
            )
        logger.debug("Initialised %d ports", len(ports))
        return changes

    def merge_ports(self, updates: list[PortUpdate]) -> ChangeSet:
        """Merge per-field port deltas; absent (``None``) fields are untouched."""
        changes = ChangeSet()
        for update in updates:
            port = self.state.port(update.port_number)
            if port is None:
                logger.debug("Ignoring update for unknown port %d", update.port_number)
                continue
            if update.legend is not None and update.legend != port.legend:
                port.legend = update.legend
            if update.link_up is not None and update.link_up != port.link_up:
                port.link_up = update.link_up
                changes.fire(ChangeClass.LINK_STATE)
            if update.enabled is not None and update.enabled != port.enabled:
                port.enabled = update.enabled
                changes.fire(ChangeClass.PORT_DISABLED)
            if update.protected is not None and update.protected != port.protected:
                port.protected = update.protected
                changes.fire(ChangeClass.PORT_PROTECTED)
            if update.member_type is not None or update.member_id is not None:
                if update.member_id is not None:
                    self._member_ids[port.port_number] = update.member_id
                elif update.member_type is MemberType.NONE:
                    self._member_ids[port.port_number] = 0
                member_of = MemberOf(
                    type=update.member_type or port.member_of.type,
                    id=self._member_ids.get(port.port_number, port.member_of.id),
                )
                changes.merge(self._set_member_of(port, member_of))
        return changes

    def apply_port_legends(self, legends: dict[int, str]) -> ChangeSet:
        return self.merge_ports(
            [PortUpdate(port_number=n, legend=legend) for n, legend in legends.items()]
        )

    def apply_port_protect(self, protected: dict[int, bool]) -> ChangeSet:
        return self.merge_ports(
            [PortUpdate(port_number=n, protected=flag) for n, flag in protected.items()]
        )

    def apply_memberships(self, members: dict[int, MemberOf]) -> ChangeSet:
        """Assign ports to groups / trunks.  Unlisted ports keep their membership."""
        changes = ChangeSet()
        for port_nr, member_of in members.items():
            port = self.state.port(port_nr)
            if port is not None:
                changes.merge(self._set_member_of(port, member_of))
        return changes

    # ------------------------------------------------------------------
    # PoE
    # ------------------------------------------------------------------

    def set_poe_capable(self, capable: bool) -> ChangeSet:
        """Record PoE capability; a toggle rebuilds variables, presets and feedbacks."""
        changes = ChangeSet()
        if capable == self.state.identity.poe_capable:
            return changes
        self.state.identity.poe_capable = capable
        if not capable:
            self.state.poe_ports = []
            self._known.discard(POE_PORTS)
        changes.fire(ChangeClass.POE_CAPABILITY_TOGGLED)
        changes.request(Rebuild.VARIABLES, Rebuild.PRESETS, Rebuild.FEEDBACKS)
        return changes

    def apply_poe_ports(self, ports: list[PoePort], *, with_sourcing: bool = True) -> ChangeSet:
        """Apply a complete PoE snapshot (initialise, then merge).

        Args:
            ports: Decoded PoE ports.
            with_sourcing: Whether *ports* carry a real sourcing indication
                (gen1 ``poe_config`` does not; sourcing comes from
                ``poe_status`` instead).
        """
        if self.is_known(POE_PORTS):
            return self.merge_poe_ports(
                [
                    PoePortUpdate(
                        port_number=p.port_number,
                        enabled=p.enabled,
                        sourcing=p.sourcing if with_sourcing else None,
                    )
                    for p in ports
                ]
            )
        changes = ChangeSet()
        if not ports:
            return changes
        self._known.add(POE_PORTS)
        self.state.poe_ports = [
            replace(p, sourcing=p.sourcing and p.enabled) for p in ports
        ]
        changes.fire(ChangeClass.POE_ENABLED, ChangeClass.POE_SOURCING)
        changes.request(Rebuild.VARIABLES, Rebuild.PRESETS)
        logger.debug("Initialised %d PoE ports", len(ports))
        return changes

    def merge_poe_ports(self, updates: list[PoePortUpdate]) -> ChangeSet:
        """Merge PoE deltas.

        An ``enabled`` transition to ``False`` forces ``sourcing`` to
        ``False`` without waiting for the device to report it.
        """
        changes = ChangeSet()
        for update in updates:
            poe = self.state.poe_port(update.port_number)
            if poe is None:
                logger.debug("Ignoring update for unknown PoE port %d", update.port_number)
                continue
            if update.sourcing is not None and update.sourcing != poe.sourcing:
                poe.sourcing = update.sourcing
                changes.fire(ChangeClass.POE_SOURCING)
            if update.enabled is not None and update.enabled != poe.enabled:
                poe.enabled = update.enabled
                changes.fire(ChangeClass.POE_ENABLED)
                if not poe.enabled and poe.sourcing:
                    poe.sourcing = False
                    changes.fire(ChangeClass.POE_SOURCING)
        return changes

    def disable_poe_locally(self, port_number: int, *, clear_enabled: bool = False) -> ChangeSet:
        """Zero ``sourcing`` (and optionally ``enabled``) ahead of device confirmation."""
        return self.merge_poe_ports(
            [
                PoePortUpdate(
                    port_number=port_number,
                    enabled=False if clear_enabled else None,
                    sourcing=False,
                )
            ]
        )

    def apply_poe_sourcing(self, sourcing: dict[int, bool]) -> ChangeSet:
        return self.merge_poe_ports(
            [PoePortUpdate(port_number=n, sourcing=flag) for n, flag in sourcing.items()]
        )

    # ------------------------------------------------------------------
    # Groups / trunks
    # ------------------------------------------------------------------

    def apply_groups(self, groups: list[Group]) -> ChangeSet:
        """Apply a complete group list.

        The first list, or any list whose size or id set differs from the
        stored one, replaces the collection and requests a rebuild of
        variables and presets.  Otherwise only color changes fire.
        """
        changes = ChangeSet()
        old_ids = [g.group_id for g in self.state.groups]
        if not self.is_known(GROUPS) or sorted(old_ids) != sorted(g.group_id for g in groups):
            self._known.add(GROUPS)
            self.state.groups = [replace(g) for g in groups]
            changes.fire(ChangeClass.GROUP_COLOR)
            changes.request(Rebuild.VARIABLES, Rebuild.PRESETS)
            return changes
        for incoming in groups:
            group = self.state.group(incoming.group_id)
            if group is None:
                continue
            group.name = incoming.name
            if incoming.color != group.color:
                group.color = incoming.color
                changes.fire(ChangeClass.GROUP_COLOR)
        # Keep device-reported order, which drives membership cycling.
        order = {g.group_id: i for i, g in enumerate(groups)}
        self.state.groups.sort(key=lambda g: order[g.group_id])
        return changes

    def apply_trunks(self, trunks: list[Trunk]) -> ChangeSet:
        """Apply a complete trunk list; a size or id change rebuilds variables."""
        changes = ChangeSet()
        old_ids = [t.trunk_id for t in self.state.trunks]
        if not self.is_known(TRUNKS) or sorted(old_ids) != sorted(t.trunk_id for t in trunks):
            self._known.add(TRUNKS)
            self.state.trunks = [replace(t) for t in trunks]
            changes.fire(ChangeClass.GROUP_COLOR)
            changes.request(Rebuild.VARIABLES)
            return changes
        for incoming in trunks:
            trunk = self.state.trunk(incoming.trunk_id)
            if trunk is None:
                continue
            trunk.name = incoming.name
            if incoming.color != trunk.color:
                trunk.color = incoming.color
                changes.fire(ChangeClass.GROUP_COLOR)
        order = {t.trunk_id: i for i, t in enumerate(trunks)}
        self.state.trunks.sort(key=lambda t: order[t.trunk_id])
        return changes

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def apply_profiles(self, profiles: list[Profile]) -> ChangeSet:
        """Apply a complete profile list (initialise, then merge)."""
        if self.is_known(PROFILES):
            return self.merge_profiles(
                [
                    ProfileUpdate(id=p.id, name=p.name, empty=p.empty, protected=p.protected)
                    for p in profiles
                ]
            )
        changes = ChangeSet()
        if not profiles:
            return changes
        self._known.add(PROFILES)
        self.state.profiles = [replace(p) for p in profiles]
        changes.fire(ChangeClass.PROFILE_PROTECTED)
        return changes

    def merge_profiles(self, updates: list[ProfileUpdate]) -> ChangeSet:
        """Merge profile deltas; name and emptiness are value-only."""
        changes = ChangeSet()
        for update in updates:
            profile = self.state.profile(update.id)
            if profile is None:
                logger.debug("Ignoring update for unknown profile %d", update.id)
                continue
            if update.name is not None:
                profile.name = update.name
            if update.empty is not None:
                profile.empty = update.empty
            if update.protected is not None and update.protected != profile.protected:
                profile.protected = update.protected
                changes.fire(ChangeClass.PROFILE_PROTECTED)
        return changes

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_member_of(self, port: Port, member_of: MemberOf) -> ChangeSet:
        changes = ChangeSet()
        if member_of.type is not MemberType.NONE:
            self._member_ids[port.port_number] = member_of.id
        if member_of == port.member_of:
            return changes
        port.member_of = replace(member_of)
        changes.fire(ChangeClass.PORT_MEMBERSHIP)
        changes.member_labels[port.port_number] = self.state.member_name_and_color(
            port.member_of
        )
        return changes


def _full_port_update(port: Port) -> PortUpdate:
    return PortUpdate(
        port_number=port.port_number,
        enabled=port.enabled,
        legend=port.legend,
        protected=port.protected,
        link_up=port.link_up,
        member_type=port.member_of.type,
        member_id=port.member_of.id,
    )
