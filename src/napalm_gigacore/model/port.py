"""Typed models for port and PoE port data."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class MemberType(str, Enum):
    """What kind of entity a port is assigned to."""

    NONE = "none"
    GROUP = "group"
    TRUNK = "trunk"


@dataclass
class MemberOf:
    """A port's assignment to exactly one group or trunk, or to nothing.

    Attributes:
        type: Kind of membership.
        id: ``group_id`` or ``trunk_id`` of the referenced entity.  Only
            meaningful when :attr:`type` is not :attr:`MemberType.NONE`;
            kept at ``0`` otherwise.
    """

    type: MemberType = MemberType.NONE
    id: int = 0

    def __post_init__(self) -> None:
        self.type = MemberType(self.type)
        if self.type is MemberType.NONE:
            self.id = 0


@dataclass
class Port:
    """A single switch port.

    Attributes:
        port_number: 1-based port number, stable for the connection lifetime.
        enabled: ``True`` if the port is administratively enabled.
        legend: Display label configured on the device.
        protected: Administrative lock; mutators refuse protected ports.
        link_up: ``True`` if the link is operationally up.
        member_of: Current group / trunk membership.
    """

    port_number: int
    enabled: bool = True
    legend: str = ""
    protected: bool = False
    link_up: bool = False
    member_of: MemberOf = field(default_factory=MemberOf)


@dataclass
class PoePort:
    """Power-over-Ethernet state of a port.

    Attributes:
        port_number: Matches :attr:`Port.port_number`.
        enabled: Administrative PoE on/off.
        sourcing: Observed power delivery as reported by the device.
    """

    port_number: int
    enabled: bool = False
    sourcing: bool = False


@dataclass
class PortUpdate:
    """A partial change to a :class:`Port`, as carried by push deltas.

    Any field set to ``None`` means "not present in this delta; leave
    unchanged".  Membership type and id arrive independently.
    """

    port_number: int
    enabled: bool | None = None
    legend: str | None = None
    protected: bool | None = None
    link_up: bool | None = None
    member_type: MemberType | None = None
    member_id: int | None = None


@dataclass
class PoePortUpdate:
    """A partial change to a :class:`PoePort`; ``None`` means unchanged."""

    port_number: int
    enabled: bool | None = None
    sourcing: bool | None = None
