"""Typed models for groups (VLAN-style broadcast domains) and trunks."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Group:
    """A group as configured on the switch.

    Attributes:
        group_id: Device-assigned identifier (not necessarily contiguous).
        name: Human-readable group name.
        color: Display color as a hex-like string (e.g. ``"#ff0000"``).
    """

    group_id: int
    name: str = ""
    color: str = ""


@dataclass
class Trunk:
    """An inter-switch uplink aggregate.

    On gen1 devices there is exactly one, the ISL trunk, always with
    ``trunk_id`` 1.
    """

    trunk_id: int
    name: str = ""
    color: str = ""
