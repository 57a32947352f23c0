"""Typed models for device identity and saved configuration profiles."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class DeviceIdentity:
    """General device information.

    Attributes:
        name: Device name configured by the operator.
        description: Free-text description.
        serial: Serial number.
        mac_address: Base MAC address.
        model: Model label, reported by gen2 devices and derived from the
            port count on gen1 devices.
        poe_capable: ``True`` if the device can source PoE.
        nr_ports: Number of ports; fixed once known for a connection.
        active_profile: Name of the currently active profile.
    """

    name: str = ""
    description: str = ""
    serial: str = ""
    mac_address: str = ""
    model: str = ""
    poe_capable: bool = False
    nr_ports: int = 0
    active_profile: str = ""


@dataclass
class Profile:
    """A saved configuration slot.

    Attributes:
        id: 1-based slot number.
        name: Profile name; ``""`` when the slot is empty.
        empty: ``True`` when no configuration is stored in the slot.
        protected: ``True`` when overwriting / recalling must be refused.
    """

    id: int
    name: str = ""
    empty: bool = True
    protected: bool = False


@dataclass
class ProfileUpdate:
    """A partial change to a :class:`Profile`; ``None`` means unchanged."""

    id: int
    name: str | None = None
    empty: bool | None = None
    protected: bool | None = None
