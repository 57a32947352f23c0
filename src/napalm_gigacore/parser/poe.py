"""Parsers for GigaCore Power-over-Ethernet data."""

from __future__ import annotations

from typing import Any

from napalm_gigacore.client.errors import GigaCoreDecodeError
from napalm_gigacore.model.port import PoePort, PoePortUpdate
from napalm_gigacore.parser.text import (
    field_at,
    optional_field,
    require_dict,
    require_list,
    required_field,
    split_records,
    to_int,
)
from napalm_gigacore.vendor.gigacore.mappings import (
    GEN1_MAX_PORTS,
    GEN1_POE_SOURCING,
    GEN2_POE_SOURCING,
)


def parse_poe_config(text: str) -> tuple[bool, list[PoePort]]:
    """Parse the gen1 ``config/poe_config`` body.

    The body has four ``|``-separated sections.  Section 0 is ``"1"`` on
    PoE capable devices; section 3 holds ``,``-separated per-port records
    whose ``/``-separated field 3 is the PoE mode (``"0"`` = off).

    Returns:
        ``(poe_capable, ports)``.  *ports* is empty for non-PoE devices.
        Sourcing is not part of this resource and is always ``False``.

    Raises:
        GigaCoreDecodeError: If a PoE capable device omits the port section.
    """
    sections = split_records(text, "|", 4)
    poe_capable = sections[0] == "1"
    if not poe_capable:
        return False, []
    if len(sections) < 4:
        raise GigaCoreDecodeError(f"config/poe_config has no port section: {text!r}")

    ports: list[PoePort] = []
    for record in split_records(sections[3], ",", GEN1_MAX_PORTS):
        fields = record.split("/")
        port_nr = to_int(fields[0])
        if port_nr is None:
            continue
        ports.append(PoePort(port_number=port_nr, enabled=field_at(fields, 3) != "0"))
    return True, ports


def parse_poe_status(text: str) -> dict[int, bool]:
    """Parse the gen1 ``stat/poe_status`` body.

    The first character is a status prefix; the rest is ``|``-separated
    per-port records whose field 5 reads ``PoE turned ON`` while sourcing.

    Returns:
        Mapping of port number to sourcing flag.
    """
    result: dict[int, bool] = {}
    for record in split_records(text[1:], "|", GEN1_MAX_PORTS):
        fields = record.split("/")
        port_nr = to_int(fields[0])
        if port_nr is None:
            continue
        result[port_nr] = field_at(fields, 5) == GEN1_POE_SOURCING
    return result


def parse_poe_capable(data: Any) -> bool:
    """Parse the gen2 ``poe/capable`` value (a bare boolean)."""
    if not isinstance(data, bool):
        raise GigaCoreDecodeError(f"Unexpected type for poe/capable: {data!r}")
    return data


def parse_poe_records(data: Any) -> list[PoePort]:
    """Parse a complete gen2 ``poe/ports`` array."""
    ports: list[PoePort] = []
    for record in require_list(data, "poe/ports"):
        record = require_dict(record, "poe/ports record")
        ports.append(
            PoePort(
                port_number=required_field(record, "port_number", int, "poe port"),
                enabled=required_field(record, "enabled", bool, "poe port"),
                sourcing=optional_field(record, "indication", str, "poe port")
                == GEN2_POE_SOURCING,
            )
        )
    return ports


def parse_poe_updates(data: Any) -> list[PoePortUpdate]:
    """Parse a gen2 ``poe/ports`` delta array of partial port objects."""
    updates: list[PoePortUpdate] = []
    for record in require_list(data, "poe/ports"):
        record = require_dict(record, "poe/ports record")
        indication = optional_field(record, "indication", str, "poe port")
        updates.append(
            PoePortUpdate(
                port_number=required_field(record, "port_number", int, "poe port"),
                enabled=optional_field(record, "enabled", bool, "poe port"),
                sourcing=None if indication is None else indication == GEN2_POE_SOURCING,
            )
        )
    return updates
