"""Parsers for GigaCore port data.

Gen1 port table (``config/ports``), one ``|``-separated record per port,
``/``-separated fields::

    1/x/1/x/x/x/x/x/x/Up|2/x/0/x/x/x/x/x/x/Down|

    field 0: port number
    field 2: admin state ("0" = disabled)
    field 9: link state ("Up" = link up)

Gen2 ports arrive as JSON objects from ``ports/port``.
"""

from __future__ import annotations

from typing import Any

from napalm_gigacore.client.errors import GigaCoreDecodeError
from napalm_gigacore.model.port import MemberOf, MemberType, Port, PortUpdate
from napalm_gigacore.parser.text import (
    decode_uri,
    field_at,
    optional_field,
    require_dict,
    require_list,
    required_field,
    split_records,
    to_int,
)
from napalm_gigacore.vendor.gigacore.mappings import (
    GEN1_LINK_UP,
    GEN1_MAX_PORTS,
    GEN1_PORT_ENABLED_FIELD,
    GEN1_PORT_LINK_FIELD,
    GEN2_LINK_DOWN,
)

# ---------------------------------------------------------------------------
# Gen1 (delimited text)
# ---------------------------------------------------------------------------


def parse_port_table(text: str) -> list[Port]:
    """Parse the gen1 port table into :class:`Port` records.

    Records whose first field is not a number (such as the empty record
    after the trailing ``|``) are skipped.  Legends default to
    ``"Port N"`` and membership to none; both are filled in by other
    resources.

    Args:
        text: Raw body of ``config/ports``.

    Returns:
        Ports in the order reported by the device.
    """
    ports: list[Port] = []
    for record in split_records(text, "|", GEN1_MAX_PORTS):
        fields = record.split("/")
        port_nr = to_int(fields[0])
        if port_nr is None:
            continue
        ports.append(
            Port(
                port_number=port_nr,
                enabled=field_at(fields, GEN1_PORT_ENABLED_FIELD) != "0",
                legend=f"Port {port_nr}",
                protected=False,
                link_up=field_at(fields, GEN1_PORT_LINK_FIELD) == GEN1_LINK_UP,
                member_of=MemberOf(),
            )
        )
    return ports


def parse_port_legends(text: str) -> dict[int, str]:
    """Parse the gen1 ``/``-separated, URI-encoded port legend list.

    Returns:
        Mapping of 1-based port number to legend.
    """
    return {
        i + 1: decode_uri(legend)
        for i, legend in enumerate(split_records(text, "/", GEN1_MAX_PORTS))
    }


def parse_port_protect(data: Any) -> dict[int, bool]:
    """Parse the gen1 ``config/portprotect`` JSON array.

    Args:
        data: Decoded JSON, expected ``[{"port": 1, "protect": false}, ...]``.

    Returns:
        Mapping of port number to protected flag, for records that carry one.

    Raises:
        GigaCoreDecodeError: If *data* is not a list of objects.
    """
    result: dict[int, bool] = {}
    for record in require_list(data, "config/portprotect"):
        record = require_dict(record, "config/portprotect record")
        port_nr = required_field(record, "port", int, "portprotect")
        protect = optional_field(record, "protect", bool, "portprotect")
        if protect is not None:
            result[port_nr] = protect
    return result


# ---------------------------------------------------------------------------
# Gen2 (JSON)
# ---------------------------------------------------------------------------


def parse_port_records(data: Any) -> list[Port]:
    """Parse a complete gen2 ``ports/port`` array into :class:`Port` records.

    Raises:
        GigaCoreDecodeError: If *data* is not an array or any record is
            missing a field.
    """
    ports: list[Port] = []
    for record in require_list(data, "ports/port"):
        record = require_dict(record, "ports/port record")
        member = require_dict(record.get("member_of"), "ports/port member_of")
        ports.append(
            Port(
                port_number=required_field(record, "port_number", int, "port"),
                enabled=required_field(record, "enabled", bool, "port"),
                legend=optional_field(record, "legend", str, "port") or "",
                protected=required_field(record, "protected", bool, "port"),
                link_up=required_field(record, "link_state", str, "port") != GEN2_LINK_DOWN,
                member_of=_parse_member_of(member),
            )
        )
    return ports


def parse_port_updates(data: Any) -> list[PortUpdate]:
    """Parse a gen2 ``ports/port`` delta into :class:`PortUpdate` records.

    Two shapes are accepted: an array of partial port objects each carrying
    ``port_number``, or an object keyed by port number whose values are
    partial port objects.

    Raises:
        GigaCoreDecodeError: On any other shape or a mistyped field.
    """
    if isinstance(data, dict):
        items: list[tuple[int | None, Any]] = []
        for key, value in data.items():
            port_nr = to_int(str(key))
            if port_nr is None:
                raise GigaCoreDecodeError(f"Unexpected key in ports/port delta: {key!r}")
            items.append((port_nr, value))
    else:
        items = [(None, value) for value in require_list(data, "ports/port")]

    updates: list[PortUpdate] = []
    for port_nr, record in items:
        record = require_dict(record, "ports/port record")
        if port_nr is None:
            port_nr = required_field(record, "port_number", int, "port")
        link_state = optional_field(record, "link_state", str, "port")
        update = PortUpdate(
            port_number=port_nr,
            enabled=optional_field(record, "enabled", bool, "port"),
            legend=optional_field(record, "legend", str, "port"),
            protected=optional_field(record, "protected", bool, "port"),
            link_up=None if link_state is None else link_state != GEN2_LINK_DOWN,
        )
        if "member_of" in record:
            member = require_dict(record["member_of"], "ports/port member_of")
            member_type = optional_field(member, "type", str, "member_of")
            update.member_type = _member_type(member_type) if member_type is not None else None
            update.member_id = optional_field(member, "id", int, "member_of")
        updates.append(update)
    return updates


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _member_type(value: str) -> MemberType:
    try:
        return MemberType(value)
    except ValueError as exc:
        raise GigaCoreDecodeError(f"Unknown member_of type {value!r}") from exc


def _parse_member_of(member: dict[str, Any]) -> MemberOf:
    member_type = _member_type(required_field(member, "type", str, "member_of"))
    member_id = optional_field(member, "id", int, "member_of")
    if member_type is not MemberType.NONE and member_id is None:
        raise GigaCoreDecodeError(f"member_of of type {member_type.value!r} without id")
    return MemberOf(type=member_type, id=member_id or 0)
