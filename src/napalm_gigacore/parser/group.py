"""Parsers for GigaCore groups and trunks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from napalm_gigacore.client.errors import GigaCoreDecodeError
from napalm_gigacore.model.group import Group, Trunk
from napalm_gigacore.model.port import MemberOf, MemberType
from napalm_gigacore.parser.text import (
    decode_uri,
    require_dict,
    require_list,
    required_field,
    split_records,
    to_int,
)
from napalm_gigacore.vendor.gigacore.mappings import (
    GEN1_ISL_GROUP_ID,
    GEN1_ISL_TRUNK_ID,
    GEN1_MAX_GROUP_RECORDS,
)


@dataclass
class GroupTable:
    """Everything the gen1 group table carries.

    Attributes:
        groups: Groups in device order (the ISL entry excluded).
        trunks: The synthetic ISL trunk, if reported.
        members: Port number to membership, for every listed member port.
    """

    groups: list[Group] = field(default_factory=list)
    trunks: list[Trunk] = field(default_factory=list)
    members: dict[int, MemberOf] = field(default_factory=dict)


def parse_group_table(text: str) -> GroupTable:
    """Parse the gen1 ``config/groups`` body.

    One ``|``-separated record per group, ``/``-separated fields::

        field 0: group id (0 = ISL trunk)
        field 2: URI-encoded name
        field 3: ``,``-separated member port numbers
        field 5: color

    Group id 0 is the inter-switch link and is reported as trunk id 1.

    Raises:
        GigaCoreDecodeError: If a group record is truncated.
    """
    table = GroupTable()
    for record in split_records(text, "|", GEN1_MAX_GROUP_RECORDS):
        fields = record.split("/")
        group_id = to_int(fields[0])
        if group_id is None:
            continue
        if len(fields) < 6:
            raise GigaCoreDecodeError(f"Truncated config/groups record: {record!r}")
        name = decode_uri(fields[2])
        color = fields[5]
        if group_id == GEN1_ISL_GROUP_ID:
            table.trunks.append(Trunk(trunk_id=GEN1_ISL_TRUNK_ID, name=name, color=color))
            member_of = MemberOf(type=MemberType.TRUNK, id=GEN1_ISL_TRUNK_ID)
        else:
            table.groups.append(Group(group_id=group_id, name=name, color=color))
            member_of = MemberOf(type=MemberType.GROUP, id=group_id)
        for port in fields[3].split(","):
            port_nr = to_int(port)
            if port_nr is not None:
                table.members[port_nr] = member_of
    return table


def parse_group_records(data: Any) -> list[Group]:
    """Parse a complete gen2 ``groups/group`` array."""
    groups: list[Group] = []
    for record in require_list(data, "groups/group"):
        record = require_dict(record, "groups/group record")
        groups.append(
            Group(
                group_id=required_field(record, "group_id", int, "group"),
                name=str(record.get("name", "")),
                color=str(record.get("color", "")),
            )
        )
    return groups


def parse_trunk_records(data: Any) -> list[Trunk]:
    """Parse a complete gen2 ``trunks/trunk`` array."""
    trunks: list[Trunk] = []
    for record in require_list(data, "trunks/trunk"):
        record = require_dict(record, "trunks/trunk record")
        trunks.append(
            Trunk(
                trunk_id=required_field(record, "trunk_id", int, "trunk"),
                name=str(record.get("name", "")),
                color=str(record.get("color", "")),
            )
        )
    return trunks
