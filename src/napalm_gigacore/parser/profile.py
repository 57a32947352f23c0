"""Parsers for GigaCore configuration profiles."""

from __future__ import annotations

from typing import Any

from napalm_gigacore.client.errors import GigaCoreDecodeError
from napalm_gigacore.model.device import Profile, ProfileUpdate
from napalm_gigacore.parser.text import (
    decode_uri,
    optional_field,
    require_dict,
    require_list,
    required_field,
    split_records,
)
from napalm_gigacore.vendor.gigacore.mappings import (
    GEN1_MAX_PROFILES,
    GEN1_PROFILE_TAG_WIDTH,
    GEN2_EMPTY_PROFILE,
)


def parse_active_profile(text: str) -> str:
    """Parse the gen1 ``config/profile_name`` body.

    The name is wrapped in one delimiter character on each side and
    URI-encoded.
    """
    return decode_uri(text[1:-1])


def parse_profile_list(text: str) -> list[Profile]:
    """Parse the gen1 ``config/icfg_profile_list`` body.

    ``*``-separated records, each prefixed by a 5-character slot tag.
    A record with an empty name is an empty slot.  Gen1 has no notion of
    protected profiles.

    Returns:
        Profiles with 1-based ids in slot order.
    """
    profiles: list[Profile] = []
    for i, record in enumerate(split_records(text, "*", GEN1_MAX_PROFILES)):
        name = decode_uri(record[GEN1_PROFILE_TAG_WIDTH:])
        profiles.append(Profile(id=i + 1, name=name, empty=name == "", protected=False))
    return profiles


def parse_profile_name(data: Any) -> str:
    """Parse the gen2 ``config/name`` value (a bare string)."""
    if not isinstance(data, str):
        raise GigaCoreDecodeError(f"Unexpected type for config/name: {data!r}")
    return data


def parse_profile_records(data: Any) -> list[Profile]:
    """Parse a complete gen2 ``config/profiles`` array.

    Slots are 0-based on the wire; ids are 1-based.
    """
    profiles: list[Profile] = []
    for record in require_list(data, "config/profiles"):
        record = require_dict(record, "config/profiles record")
        name = required_field(record, "name", str, "profile")
        profiles.append(
            Profile(
                id=required_field(record, "slot", int, "profile") + 1,
                name=name,
                empty=name == GEN2_EMPTY_PROFILE,
                protected=bool(optional_field(record, "protected", bool, "profile")),
            )
        )
    return profiles


def parse_profile_updates(data: Any) -> list[ProfileUpdate]:
    """Parse a gen2 ``config/profiles`` delta array."""
    updates: list[ProfileUpdate] = []
    for record in require_list(data, "config/profiles"):
        record = require_dict(record, "config/profiles record")
        name = optional_field(record, "name", str, "profile")
        updates.append(
            ProfileUpdate(
                id=required_field(record, "slot", int, "profile") + 1,
                name=name,
                empty=None if name is None else name == GEN2_EMPTY_PROFILE,
                protected=optional_field(record, "protected", bool, "profile"),
            )
        )
    return updates
