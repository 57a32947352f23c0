"""Parsers for GigaCore device identity."""

from __future__ import annotations

from typing import Any

from napalm_gigacore.client.errors import GigaCoreDecodeError
from napalm_gigacore.parser.text import decode_uri, field_at, require_dict

# Identity fields a gen2 device reports, all as strings.
_GEN2_IDENTITY_FIELDS: tuple[str, ...] = (
    "name",
    "description",
    "serial",
    "mac_address",
    "model",
)


def parse_switch_legend(text: str) -> dict[str, str]:
    """Parse the gen1 ``config/switchlegend`` body.

    ``,``-separated fields::

        field 0: URI-encoded device name
        field 1: URI-encoded description
        field 3: serial number
        field 6: MAC address

    Returns:
        Identity fields keyed by :class:`~napalm_gigacore.model.device.DeviceIdentity`
        attribute name.  Fields missing from a short body are omitted.

    Raises:
        GigaCoreDecodeError: If the body does not even carry a description.
    """
    fields = text.split(",")[:7]
    if len(fields) < 2:
        raise GigaCoreDecodeError(f"Unexpected config/switchlegend body: {text[:200]!r}")
    result: dict[str, str] = {
        "name": decode_uri(fields[0]),
        "description": decode_uri(fields[1]),
    }
    if len(fields) > 3:
        result["serial"] = field_at(fields, 3)
    if len(fields) > 6:
        result["mac_address"] = field_at(fields, 6).strip()
    return result


def parse_device_record(data: Any) -> dict[str, str]:
    """Parse the gen2 ``device`` object.

    Only string-valued identity fields are taken; anything else is ignored.

    Raises:
        GigaCoreDecodeError: If *data* is not an object.
    """
    record = require_dict(data, "device")
    return {
        key: record[key]
        for key in _GEN2_IDENTITY_FIELDS
        if isinstance(record.get(key), str)
    }
