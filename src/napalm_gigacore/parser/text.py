"""Decoding utilities shared across all parsers."""

from __future__ import annotations

from typing import Any
from urllib.parse import unquote

from napalm_gigacore.client.errors import GigaCoreDecodeError


def split_records(text: str, sep: str, limit: int | None = None) -> list[str]:
    """Split *text* on *sep*, keeping at most *limit* pieces.

    Mirrors the device's own truncation: pieces beyond *limit* are
    discarded, not merged into the last one.
    """
    pieces = text.split(sep)
    return pieces[:limit] if limit is not None else pieces


def decode_uri(s: str) -> str:
    """Decode a percent-encoded text field."""
    return unquote(s)


def to_int(s: str) -> int | None:
    """Parse the leading decimal digits of *s*, ignoring any trailing text.

    Returns ``None`` when *s* does not start with a digit, so callers can
    skip placeholder records (e.g. the empty trailing record).
    """
    s = s.strip()
    digits = ""
    for ch in s:
        if not ch.isdigit():
            break
        digits += ch
    return int(digits) if digits else None


def field_at(fields: list[str], index: int) -> str:
    """Return ``fields[index]`` or ``""`` when the record is short."""
    return fields[index] if index < len(fields) else ""


# ---------------------------------------------------------------------------
# JSON shape checks
# ---------------------------------------------------------------------------

def require_list(data: Any, what: str) -> list[Any]:
    if not isinstance(data, list):
        raise GigaCoreDecodeError(f"Unexpected type for {what}: {data!r}")
    return data


def require_dict(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise GigaCoreDecodeError(f"Unexpected type for {what}: {data!r}")
    return data


def optional_field(record: dict[str, Any], key: str, kind: type, what: str) -> Any:
    """Return ``record[key]`` checked against *kind*, or ``None`` if absent.

    ``bool`` is not accepted where ``int`` is expected.
    """
    if key not in record:
        return None
    value = record[key]
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise GigaCoreDecodeError(
            f"Unexpected type for {what}.{key}: {value!r} (expected {kind.__name__})"
        )
    return value


def required_field(record: dict[str, Any], key: str, kind: type, what: str) -> Any:
    value = optional_field(record, key, kind, what)
    if value is None:
        raise GigaCoreDecodeError(f"Missing {what}.{key} in {record!r}")
    return value
