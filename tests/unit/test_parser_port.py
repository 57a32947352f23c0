"""Unit tests for napalm_gigacore.parser.port."""

from __future__ import annotations

import pytest

from napalm_gigacore.client.errors import GigaCoreDecodeError
from napalm_gigacore.model.port import MemberOf, MemberType
from napalm_gigacore.parser.port import (
    parse_port_legends,
    parse_port_protect,
    parse_port_records,
    parse_port_table,
    parse_port_updates,
)

PORT_TABLE = "1/x/1/x/x/x/x/x/x/Up|2/x/0/x/x/x/x/x/x/Down|"


# ---------------------------------------------------------------------------
# Gen1 port table
# ---------------------------------------------------------------------------

class TestParsePortTable:
    def test_two_ports(self) -> None:
        ports = parse_port_table(PORT_TABLE)
        assert [p.port_number for p in ports] == [1, 2]
        assert ports[0].enabled is True
        assert ports[0].link_up is True
        assert ports[1].enabled is False
        assert ports[1].link_up is False

    def test_trailing_empty_record_skipped(self) -> None:
        assert len(parse_port_table(PORT_TABLE)) == 2

    def test_defaults(self) -> None:
        port = parse_port_table(PORT_TABLE)[0]
        assert port.legend == "Port 1"
        assert port.protected is False
        assert port.member_of == MemberOf()

    def test_link_state_is_exact_token(self) -> None:
        ports = parse_port_table("1/x/1/x/x/x/x/x/x/up|")
        assert ports[0].link_up is False

    def test_short_record_is_down(self) -> None:
        ports = parse_port_table("3/x/1|")
        assert ports[0].port_number == 3
        assert ports[0].enabled is True
        assert ports[0].link_up is False

    def test_empty_body(self) -> None:
        assert parse_port_table("") == []

    def test_truncated_to_26_records(self) -> None:
        text = "|".join(f"{n}/x/1/x/x/x/x/x/x/Up" for n in range(1, 31))
        assert len(parse_port_table(text)) == 26


def test_parse_port_legends_decodes() -> None:
    legends = parse_port_legends("Stage%20Left/FOH/")
    assert legends[1] == "Stage Left"
    assert legends[2] == "FOH"
    assert legends[3] == ""


class TestParsePortProtect:
    def test_flags(self) -> None:
        data = [{"port": 1, "protect": True}, {"port": 2, "protect": False}]
        assert parse_port_protect(data) == {1: True, 2: False}

    def test_missing_flag_skipped(self) -> None:
        assert parse_port_protect([{"port": 1}]) == {}

    def test_not_a_list(self) -> None:
        with pytest.raises(GigaCoreDecodeError):
            parse_port_protect({"port": 1})


# ---------------------------------------------------------------------------
# Gen2 records
# ---------------------------------------------------------------------------

FULL_PORTS = [
    {
        "port_number": 1,
        "legend": "Uplink",
        "enabled": True,
        "link_state": "up",
        "protected": False,
        "member_of": {"type": "group", "id": 5},
    },
    {
        "port_number": 2,
        "enabled": False,
        "link_state": "down",
        "protected": True,
        "member_of": {"type": "none"},
    },
]


class TestParsePortRecords:
    def test_full_snapshot(self) -> None:
        ports = parse_port_records(FULL_PORTS)
        assert ports[0].port_number == 1
        assert ports[0].legend == "Uplink"
        assert ports[0].link_up is True
        assert ports[0].member_of == MemberOf(MemberType.GROUP, 5)
        assert ports[1].enabled is False
        assert ports[1].link_up is False
        assert ports[1].protected is True
        assert ports[1].member_of.type is MemberType.NONE
        assert ports[1].member_of.id == 0

    def test_any_link_state_but_down_is_up(self) -> None:
        record = dict(FULL_PORTS[0], link_state="1G")
        assert parse_port_records([record])[0].link_up is True

    def test_not_a_list(self) -> None:
        with pytest.raises(GigaCoreDecodeError):
            parse_port_records({"port_number": 1})

    def test_missing_field(self) -> None:
        record = {k: v for k, v in FULL_PORTS[0].items() if k != "enabled"}
        with pytest.raises(GigaCoreDecodeError):
            parse_port_records([record])

    def test_group_without_id(self) -> None:
        record = dict(FULL_PORTS[0], member_of={"type": "group"})
        with pytest.raises(GigaCoreDecodeError):
            parse_port_records([record])

    def test_unknown_member_type(self) -> None:
        record = dict(FULL_PORTS[0], member_of={"type": "lag", "id": 1})
        with pytest.raises(GigaCoreDecodeError):
            parse_port_records([record])


class TestParsePortUpdates:
    def test_array_delta(self) -> None:
        updates = parse_port_updates([{"port_number": 3, "link_state": "down"}])
        assert len(updates) == 1
        assert updates[0].port_number == 3
        assert updates[0].link_up is False
        assert updates[0].enabled is None
        assert updates[0].member_type is None

    def test_keyed_delta(self) -> None:
        updates = parse_port_updates({"4": {"enabled": False}})
        assert updates[0].port_number == 4
        assert updates[0].enabled is False

    def test_partial_member_of(self) -> None:
        updates = parse_port_updates([{"port_number": 1, "member_of": {"id": 7}}])
        assert updates[0].member_type is None
        assert updates[0].member_id == 7

    def test_bad_key(self) -> None:
        with pytest.raises(GigaCoreDecodeError):
            parse_port_updates({"port": {"enabled": False}})

    def test_bool_is_not_an_int(self) -> None:
        with pytest.raises(GigaCoreDecodeError):
            parse_port_updates([{"port_number": True}])
