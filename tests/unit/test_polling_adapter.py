"""Unit tests for napalm_gigacore.adapter.polling (gen1 devices)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import pytest
import requests
import responses as rsps_lib
from responses import matchers

from napalm_gigacore.adapter.base import next_member_id
from napalm_gigacore.adapter.polling import PollingAdapter, model_for_port_count, slot_name
from napalm_gigacore.client.errors import GigaCoreError
from napalm_gigacore.client.session import GigaCoreCredentials
from napalm_gigacore.model.device import ProfileUpdate
from napalm_gigacore.model.port import MemberOf, MemberType
from napalm_gigacore.utils.dispatch import ConnectionStatus, ConsumerHooks
from napalm_gigacore.vendor.gigacore import endpoints as ep

ADDRESS = "192.168.0.50"
BASE_URL = f"http://{ADDRESS}"

SWITCH_LEGEND = "GC%2016Xt,FOH%20rack,x,GC16-0042,x,x,00:50:c2:aa:bb:cc"
PORT_TABLE = "1/x/1/x/x/x/x/x/x/Up|2/x/0/x/x/x/x/x/x/Down|"
GROUP_TABLE = "0/x/ISL/2/x/#ffffff|1/x/Audio/1/x/#ff0000|2/x/Video/x/x/#00ff00|"
POE_CONFIG = "1|x|x|1/x/x/2,2/x/x/2,"
POE_STATUS = "#1/x/x/x/x/PoE turned ON|2/x/x/x/x/PoE turned OFF|"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class HookLog:
    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []

    def hooks(self) -> ConsumerHooks:
        return ConsumerHooks(
            check_feedbacks=lambda tokens: self.calls.append(("check_feedbacks", set(tokens))),
            rebuild_actions=lambda: self.calls.append(("rebuild_actions", None)),
            rebuild_variables=lambda: self.calls.append(("rebuild_variables", None)),
            rebuild_presets=lambda: self.calls.append(("rebuild_presets", None)),
            rebuild_feedbacks=lambda: self.calls.append(("rebuild_feedbacks", None)),
            update_status=lambda status, msg: self.calls.append(("status", (status, msg))),
        )

    def named(self, name: str) -> list[Any]:
        return [arg for n, arg in self.calls if n == name]


def _make_adapter(log: HookLog | None = None, **kwargs: Any) -> PollingAdapter:
    kwargs.setdefault("short_interval", 60.0)
    kwargs.setdefault("long_interval", 60.0)
    kwargs.setdefault("disconnect_grace", 0.0)
    adapter = PollingAdapter(log.hooks() if log else None, **kwargs)
    adapter.configure(ADDRESS, GigaCoreCredentials(password="secret"))
    return adapter


def _response(body: str, content_type: str = "text/html") -> requests.Response:
    resp = requests.Response()
    resp.status_code = 200
    resp._content = body.encode()
    resp.encoding = "utf-8"
    resp.headers["Content-Type"] = content_type
    return resp


def _feed(adapter: PollingAdapter, path: str, body: str) -> None:
    adapter._on_response(path, _response(body))


def _seed(adapter: PollingAdapter, ports: str = PORT_TABLE, groups: str = GROUP_TABLE) -> None:
    _feed(adapter, ep.PORTS, ports)
    _feed(adapter, ep.GROUPS, groups)


def _port_table(nr_ports: int) -> str:
    return "".join(f"{n}/x/1/x/x/x/x/x/x/Up|" for n in range(1, nr_ports + 1))


def _bodies(rsps: rsps_lib.RequestsMock, method: str, path: str) -> list[str]:
    return [
        c.request.body
        for c in rsps.calls
        if c.request.method == method and c.request.url.split("?")[0] == BASE_URL + path
    ]


async def _settle() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# Helpers under test
# ---------------------------------------------------------------------------

def test_slot_name_is_hex() -> None:
    assert slot_name(1) == "Slot1"
    assert slot_name(10) == "SlotA"


@pytest.mark.parametrize(
    ("nr_ports", "model"),
    [(10, "GigaCore10"), (14, "GigaCore14R"), (26, "GigaCore26i"), (2, "GigaCore")],
)
def test_model_for_port_count(nr_ports: int, model: str) -> None:
    assert model_for_port_count(nr_ports) == model


def test_next_member_id() -> None:
    assert next_member_id([1, 5, 9], 5) == 9
    assert next_member_id([1, 5, 9], 9) == 1
    assert next_member_id([1, 5, 9], 3) == 1
    assert next_member_id([], 3) is None


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_connect_populates_model() -> None:
    log = HookLog()
    adapter = _make_adapter(log)
    with rsps_lib.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(rsps_lib.GET, BASE_URL + ep.SWITCH_LEGEND, body=SWITCH_LEGEND)
        rsps.add(rsps_lib.GET, BASE_URL + ep.PORTS, body=PORT_TABLE)
        rsps.add(rsps_lib.GET, BASE_URL + ep.PORT_LEGEND, body="Desk/Stage/")
        rsps.add(rsps_lib.GET, BASE_URL + ep.POE_CONFIG, body=POE_CONFIG)
        rsps.add(rsps_lib.GET, BASE_URL + ep.POE_STATUS, body=POE_STATUS)
        rsps.add(rsps_lib.GET, BASE_URL + ep.GROUPS, body=GROUP_TABLE)
        rsps.add(rsps_lib.GET, BASE_URL + ep.PORT_PROTECT, json=[{"port": 1, "protect": False}])
        rsps.add(rsps_lib.GET, BASE_URL + ep.PROFILE_NAME, body='"Show"')
        rsps.add(rsps_lib.GET, BASE_URL + ep.PROFILE_LIST, body="Slot1Show*Slot2")

        await adapter.connect()
        await _settle()
        await adapter.drain()

        assert rsps.calls[0].request.headers["Authorization"].startswith("Basic ")

    assert adapter.status is ConnectionStatus.OK
    assert log.named("status")[:2] == [
        (ConnectionStatus.CONNECTING, None),
        (ConnectionStatus.OK, None),
    ]
    identity = adapter.state.identity
    assert identity.name == "GC 16Xt"
    assert identity.description == "FOH rack"
    assert identity.serial == "GC16-0042"
    assert identity.nr_ports == 2
    assert identity.model == "GigaCore"
    assert identity.active_profile == "Show"
    assert adapter.state.poe_capable is True
    assert [g.group_id for g in adapter.state.groups] == [1, 2]
    assert adapter.state.trunk(1).name == "ISL"
    assert adapter.state.profile_empty(2) is True
    await adapter.destroy()
    assert adapter.status is ConnectionStatus.DISCONNECTED


@pytest.mark.asyncio
async def test_handshake_failure_reports_connection_failure() -> None:
    log = HookLog()
    adapter = _make_adapter(log)
    with rsps_lib.RequestsMock() as rsps:
        rsps.add(
            rsps_lib.GET,
            BASE_URL + ep.SWITCH_LEGEND,
            body=requests.exceptions.ConnectionError("refused"),
        )
        await adapter.connect()
    assert adapter.status is ConnectionStatus.CONNECTION_FAILURE
    assert adapter._pollers == []
    (retry,) = adapter._timers
    delay = retry.when() - asyncio.get_running_loop().time()
    assert 4.0 < delay <= 5.0
    await adapter.destroy()


@pytest.mark.asyncio
async def test_failed_handshake_is_retried() -> None:
    adapter = _make_adapter(retry_delay=0.05)
    with rsps_lib.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(
            rsps_lib.GET,
            BASE_URL + ep.SWITCH_LEGEND,
            body=requests.exceptions.ConnectionError("refused"),
        )
        rsps.add(rsps_lib.GET, BASE_URL + ep.SWITCH_LEGEND, body=SWITCH_LEGEND)
        rsps.add(rsps_lib.GET, BASE_URL + ep.PORTS, body=PORT_TABLE)
        await adapter.connect()
        assert adapter.status is ConnectionStatus.CONNECTION_FAILURE
        for _ in range(100):
            if adapter.status is ConnectionStatus.OK:
                break
            await asyncio.sleep(0.02)
        assert adapter.status is ConnectionStatus.OK
        assert len(adapter._pollers) == 2
        await adapter.destroy()
    assert adapter.state.identity.name == "GC 16Xt"


@pytest.mark.asyncio
async def test_destroy_cancels_handshake_retry() -> None:
    adapter = _make_adapter(retry_delay=0.05)
    with rsps_lib.RequestsMock() as rsps:
        rsps.add(
            rsps_lib.GET,
            BASE_URL + ep.SWITCH_LEGEND,
            body=requests.exceptions.ConnectionError("refused"),
        )
        await adapter.connect()
        await adapter.destroy()
        await asyncio.sleep(0.1)
        assert len(rsps.calls) == 1
    assert adapter._timers == set()


@pytest.mark.asyncio
async def test_handshake_rejects_unexpected_body() -> None:
    adapter = _make_adapter()
    with rsps_lib.RequestsMock() as rsps:
        rsps.add(rsps_lib.GET, BASE_URL + ep.SWITCH_LEGEND, body="<html>login</html>")
        await adapter.connect()
    assert adapter.status is ConnectionStatus.CONNECTION_FAILURE
    await adapter.destroy()


@pytest.mark.asyncio
async def test_successful_request_restores_ok() -> None:
    adapter = _make_adapter()
    _seed(adapter)
    adapter.disconnect("Reboot triggered")
    assert adapter.status is ConnectionStatus.DISCONNECTED
    assert adapter.status_message == "Reboot triggered"
    with rsps_lib.RequestsMock() as rsps:
        rsps.add(rsps_lib.GET, BASE_URL + ep.PORTS, body=PORT_TABLE)
        adapter._fetch(ep.PORTS)
        await adapter.drain()
    assert adapter.status is ConnectionStatus.OK
    await adapter.destroy()


@pytest.mark.asyncio
async def test_poll_skips_paths_still_outstanding() -> None:
    adapter = _make_adapter()
    _seed(adapter)
    with rsps_lib.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        rsps.add(rsps_lib.GET, BASE_URL + ep.SWITCH_LEGEND, body=SWITCH_LEGEND)
        rsps.add(rsps_lib.GET, BASE_URL + ep.PORT_LEGEND, body="Desk/Stage/")
        rsps.add(rsps_lib.GET, BASE_URL + ep.PORTS, body=PORT_TABLE)
        rsps.add(rsps_lib.GET, BASE_URL + ep.POE_CONFIG, body=POE_CONFIG)
        rsps.add(rsps_lib.GET, BASE_URL + ep.POE_STATUS, body=POE_STATUS)
        rsps.add(rsps_lib.GET, BASE_URL + ep.GROUPS, body=GROUP_TABLE)
        rsps.add(rsps_lib.GET, BASE_URL + ep.PORT_PROTECT, json=[{"port": 1, "protect": False}])

        adapter._poll_device()
        adapter._poll_device()
        adapter._poll_device()
        assert adapter._http.pending == 6  # type: ignore[union-attr]
        await adapter.drain()
        assert len(rsps.calls) == 6
        assert adapter._outstanding == {}

        # Now PoE capable, so the status page joins the cycle.
        adapter._poll_device()
        await adapter.drain()
        assert len(rsps.calls) == 13
    await adapter.destroy()


@pytest.mark.asyncio
async def test_refetch_after_command_not_skipped() -> None:
    adapter = _make_adapter()
    _seed(adapter)
    with rsps_lib.RequestsMock() as rsps:
        rsps.add(rsps_lib.GET, BASE_URL + ep.PORTS, body=PORT_TABLE)
        rsps.add(rsps_lib.GET, BASE_URL + ep.PORTS, body=PORT_TABLE)
        adapter._poll_path(ep.PORTS)
        adapter._fetch(ep.PORTS)
        assert adapter._outstanding == {ep.PORTS: 2}
        await adapter.drain()
        assert len(rsps.calls) == 2
    assert adapter._outstanding == {}
    await adapter.destroy()


def test_connect_requires_configure() -> None:
    with pytest.raises(GigaCoreError):
        PollingAdapter().connect()


@pytest.mark.asyncio
async def test_handshake_requires_configure() -> None:
    with pytest.raises(GigaCoreError, match="not configured"):
        await PollingAdapter()._handshake()


# ---------------------------------------------------------------------------
# Ingest
# ---------------------------------------------------------------------------

class TestPortTable:
    def test_first_table_initialises(self) -> None:
        log = HookLog()
        adapter = _make_adapter(log)
        _feed(adapter, ep.PORTS, PORT_TABLE)

        assert adapter.state.nr_ports == 2
        assert adapter.state.port(1).link_up is True
        assert adapter.state.port(2).enabled is False
        assert [name for name, _ in log.calls] == [
            "rebuild_actions",
            "rebuild_variables",
            "rebuild_presets",
            "check_feedbacks",
        ]
        tokens = log.named("check_feedbacks")[0]
        assert {"port_state", "port_disabled", "port_color"} <= tokens
        assert "port_protected" not in tokens

    def test_repeat_table_is_silent(self) -> None:
        log = HookLog()
        adapter = _make_adapter(log)
        _feed(adapter, ep.PORTS, PORT_TABLE)
        log.calls.clear()
        _feed(adapter, ep.PORTS, PORT_TABLE)
        assert log.calls == []

    def test_link_change(self) -> None:
        log = HookLog()
        adapter = _make_adapter(log)
        _feed(adapter, ep.PORTS, PORT_TABLE)
        log.calls.clear()
        _feed(adapter, ep.PORTS, "1/x/1/x/x/x/x/x/x/Down|2/x/0/x/x/x/x/x/x/Down|")
        assert log.calls == [("check_feedbacks", {"port_state"})]

    def test_legends_survive_table_refresh(self) -> None:
        adapter = _make_adapter()
        _feed(adapter, ep.PORTS, PORT_TABLE)
        _feed(adapter, ep.PORT_LEGEND, "Desk/Stage/")
        _feed(adapter, ep.PORTS, PORT_TABLE)
        assert adapter.state.port(2).legend == "Stage"

    @pytest.mark.parametrize(("nr_ports", "model"), [(10, "GigaCore10"), (26, "GigaCore26i")])
    def test_model_from_port_count(self, nr_ports: int, model: str) -> None:
        adapter = _make_adapter()
        _feed(adapter, ep.PORTS, _port_table(nr_ports))
        assert adapter.state.identity.model == model


def test_groups_assign_members() -> None:
    adapter = _make_adapter()
    _seed(adapter)
    assert adapter.state.port(1).member_of == MemberOf(MemberType.GROUP, 1)
    assert adapter.state.port(2).member_of == MemberOf(MemberType.TRUNK, 1)
    assert adapter.state.port_color(1) == "#ff0000"


def test_port_protect_json() -> None:
    log = HookLog()
    adapter = _make_adapter(log)
    _seed(adapter)
    log.calls.clear()
    adapter._on_response(
        ep.PORT_PROTECT, _response('[{"port": 2, "protect": true}]', "application/json")
    )
    assert adapter.state.port_protected(2) is True
    assert log.calls == [("check_feedbacks", {"port_protected", "selected_port_protected"})]


def test_poe_status_sets_sourcing() -> None:
    adapter = _make_adapter()
    _seed(adapter)
    _feed(adapter, ep.POE_CONFIG, POE_CONFIG)
    _feed(adapter, ep.POE_STATUS, POE_STATUS)
    assert adapter.state.poe_port(1).sourcing is True
    assert adapter.state.poe_port(2).sourcing is False
    _feed(adapter, ep.POE_CONFIG, POE_CONFIG)
    assert adapter.state.poe_port(1).sourcing is True


def test_decode_error_drops_fragment(caplog: pytest.LogCaptureFixture) -> None:
    log = HookLog()
    adapter = _make_adapter(log)
    _seed(adapter)
    log.calls.clear()
    with caplog.at_level(logging.WARNING):
        _feed(adapter, ep.GROUPS, "1/x/Audio")
    assert "Dropping response to /config/groups" in caplog.text
    assert log.calls == []
    assert [g.group_id for g in adapter.state.groups] == [1, 2]


def test_non_json_protect_body_dropped(caplog: pytest.LogCaptureFixture) -> None:
    adapter = _make_adapter()
    _seed(adapter)
    with caplog.at_level(logging.WARNING):
        adapter._on_response(ep.PORT_PROTECT, _response("<html>", "application/json"))
    assert "Dropping response" in caplog.text


# ---------------------------------------------------------------------------
# Domain operations
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_protected_port_is_not_moved() -> None:
    adapter = _make_adapter()
    _seed(adapter)
    adapter.reconciler.apply_port_protect({1: True})
    with rsps_lib.RequestsMock() as rsps:
        adapter.set_port_group(1, 2)
        await adapter.drain()
        assert len(rsps.calls) == 0
    assert len(adapter.rejections) == 1
    assert adapter.rejections[0].reason == "port 1 is protected"
    await adapter.destroy()


@pytest.mark.asyncio
async def test_set_port_group_moves_and_refetches() -> None:
    adapter = _make_adapter()
    _seed(adapter)
    with rsps_lib.RequestsMock() as rsps:
        rsps.add(
            rsps_lib.GET,
            BASE_URL + ep.GROUP_PORT,
            match=[matchers.query_param_matcher({"port": "1", "group": "2"})],
        )
        rsps.add(
            rsps_lib.GET,
            BASE_URL + ep.GROUPS,
            body="0/x/ISL/2/x/#ffffff|1/x/Audio/x/x/#ff0000|2/x/Video/1/x/#00ff00|",
        )
        adapter.set_port_group(1, 2)
        await adapter.drain()
    assert adapter.state.port(1).member_of == MemberOf(MemberType.GROUP, 2)
    await adapter.destroy()


@pytest.mark.asyncio
async def test_increment_wraps_to_first_group() -> None:
    groups = "|".join(
        f"{g}/x/G{g}/{'3' if g == 20 else ''}/x/#0000{g:02d}" for g in range(1, 21)
    )
    adapter = _make_adapter()
    _seed(adapter, ports=_port_table(4), groups=groups)
    assert adapter.state.port(3).member_of == MemberOf(MemberType.GROUP, 20)
    with rsps_lib.RequestsMock() as rsps:
        rsps.add(
            rsps_lib.GET,
            BASE_URL + ep.GROUP_PORT,
            match=[matchers.query_param_matcher({"port": "3", "group": "1"})],
        )
        rsps.add(rsps_lib.GET, BASE_URL + ep.GROUPS, body=groups)
        adapter.increment_port_membership(3)
        await adapter.drain()
    assert adapter.rejections == []
    await adapter.destroy()


@pytest.mark.asyncio
async def test_increment_refuses_isl_port() -> None:
    adapter = _make_adapter()
    _seed(adapter)
    with rsps_lib.RequestsMock() as rsps:
        adapter.increment_port_membership(2)
        await adapter.drain()
        assert len(rsps.calls) == 0
    assert "ISL port" in adapter.rejections[0].reason
    await adapter.destroy()


@pytest.mark.asyncio
async def test_only_trunk_one_exists() -> None:
    adapter = _make_adapter()
    _seed(adapter)
    with rsps_lib.RequestsMock() as rsps:
        adapter.set_port_trunk(1, 2)
        await adapter.drain()
        assert len(rsps.calls) == 0
    assert adapter.rejections[0].reason == "only trunk 1 (ISL) exists, 2 is invalid"

    with rsps_lib.RequestsMock() as rsps:
        rsps.add(
            rsps_lib.GET,
            BASE_URL + ep.GROUP_PORT,
            match=[matchers.query_param_matcher({"port": "1", "group": "0"})],
        )
        rsps.add(rsps_lib.GET, BASE_URL + ep.GROUPS, body=GROUP_TABLE)
        adapter.set_port_trunk(1, 1)
        await adapter.drain()
    await adapter.destroy()


@pytest.mark.asyncio
async def test_recall_empty_profile_sends_nothing() -> None:
    adapter = _make_adapter()
    _feed(adapter, ep.PROFILE_LIST, "Slot1Show*Slot2")
    with rsps_lib.RequestsMock() as rsps:
        adapter.recall_profile(2, True, 0)
        await _settle()
        await adapter.drain()
        assert len(rsps.calls) == 0
    assert adapter._timers == set()
    assert adapter.rejections[0].operation == "recall_profile"
    await adapter.destroy()


@pytest.mark.asyncio
async def test_recall_protected_profile_sends_nothing() -> None:
    adapter = _make_adapter()
    _feed(adapter, ep.PROFILE_LIST, "Slot1Show*Slot2")
    adapter.reconciler.merge_profiles([ProfileUpdate(id=1, protected=True)])
    with rsps_lib.RequestsMock() as rsps:
        adapter.recall_profile(1, True, 0)
        await _settle()
        await adapter.drain()
        assert len(rsps.calls) == 0
    assert adapter._timers == set()
    assert adapter.rejections[0].reason == "profile 1 is protected and cannot be recalled"
    await adapter.destroy()


@pytest.mark.asyncio
async def test_recall_posts_then_disconnects() -> None:
    adapter = _make_adapter(disconnect_grace=0.2)
    _feed(adapter, ep.PROFILE_LIST, "Slot1Show*Slot2")
    with rsps_lib.RequestsMock() as rsps:
        rsps.add(rsps_lib.POST, BASE_URL + ep.PROFILE_ACTIVATE)
        adapter.recall_profile(1, True, 0)
        await _settle()
        await adapter.drain()
        while adapter._timers:
            await asyncio.sleep(0.05)
        assert _bodies(rsps, "POST", ep.PROFILE_ACTIVATE) == ["slot_name=Slot1&keep_ip=1"]
    assert adapter.status is ConnectionStatus.DISCONNECTED
    assert adapter.status_message == "Profile recall triggered"
    await adapter.destroy()


@pytest.mark.asyncio
async def test_reboot_and_reset_payloads() -> None:
    adapter = _make_adapter()
    with rsps_lib.RequestsMock() as rsps:
        rsps.add(rsps_lib.POST, BASE_URL + ep.MISC)
        rsps.add(rsps_lib.POST, BASE_URL + ep.MISC)
        adapter.reboot(0)
        adapter.reset(keep_ip=False, keep_profiles=False, delay_ms=0)
        await _settle()
        await adapter.drain()
        assert sorted(_bodies(rsps, "POST", ep.MISC)) == [
            "factory_full=yes&clear_profiles=yes",
            "now=1",
        ]
    await adapter.destroy()


@pytest.mark.asyncio
async def test_delayed_reboot_is_cancelled_by_destroy() -> None:
    adapter = _make_adapter()
    with rsps_lib.RequestsMock() as rsps:
        adapter.reboot(60_000)
        assert len(adapter._timers) == 1
        await adapter.destroy()
        await _settle()
        assert len(rsps.calls) == 0
    assert adapter._timers == set()


@pytest.mark.asyncio
async def test_identify_and_save_profile() -> None:
    adapter = _make_adapter()
    with rsps_lib.RequestsMock() as rsps:
        rsps.add(rsps_lib.POST, BASE_URL + ep.LMX)
        rsps.add(rsps_lib.POST, BASE_URL + ep.PROFILE_SAVE)
        adapter.identify(10)
        adapter.save_profile(10, "Show B")
        await adapter.drain()
        assert _bodies(rsps, "POST", ep.LMX) == ["wink=1"]
        assert _bodies(rsps, "POST", ep.PROFILE_SAVE) == ["slot_name=SlotA&profile_name=Show+B"]
    await adapter.destroy()


@pytest.mark.asyncio
async def test_poe_disable_clears_sourcing_immediately() -> None:
    log = HookLog()
    adapter = _make_adapter(log)
    _seed(adapter)
    _feed(adapter, ep.POE_CONFIG, POE_CONFIG)
    _feed(adapter, ep.POE_STATUS, POE_STATUS)
    log.calls.clear()
    with rsps_lib.RequestsMock() as rsps:
        rsps.add(rsps_lib.POST, BASE_URL + ep.POE_CONFIG)
        adapter.set_port_poe(1, False)
        poe = adapter.state.poe_port(1)
        assert poe.enabled is False
        assert poe.sourcing is False
        assert log.calls == [("check_feedbacks", {"poe_enabled", "poe_sourcing"})]
        await adapter.drain()
        assert _bodies(rsps, "POST", ep.POE_CONFIG) == ["hidden_portno_1=1&hidden_poe_mode_1=0"]
    await adapter.destroy()


@pytest.mark.asyncio
async def test_poe_on_non_poe_device_rejected() -> None:
    adapter = _make_adapter()
    _seed(adapter)
    with rsps_lib.RequestsMock() as rsps:
        adapter.set_port_poe(1, True)
        await adapter.drain()
        assert len(rsps.calls) == 0
    assert adapter.rejections[0].reason == "device is not PoE capable"
    await adapter.destroy()


@pytest.mark.asyncio
async def test_link_enable_uses_dual_media_code() -> None:
    adapter = _make_adapter()
    _feed(adapter, ep.PORTS, _port_table(26))
    with rsps_lib.RequestsMock() as rsps:
        rsps.add(rsps_lib.POST, BASE_URL + ep.PORTS)
        rsps.add(rsps_lib.POST, BASE_URL + ep.PORTS)
        rsps.add(rsps_lib.GET, BASE_URL + ep.PORTS, body=_port_table(26))
        rsps.add(rsps_lib.GET, BASE_URL + ep.PORTS, body=_port_table(26))
        adapter.set_port_link_enabled(22, True)
        adapter.set_port_link_enabled(5, True)
        await adapter.drain()
        assert sorted(_bodies(rsps, "POST", ep.PORTS)) == [
            "speed_22=1A1A0A0A4",
            "speed_5=1A1A0A0A0",
        ]
    await adapter.destroy()


@pytest.mark.asyncio
async def test_link_disable() -> None:
    adapter = _make_adapter()
    _seed(adapter)
    with rsps_lib.RequestsMock() as rsps:
        rsps.add(rsps_lib.POST, BASE_URL + ep.PORTS)
        rsps.add(rsps_lib.GET, BASE_URL + ep.PORTS, body=PORT_TABLE)
        adapter.set_port_link_enabled(1, False)
        await adapter.drain()
        assert _bodies(rsps, "POST", ep.PORTS) == ["speed_1=0A0A0A0A0"]
    await adapter.destroy()
