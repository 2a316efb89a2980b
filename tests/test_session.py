"""Tests for the per-light control session."""

import asyncio

import pytest

from gvm_led_mcp.models.settings import LightSettings
from gvm_led_mcp.protocol.catalog import Mode
from gvm_led_mcp.protocol.errors import ArgumentOutOfDomain, ModeMismatch
from gvm_led_mcp.session import LightSession
from gvm_led_mcp.transport.ble_connection import FakeConnection, TransportError
from gvm_led_mcp.transport.scanner import LightInfo

SESSION_START = "4c5409000053000001009474"


class FailingConnection(FakeConnection):
    """Fake connection whose writes fail once ``fail`` is set."""

    fail = False

    async def write(self, data: bytes) -> None:
        if self.fail:
            raise TransportError("link lost")
        await super().write(data)


def _session(cls=FakeConnection, start_session=True):
    return LightSession(cls(LightInfo(address="AA:BB", name="LED 1")), start_session)


def _hex(conn):
    return [data.hex() for data in conn.writes]


def test_open_sends_session_start():
    session = _session()
    asyncio.run(session.open())
    assert _hex(session.connection) == [SESSION_START]
    assert session.started


def test_open_without_session_start():
    session = _session(start_session=False)
    asyncio.run(session.open())
    assert session.connection.writes == []
    assert not session.started


def test_send_writes_packet():
    session = _session()
    asyncio.run(session.open())
    packet = asyncio.run(session.send("saturation", 5))
    assert packet.hex() == "4c54090030570005010589ab"
    assert _hex(session.connection)[-1] == packet.hex()
    assert session.packets_sent == 2


def test_mode_select_updates_belief_after_write():
    session = _session()
    asyncio.run(session.open())
    assert session.state.current_mode is None
    asyncio.run(session.send("mode", Mode.CCT))
    assert session.state.current_mode is Mode.CCT


def test_mode_mismatch_sends_nothing():
    session = _session()
    asyncio.run(session.open())
    asyncio.run(session.send("mode", "cct"))
    before = list(session.connection.writes)
    with pytest.raises(ModeMismatch):
        asyncio.run(session.send("hue", 10))
    assert session.connection.writes == before


def test_force_overrides_mode_check():
    session = _session()
    asyncio.run(session.open())
    asyncio.run(session.send("mode", "cct"))
    packet = asyncio.run(session.send("hue", 10, enforce_mode=False))
    assert packet.argument == 10
    assert session.state.current_mode is Mode.CCT


def test_out_of_domain_sends_nothing():
    session = _session()
    asyncio.run(session.open())
    with pytest.raises(ArgumentOutOfDomain):
        asyncio.run(session.send("intensity", 150))
    assert len(session.connection.writes) == 1


def test_transport_failure_keeps_belief():
    session = _session(FailingConnection)
    asyncio.run(session.open())
    asyncio.run(session.send("mode", "cct"))
    session.connection.fail = True
    with pytest.raises(TransportError):
        asyncio.run(session.send("mode", "hsi"))
    assert session.state.current_mode is Mode.CCT


def test_reconnect_resets_belief_and_restarts_session():
    session = _session()
    asyncio.run(session.open())
    asyncio.run(session.send("mode", "hsi"))
    asyncio.run(session.connection.close())

    asyncio.run(session.send("intensity", 10))
    assert _hex(session.connection)[-2:] == [SESSION_START, "4c54090030570002010afdd4"]
    assert session.state.current_mode is None


def test_apply_full_then_changes():
    session = _session(start_session=False)
    asyncio.run(session.open())

    packets = asyncio.run(session.apply(LightSettings(mode=Mode.HSI, hue=5)))
    assert [p.opcode for p in packets] == [0x00, 0x04, 0x05, 0x02, 0x06]
    assert session.state.current_mode is Mode.HSI

    packets = asyncio.run(session.apply(session.settings.replace(saturation=5)))
    assert [p.hex() for p in packets] == ["4c54090030570005010589ab"]


def test_apply_validates_whole_plan_first():
    session = _session(start_session=False)
    asyncio.run(session.open())
    with pytest.raises(ArgumentOutOfDomain):
        asyncio.run(session.apply(LightSettings(intensity=200)))
    assert session.connection.writes == []
    assert session.settings is None


def test_direct_sends_update_applied_settings():
    session = _session(start_session=False)
    asyncio.run(session.open())
    asyncio.run(session.apply(LightSettings(mode=Mode.CCT)))
    asyncio.run(session.send("intensity", 70))
    assert session.settings.intensity == 70
    packets = asyncio.run(session.apply(session.settings.replace(intensity=70)))
    assert packets == []


def test_concurrent_sends_are_serialized():
    session = _session(start_session=False)

    async def run():
        await session.open()
        await asyncio.gather(*(session.send("intensity", i) for i in range(20)))

    asyncio.run(run())
    assert [data[9] for data in session.connection.writes] == list(range(20))


def test_sessions_do_not_share_mode():
    a, b = _session(), _session()
    asyncio.run(a.open())
    asyncio.run(b.open())
    asyncio.run(a.send("mode", "scene"))
    assert a.state.current_mode is Mode.SCENE
    assert b.state.current_mode is None


def test_to_dict():
    session = _session()
    asyncio.run(session.open())
    d = session.to_dict()
    assert d["address"] == "AA:BB"
    assert d["connected"] is True
    assert d["mode"] is None
    assert d["packets_sent"] == 1


def test_reconnect_forgets_settings_and_reapplies_all():
    session = _session(start_session=False)
    asyncio.run(session.open())
    asyncio.run(session.apply(LightSettings(mode=Mode.HSI, hue=5)))
    asyncio.run(session.connection.close())

    packets = asyncio.run(session.apply(session.settings.replace(hue=6)))
    assert [p.opcode for p in packets] == [0x00, 0x04, 0x05, 0x02, 0x06]
    assert session.state.current_mode is Mode.HSI
    assert session.to_dict()["settings"]["mode"] == "hsi"


def test_reconnect_before_send_clears_settings():
    session = _session()
    asyncio.run(session.open())
    asyncio.run(session.apply(LightSettings(mode=Mode.CCT)))
    asyncio.run(session.connection.close())
    asyncio.run(session.send("intensity", 20))
    assert session.settings is None
    assert session.state.current_mode is None


def test_open_closes_connection_when_session_start_fails():
    session = _session(FailingConnection)
    session.connection.fail = True
    with pytest.raises(TransportError):
        asyncio.run(session.open())
    assert not session.connection.connected
    assert not session.started
