"""Tests for command packet builders."""

import pytest

from gvm_led_mcp.protocol.catalog import HUE, Mode, Opcode, Scene
from gvm_led_mcp.protocol.commands import (
    build,
    build_color_temperature,
    build_hue,
    build_intensity,
    build_mode,
    build_power,
    build_saturation,
    build_scene,
    build_scene_interval,
)
from gvm_led_mcp.protocol.errors import (
    ArgumentOutOfDomain,
    ModeMismatch,
    ProtocolError,
    UnknownCommand,
)
from gvm_led_mcp.protocol.framing import COMMAND_HEADER, verify_frame


def test_saturation_capture():
    """Saturation 5% in HSI mode matches captured traffic."""
    packet = build("saturation", 5, Mode.HSI)
    assert packet.hex() == "4c540900305700050105" "89ab"
    assert len(packet) == 12


def test_power_captures():
    assert build_power(True).hex() == "4c54090030570000010122df"
    assert build_power(False).hex() == "4c54090030570000010032fe"


def test_mode_captures():
    assert build_mode(Mode.CCT).hex() == "4c540900305700060101907f"
    assert build_mode(Mode.HSI).hex() == "4c540900305700060102a01c"
    assert build_mode(Mode.SCENE).hex() == "4c540900305700060103b03d"


def test_intensity_capture():
    assert build_intensity(10).hex() == "4c54090030570002010afdd4"


def test_color_temperature_encodes_hundreds_of_kelvin():
    packet = build_color_temperature(3200, Mode.CCT)
    assert packet.opcode == Opcode.COLOR_TEMPERATURE
    assert packet.argument == 0x20
    assert packet.hex().endswith("4fcc")


def test_hue_last_valid_value():
    packet = build_hue(0x52, Mode.HSI)
    assert packet.argument == 0x52
    assert packet.hex().endswith("9489")


def test_hue_overflow_rejected():
    """0x53 turns the fixture off, so it is classified out of domain."""
    with pytest.raises(ArgumentOutOfDomain):
        build_hue(0x53, Mode.HSI)


def test_scene_builders():
    assert build_scene(Scene.SCENE_3, Mode.SCENE).hex().endswith("0701" "03" "870d")
    assert build_scene_interval(1.0, Mode.SCENE).hex().endswith("0801" "0a" "3a15")


def test_all_packets_share_header_and_constant():
    packets = [
        build_power(True),
        build_intensity(50),
        build_color_temperature(5600),
        build_hue(10),
        build_saturation(100),
        build_mode("scene"),
        build_scene(8),
        build_scene_interval(5.0),
    ]
    for packet in packets:
        assert packet.header == COMMAND_HEADER
        assert packet.constant == 0x01
        assert verify_frame(bytes(packet))


def test_build_is_deterministic():
    assert build("hue", 40, Mode.HSI) == build("hue", 40, Mode.HSI)
    assert bytes(build("hue", 40, Mode.HSI)) == bytes(build("hue", 40, Mode.HSI))


# ─── Mode gating ─────────────────────────────────────────────────────

def test_hue_in_cct_mode_fails():
    with pytest.raises(ModeMismatch) as excinfo:
        build(HUE, 10, Mode.CCT)
    assert excinfo.value.required is Mode.HSI
    assert excinfo.value.current is Mode.CCT


def test_hue_in_hsi_or_unknown_mode_succeeds():
    assert build(HUE, 10, Mode.HSI).argument == 10
    assert build(HUE, 10, None).argument == 10
    assert build(HUE, 10).argument == 10


@pytest.mark.parametrize(
    "command,value,mode",
    [
        ("color_temperature", 4000, Mode.HSI),
        ("saturation", 50, Mode.SCENE),
        ("pick_scene", 1, Mode.CCT),
        ("scene_interval", 0.5, Mode.HSI),
    ],
)
def test_mode_specific_commands_gated(command, value, mode):
    with pytest.raises(ModeMismatch):
        build(command, value, mode)


@pytest.mark.parametrize("mode", list(Mode))
def test_any_mode_commands_never_gated(mode):
    build("power", True, mode)
    build("intensity", 50, mode)
    build("mode_select", Mode.HSI, mode)


def test_enforce_mode_override():
    """Callers may deliberately preload a value before switching mode."""
    packet = build(HUE, 10, Mode.CCT, enforce_mode=False)
    assert packet.argument == 10


def test_domain_checked_before_mode():
    """An invalid value is reported as such even in the wrong mode."""
    with pytest.raises(ArgumentOutOfDomain):
        build(HUE, 0x60, Mode.CCT)


def test_override_does_not_skip_domain_check():
    with pytest.raises(ArgumentOutOfDomain):
        build(HUE, 0x53, Mode.CCT, enforce_mode=False)


# ─── Errors ──────────────────────────────────────────────────────────

def test_intensity_out_of_range():
    with pytest.raises(ArgumentOutOfDomain):
        build_intensity(150)
    with pytest.raises(ArgumentOutOfDomain):
        build_intensity(-1)


def test_unknown_opcode():
    with pytest.raises(UnknownCommand):
        build(0x01, 0)


def test_errors_share_base_class():
    for call in (
        lambda: build("strobe", 1),
        lambda: build("intensity", 101),
        lambda: build("hue", 1, Mode.CCT),
    ):
        with pytest.raises(ProtocolError):
            call()


def test_no_clamping():
    """Out-of-domain values are rejected, never silently clamped."""
    with pytest.raises(ArgumentOutOfDomain):
        build_color_temperature(6000, Mode.CCT)
    with pytest.raises(ArgumentOutOfDomain):
        build_scene_interval(10.0, Mode.SCENE)
