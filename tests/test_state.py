"""Tests for the believed-mode state cell."""

import pytest

from gvm_led_mcp.models.state import ModeState
from gvm_led_mcp.protocol.catalog import HUE, MODE_SELECT, Mode
from gvm_led_mcp.protocol.commands import build
from gvm_led_mcp.protocol.errors import ArgumentOutOfDomain, ModeMismatch


def test_default_is_unknown():
    state = ModeState()
    assert state.current_mode is None
    assert not state.known


def test_set_mode():
    state = ModeState()
    state.set_mode(Mode.HSI)
    assert state.current_mode is Mode.HSI
    state.set_mode("cct")
    assert state.current_mode is Mode.CCT


def test_set_mode_rejects_invalid():
    state = ModeState(Mode.CCT)
    with pytest.raises(ArgumentOutOfDomain):
        state.set_mode("rgb")
    assert state.current_mode is Mode.CCT


def test_reset():
    state = ModeState(Mode.SCENE)
    state.reset()
    assert state.current_mode is None


def test_observe_only_mode_select_changes_belief():
    state = ModeState(Mode.CCT)
    state.observe(HUE, 10)
    assert state.current_mode is Mode.CCT
    state.observe(MODE_SELECT, Mode.HSI)
    assert state.current_mode is Mode.HSI
    state.observe("mode", "scene")
    assert state.current_mode is Mode.SCENE


def test_states_are_independent():
    """Two lights never share a mode belief."""
    a, b = ModeState(), ModeState()
    a.set_mode(Mode.HSI)
    assert b.current_mode is None


def test_building_does_not_change_state():
    state = ModeState(Mode.CCT)
    build(MODE_SELECT, Mode.HSI, state.current_mode)
    assert state.current_mode is Mode.CCT


def test_first_command_allowed_when_unknown():
    state = ModeState()
    build(HUE, 10, state.current_mode)
    state.set_mode(Mode.CCT)
    with pytest.raises(ModeMismatch):
        build(HUE, 10, state.current_mode)


def test_to_dict_and_repr():
    state = ModeState()
    assert state.to_dict() == {"mode": None}
    assert "unknown" in repr(state)
    state.set_mode(Mode.HSI)
    assert state.to_dict() == {"mode": "HSI"}
