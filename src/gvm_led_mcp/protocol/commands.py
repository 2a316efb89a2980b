"""High-level packet builders.

:func:`build` validates a human-unit value against the command catalog and
the caller's belief about the light's mode, then frames it. Builders are
pure: they never touch mode state, which the caller updates once a
ModeSelect packet has actually been transmitted.
"""

from __future__ import annotations

import logging
from typing import Any

from .catalog import (
    COLOR_TEMPERATURE,
    HUE,
    INTENSITY,
    MODE_SELECT,
    PICK_SCENE,
    POWER,
    SATURATION,
    SCENE_INTERVAL,
    Command,
    Mode,
    Scene,
    lookup,
)
from .errors import ModeMismatch
from .framing import Packet, build_frame

logger = logging.getLogger(__name__)


def check_mode(command: Command, current_mode: Mode | None) -> None:
    """Raise :class:`ModeMismatch` if ``command`` contradicts ``current_mode``."""
    if not command.allowed_in(current_mode):
        raise ModeMismatch(command.name, command.mode, current_mode)


def build(
    command: Command | str | int,
    value: Any,
    current_mode: Mode | None = None,
    *,
    enforce_mode: bool = True,
) -> Packet:
    """Build a standard command packet.

    Args:
        command: Catalog entry, command name or opcode.
        value: Argument in human units (percent, Kelvin, seconds, Mode, ...).
        current_mode: Believed mode of the light, or ``None`` if unknown.
        enforce_mode: Set to ``False`` to send a mode-specific command while
            another mode is believed active, e.g. to preload values right
            before switching mode.

    Raises:
        UnknownCommand: ``command`` is not in the catalog.
        ArgumentOutOfDomain: ``value`` has no byte representation.
        ModeMismatch: The command is not valid in ``current_mode``.
    """
    cmd = lookup(command)
    raw = cmd.domain.to_raw(value, cmd.name)
    if enforce_mode:
        check_mode(cmd, current_mode)

    packet = build_frame(cmd.opcode, raw)
    logger.debug("Built %s=%r -> %s", cmd.name, value, packet.hex(" "))
    return packet


def build_power(on: bool, current_mode: Mode | None = None) -> Packet:
    """Build a Power command (0x00)."""
    return build(POWER, bool(on), current_mode)


def build_intensity(percent: int, current_mode: Mode | None = None) -> Packet:
    """Build an Intensity command (0x02).

    Args:
        percent: Intensity 0-100.
    """
    return build(INTENSITY, percent, current_mode)


def build_color_temperature(
    kelvin: int, current_mode: Mode | None = None
) -> Packet:
    """Build a ColorTemperature command (0x03).

    Args:
        kelvin: 3200-5600 in steps of 100.
    """
    return build(COLOR_TEMPERATURE, kelvin, current_mode)


def build_hue(hue: int, current_mode: Mode | None = None) -> Packet:
    """Build a Hue command (0x04).

    Args:
        hue: Hue step 0-82 (0x00-0x52).
    """
    return build(HUE, hue, current_mode)


def build_saturation(percent: int, current_mode: Mode | None = None) -> Packet:
    """Build a Saturation command (0x05).

    Args:
        percent: Saturation 0-100.
    """
    return build(SATURATION, percent, current_mode)


def build_mode(mode: Mode | str, current_mode: Mode | None = None) -> Packet:
    """Build a ModeSelect command (0x06)."""
    return build(MODE_SELECT, mode, current_mode)


def build_scene(scene: Scene | int, current_mode: Mode | None = None) -> Packet:
    """Build a PickScene command (0x07).

    Args:
        scene: Scene 1-8.
    """
    return build(PICK_SCENE, scene, current_mode)


def build_scene_interval(
    seconds: float, current_mode: Mode | None = None
) -> Packet:
    """Build a SceneInterval command (0x08).

    Args:
        seconds: 0.1-5.0 in steps of 0.1.
    """
    return build(SCENE_INTERVAL, seconds, current_mode)
