"""Desired light settings and the commands needed to reach them.

A light is driven by writing whole settings snapshots: the first snapshot is
written in full, later ones only as the difference to the previous one.
Ordering follows what the fixture tolerates: power first, then the target
mode's values, then the ModeSelect switch last, so the light never shows the
new mode with stale values.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any

from ..protocol.catalog import (
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
)

# Settings attribute -> command, per mode, in write order
_MODE_FIELDS: dict[Mode, tuple[tuple[str, Command], ...]] = {
    Mode.CCT: (
        ("temperature", COLOR_TEMPERATURE),
        ("intensity", INTENSITY),
    ),
    Mode.HSI: (
        ("hue", HUE),
        ("saturation", SATURATION),
        ("intensity", INTENSITY),
    ),
    Mode.SCENE: (
        ("scene", PICK_SCENE),
        ("scene_interval", SCENE_INTERVAL),
        ("intensity", INTENSITY),
    ),
}


@dataclass(frozen=True)
class LightSettings:
    """Everything a light can be told, in human units."""

    enabled: bool = True
    mode: Mode = Mode.CCT
    hue: int = 0
    saturation: int = 100
    intensity: int = 10
    temperature: int = 3200
    scene: Scene = Scene.SCENE_1
    scene_interval: float = 1.0

    def validate(self) -> None:
        """Check every value against its command domain.

        Raises:
            ArgumentOutOfDomain: For the first value with no byte representation.
        """
        POWER.domain.to_raw(self.enabled, POWER.name)
        MODE_SELECT.domain.to_raw(self.mode, MODE_SELECT.name)
        for fields in _MODE_FIELDS.values():
            for attr, cmd in fields:
                cmd.domain.to_raw(getattr(self, attr), cmd.name)

    def replace(self, **changes: Any) -> LightSettings:
        if "enabled" in changes:
            changes["enabled"] = _coerce(POWER, changes["enabled"])
        if "mode" in changes:
            changes["mode"] = _coerce(MODE_SELECT, changes["mode"])
        if "scene" in changes:
            changes["scene"] = _coerce(PICK_SCENE, changes["scene"])
        return replace(self, **changes)

    def with_command(self, command: Command, value: Any) -> LightSettings:
        """Settings as they are after ``command`` has been sent."""
        if command is POWER:
            return self.replace(enabled=value)
        if command is MODE_SELECT:
            return self.replace(mode=value)
        for fields in _MODE_FIELDS.values():
            for attr, cmd in fields:
                if cmd is command:
                    return self.replace(**{attr: value})
        return self

    def to_dict(self) -> dict:
        d = asdict(self)
        d["mode"] = self.mode.name.lower()
        d["scene"] = int(self.scene)
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LightSettings:
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls().replace(**known)


@dataclass(frozen=True)
class PlannedCommand:
    """One command of a plan, with whether its mode check applies."""

    command: Command
    value: Any
    enforce_mode: bool = True

    def __repr__(self) -> str:
        flag = "" if self.enforce_mode else ", preload"
        return f"PlannedCommand({self.command.name}={self.value!r}{flag})"


def _coerce(command: Command, value: Any) -> Any:
    return command.domain.to_human(command.domain.to_raw(value, command.name))


def plan_full(settings: LightSettings) -> list[PlannedCommand]:
    """Commands that put a light of unknown state into ``settings``."""
    plan = [PlannedCommand(POWER, settings.enabled)]
    for attr, cmd in _MODE_FIELDS[settings.mode]:
        plan.append(PlannedCommand(cmd, getattr(settings, attr), enforce_mode=False))
    plan.append(PlannedCommand(MODE_SELECT, settings.mode))
    return plan


def plan_changes(
    previous: LightSettings, new: LightSettings
) -> list[PlannedCommand]:
    """Commands that move a light from ``previous`` to ``new``.

    Only values relevant to the new mode are compared. Values written ahead
    of a mode switch skip the mode check, since the switch follows them.
    """
    plan: list[PlannedCommand] = []
    if new.enabled != previous.enabled:
        plan.append(PlannedCommand(POWER, new.enabled))

    switching = new.mode != previous.mode
    for attr, cmd in _MODE_FIELDS[new.mode]:
        value = getattr(new, attr)
        if value != getattr(previous, attr):
            plan.append(PlannedCommand(cmd, value, enforce_mode=not switching))

    if switching:
        plan.append(PlannedCommand(MODE_SELECT, new.mode))
    return plan
