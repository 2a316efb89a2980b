"""Command catalog: opcodes, argument domains and the modes they apply to.

The table is fixed and built once at import time from observed traffic.
Opcodes without confirmed semantics (0x01, anything above 0x08) are not
listed and cannot be looked up.

Domains map between the human unit a caller thinks in (percent, Kelvin,
seconds, named modes) and the raw argument byte. Linear domains use exact
rational arithmetic so every in-domain value round-trips in both directions.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from enum import Enum, IntEnum
from fractions import Fraction
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping

from .errors import ArgumentOutOfDomain, UnknownCommand


class Mode(IntEnum):
    """Operating modes. Values are the ModeSelect argument bytes."""

    CCT = 1
    HSI = 2
    SCENE = 3


class Scene(IntEnum):
    """Built-in scene presets, numbered as on the fixture."""

    SCENE_1 = 1
    SCENE_2 = 2
    SCENE_3 = 3
    SCENE_4 = 4
    SCENE_5 = 5
    SCENE_6 = 6
    SCENE_7 = 7
    SCENE_8 = 8


class Opcode(IntEnum):
    """Command opcodes (byte 7 of a standard packet)."""

    POWER = 0x00
    INTENSITY = 0x02
    COLOR_TEMPERATURE = 0x03
    HUE = 0x04
    SATURATION = 0x05
    MODE_SELECT = 0x06
    PICK_SCENE = 0x07
    SCENE_INTERVAL = 0x08


class Domain:
    """Valid argument values for one command."""

    def contains(self, raw: int) -> bool:
        raise NotImplementedError

    def to_raw(self, value: Any, command: str = "") -> int:
        raise NotImplementedError

    def to_human(self, raw: int, command: str = "") -> Any:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError

    def to_dict(self) -> dict:
        raise NotImplementedError

    def __contains__(self, raw: object) -> bool:
        return isinstance(raw, int) and self.contains(raw)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()})"


class LinearDomain(Domain):
    """Inclusive raw byte range with ``human = raw * scale``.

    A human value must land exactly on a raw step: 3250 K has no byte
    representation when the step is 100 K, so it is rejected rather than
    rounded.
    """

    def __init__(
        self,
        raw_min: int,
        raw_max: int,
        scale: Fraction | int = 1,
        unit: str = "",
        human_type: type = int,
    ) -> None:
        self.raw_min = raw_min
        self.raw_max = raw_max
        self.scale = Fraction(scale)
        self.unit = unit
        self.human_type = human_type

    @property
    def human_min(self) -> Any:
        return self.human_type(self.raw_min * self.scale)

    @property
    def human_max(self) -> Any:
        return self.human_type(self.raw_max * self.scale)

    @property
    def human_step(self) -> Any:
        return self.human_type(self.scale)

    def contains(self, raw: int) -> bool:
        if isinstance(raw, bool) or not isinstance(raw, int):
            return False
        return self.raw_min <= raw <= self.raw_max

    def to_raw(self, value: Any, command: str = "") -> int:
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise ArgumentOutOfDomain(command, value, self.describe())
        try:
            exact = Fraction(value)
        except (TypeError, ValueError, OverflowError) as e:
            raise ArgumentOutOfDomain(command, value, self.describe()) from e

        raw = round(exact / self.scale)
        if not self.contains(raw) or self.to_human(raw, command) != value:
            raise ArgumentOutOfDomain(command, value, self.describe())
        return raw

    def to_human(self, raw: int, command: str = "") -> Any:
        if not self.contains(raw):
            raise ArgumentOutOfDomain(command, raw, self.describe())
        return self.human_type(raw * self.scale)

    def describe(self) -> str:
        text = f"[{self.human_min}, {self.human_max}]"
        if self.unit:
            text += f" {self.unit}"
        if self.scale != 1:
            text += f" in steps of {self.human_step}"
        return text

    def to_dict(self) -> dict:
        return {
            "kind": "linear",
            "min": self.human_min,
            "max": self.human_max,
            "step": self.human_step,
            "unit": self.unit,
            "raw_min": self.raw_min,
            "raw_max": self.raw_max,
        }


class EnumDomain(Domain):
    """Enumerated set of raw bytes, each with a symbolic label.

    Human values may be given as the symbol itself (``Mode.HSI``, ``True``),
    its label (``"hsi"``, ``"on"``) or its raw byte.
    """

    def __init__(
        self,
        labels: Mapping[int, str],
        human: Callable[[int], Any] = int,
        enum: type[Enum] | None = None,
    ) -> None:
        self.labels = dict(labels)
        self.human = human
        self.enum = enum
        self._by_label = {label.lower(): raw for raw, label in self.labels.items()}
        if enum is not None:
            for member in enum:
                self._by_label.setdefault(member.name.lower(), member.value)

    def contains(self, raw: int) -> bool:
        if isinstance(raw, bool) or not isinstance(raw, int):
            return False
        return raw in self.labels

    def to_raw(self, value: Any, command: str = "") -> int:
        if isinstance(value, str):
            raw = self._by_label.get(value.strip().lower())
            if raw is None:
                raise ArgumentOutOfDomain(command, value, self.describe())
            return raw

        if isinstance(value, Enum) and not (
            self.enum is not None and isinstance(value, self.enum)
        ):
            raise ArgumentOutOfDomain(command, value, self.describe())

        if not isinstance(value, int) or not self.contains(int(value)):
            raise ArgumentOutOfDomain(command, value, self.describe())
        return int(value)

    def to_human(self, raw: int, command: str = "") -> Any:
        if not self.contains(raw):
            raise ArgumentOutOfDomain(command, raw, self.describe())
        return self.human(raw)

    def describe(self) -> str:
        return "{" + ", ".join(
            f"{raw}:{label}" for raw, label in sorted(self.labels.items())
        ) + "}"

    def to_dict(self) -> dict:
        return {
            "kind": "enum",
            "values": {label: raw for raw, label in sorted(self.labels.items())},
        }


@dataclass(frozen=True)
class Command:
    """One controllable aspect of the light."""

    name: str
    opcode: Opcode
    domain: Domain
    mode: Mode | None = None  # None: meaningful in any mode
    description: str = ""

    def allowed_in(self, mode: Mode | None) -> bool:
        """Whether the command may be sent while the light is in ``mode``.

        An unknown mode (``None``) cannot contradict anything.
        """
        return self.mode is None or mode is None or self.mode == mode

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "opcode": f"0x{self.opcode:02X}",
            "mode": self.mode.name if self.mode is not None else "ANY",
            "domain": self.domain.to_dict(),
            "description": self.description,
        }

    def __repr__(self) -> str:
        return f"Command({self.name}, opcode=0x{self.opcode:02X})"


POWER = Command(
    "power",
    Opcode.POWER,
    EnumDomain({0: "off", 1: "on"}, human=bool),
    description="Switch the light output off or on.",
)
INTENSITY = Command(
    "intensity",
    Opcode.INTENSITY,
    LinearDomain(0, 100, unit="%"),
    description="Output intensity in percent.",
)
COLOR_TEMPERATURE = Command(
    "color_temperature",
    Opcode.COLOR_TEMPERATURE,
    LinearDomain(0x20, 0x38, scale=100, unit="K"),
    Mode.CCT,
    "White color temperature in Kelvin.",
)
HUE = Command(
    "hue",
    Opcode.HUE,
    # 0x53 and above switch the light off instead of wrapping
    LinearDomain(0x00, 0x52, unit="step"),
    Mode.HSI,
    "Hue position on the fixture's color wheel.",
)
SATURATION = Command(
    "saturation",
    Opcode.SATURATION,
    LinearDomain(0, 100, unit="%"),
    Mode.HSI,
    "Color saturation in percent.",
)
MODE_SELECT = Command(
    "mode_select",
    Opcode.MODE_SELECT,
    EnumDomain({m.value: m.name.lower() for m in Mode}, human=Mode, enum=Mode),
    description="Switch between CCT, HSI and scene modes.",
)
PICK_SCENE = Command(
    "pick_scene",
    Opcode.PICK_SCENE,
    EnumDomain({s.value: s.name.lower() for s in Scene}, human=Scene, enum=Scene),
    Mode.SCENE,
    "Select one of the built-in scenes.",
)
SCENE_INTERVAL = Command(
    "scene_interval",
    Opcode.SCENE_INTERVAL,
    LinearDomain(0x01, 0x32, scale=Fraction(1, 10), unit="s", human_type=float),
    Mode.SCENE,
    "Scene animation interval in seconds.",
)

CATALOG: Mapping[str, Command] = MappingProxyType({
    cmd.name: cmd
    for cmd in (
        POWER,
        INTENSITY,
        COLOR_TEMPERATURE,
        HUE,
        SATURATION,
        MODE_SELECT,
        PICK_SCENE,
        SCENE_INTERVAL,
    )
})

_BY_OPCODE: Mapping[int, Command] = MappingProxyType(
    {int(cmd.opcode): cmd for cmd in CATALOG.values()}
)

_ALIASES = {
    "onoff": "power",
    "brightness": "intensity",
    "cct": "color_temperature",
    "temperature": "color_temperature",
    "kelvin": "color_temperature",
    "mode": "mode_select",
    "scene": "pick_scene",
    "interval": "scene_interval",
}


def _normalize(name: str) -> str:
    return "".join(ch for ch in name.lower() if ch not in "_- ")


_BY_NAME: Mapping[str, Command] = MappingProxyType({
    **{_normalize(alias): CATALOG[target] for alias, target in _ALIASES.items()},
    **{_normalize(name): cmd for name, cmd in CATALOG.items()},
})


def lookup(key: Command | str | int) -> Command:
    """Resolve a command by catalog entry, name or opcode.

    Names are matched ignoring case, spaces, dashes and underscores, so
    ``"ColorTemperature"``, ``"color-temperature"`` and ``"cct"`` all resolve.

    Raises:
        UnknownCommand: If nothing in the catalog matches.
    """
    if isinstance(key, Command):
        if CATALOG.get(key.name) is not key:
            raise UnknownCommand(key.name)
        return key
    if isinstance(key, str):
        cmd = _BY_NAME.get(_normalize(key))
    elif isinstance(key, int) and not isinstance(key, bool):
        cmd = _BY_OPCODE.get(int(key))
    else:
        cmd = None
    if cmd is None:
        raise UnknownCommand(key)
    return cmd


def iter_commands() -> Iterator[Command]:
    """Iterate catalog entries in opcode order."""
    return iter(sorted(CATALOG.values(), key=lambda cmd: cmd.opcode))
