"""Exceptions raised while validating and building light packets."""

from __future__ import annotations

from typing import Any


class ProtocolError(Exception):
    """Base class for local validation failures."""


class UnknownCommand(ProtocolError, LookupError):
    """No catalog entry matches the requested name or opcode."""

    def __init__(self, key: Any) -> None:
        self.key = key
        if isinstance(key, int) and not isinstance(key, bool):
            text = f"0x{key:02X}"
        else:
            text = repr(key)
        super().__init__(f"Unknown command {text}")


class ArgumentOutOfDomain(ProtocolError, ValueError):
    """A value has no valid raw byte representation for a command."""

    def __init__(self, command: str, value: Any, domain: str) -> None:
        self.command = command
        self.value = value
        self.domain = domain
        super().__init__(
            f"{command}: value {value!r} is outside the valid domain {domain}"
        )


class ModeMismatch(ProtocolError):
    """A command is only meaningful in a mode the light is not believed to be in."""

    def __init__(self, command: str, required: Any, current: Any) -> None:
        self.command = command
        self.required = required
        self.current = current
        super().__init__(
            f"{command} requires {required.name} mode, "
            f"but the light is believed to be in {current.name} mode"
        )
