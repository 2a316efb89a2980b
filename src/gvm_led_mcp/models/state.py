"""Believed operating mode of one light.

The light has no read-back channel, so this is the controller's belief,
updated optimistically after a ModeSelect packet has been written. Create
one instance per connection; nothing here is process-wide.
"""

from __future__ import annotations

import logging
from typing import Any

from ..protocol.catalog import MODE_SELECT, Command, Mode, lookup

logger = logging.getLogger(__name__)


class ModeState:
    """Single mutable cell holding the believed :class:`Mode` (or ``None``)."""

    def __init__(self, mode: Mode | None = None) -> None:
        self._mode = mode

    @property
    def current_mode(self) -> Mode | None:
        return self._mode

    @property
    def known(self) -> bool:
        return self._mode is not None

    def set_mode(self, mode: Mode | str) -> None:
        """Record a new believed mode.

        Accepts a :class:`Mode` or any label ModeSelect understands.
        """
        new_mode = MODE_SELECT.domain.to_human(
            MODE_SELECT.domain.to_raw(mode, MODE_SELECT.name), MODE_SELECT.name
        )
        if new_mode != self._mode:
            logger.debug(
                "Mode belief %s -> %s",
                self._mode.name if self._mode else "unknown",
                new_mode.name,
            )
        self._mode = new_mode

    def reset(self) -> None:
        """Forget the believed mode, e.g. after reconnecting."""
        self._mode = None

    def observe(self, command: Command | str | int, value: Any) -> None:
        """Apply the transition implied by a command that was just sent.

        Only ModeSelect changes the belief; other commands are ignored.
        """
        if lookup(command) is MODE_SELECT:
            self.set_mode(value)

    def to_dict(self) -> dict:
        return {"mode": self._mode.name if self._mode else None}

    def __repr__(self) -> str:
        return f"ModeState({self._mode.name if self._mode else 'unknown'})"
