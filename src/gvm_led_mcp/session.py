"""Control session for one light.

A session owns everything that is per connection: the transport, the
believed mode and the last settings written. All build-then-transmit
sequences go through one lock so packets reach the light in the order they
were validated against the mode belief.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from .models.settings import LightSettings, plan_changes, plan_full
from .models.state import ModeState
from .protocol.catalog import Command, lookup
from .protocol.commands import build
from .protocol.framing import Packet, build_session_start
from .transport.ble_connection import TransportError
from .transport.scanner import LightInfo

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """What a session needs from a transport."""

    @property
    def address(self) -> str: ...

    @property
    def info(self) -> LightInfo: ...

    @property
    def connected(self) -> bool: ...

    async def open(self) -> LightInfo: ...

    async def close(self) -> None: ...

    async def write(self, data: bytes) -> None: ...

    async def ensure_connected(self) -> bool: ...


class LightSession:
    """Serializes commands to one light and tracks its believed state."""

    def __init__(self, connection: Connection, start_session: bool = True) -> None:
        self.connection = connection
        self.state = ModeState()
        self.settings: LightSettings | None = None
        self.started = False
        self.packets_sent = 0
        self._start_session = start_session
        self._lock = asyncio.Lock()

    @property
    def address(self) -> str:
        return self.connection.address

    @property
    def name(self) -> str:
        return self.connection.info.name or self.address

    async def open(self) -> None:
        """Connect and, unless disabled, send the session-start packet."""
        await self.connection.open()
        if self._start_session:
            try:
                await self.start()
            except TransportError:
                await self.connection.close()
                raise

    async def close(self) -> None:
        await self.connection.close()
        self.started = False

    async def start(self) -> Packet:
        """Send the session-start packet."""
        async with self._lock:
            packet = build_session_start()
            await self._write(packet)
            self.started = True
            return packet

    async def send(
        self,
        command: Command | str | int,
        value: Any,
        *,
        enforce_mode: bool = True,
    ) -> Packet:
        """Validate, build and write one command.

        The mode belief changes only after a ModeSelect packet was written.

        Raises:
            ProtocolError: If the command fails validation; nothing is sent.
            TransportError: If the write fails; the belief is left unchanged.
        """
        cmd = lookup(command)
        async with self._lock:
            packet = build(cmd, value, self.state.current_mode, enforce_mode=enforce_mode)
            await self._write(packet)
            self._record(cmd, value)
            return packet

    async def apply(self, settings: LightSettings) -> list[Packet]:
        """Bring the light to ``settings``.

        The first call writes everything; later calls only write what changed.
        The whole plan is validated before the first packet is written.
        """
        settings.validate()
        async with self._lock:
            await self._ensure_connected()
            if self.settings is None:
                plan = plan_full(settings)
            else:
                plan = plan_changes(self.settings, settings)

            mode = self.state.current_mode
            packets = [
                build(item.command, item.value, mode, enforce_mode=item.enforce_mode)
                for item in plan
            ]
            for item, packet in zip(plan, packets):
                await self._write(packet)
                self._record(item.command, item.value)

            self.settings = settings
            logger.info("Applied %d command(s) to %s", len(packets), self.name)
            return packets

    def _record(self, command: Command, value: Any) -> None:
        self.state.observe(command, value)
        if self.settings is not None:
            self.settings = self.settings.with_command(command, value)

    async def _ensure_connected(self, resend_start: bool = True) -> None:
        if await self.connection.ensure_connected():
            # The light may have power-cycled; forget what we believed
            self.state.reset()
            self.settings = None
            if self._start_session and resend_start:
                await self.connection.write(build_session_start().data)
                self.packets_sent += 1

    async def _write(self, packet: Packet) -> None:
        await self._ensure_connected(resend_start=not packet.is_session_start)
        await self.connection.write(packet.data)
        self.packets_sent += 1

    def to_dict(self) -> dict:
        return {
            **self.connection.info.to_dict(),
            "connected": self.connection.connected,
            "session_started": self.started,
            "mode": self.state.to_dict()["mode"],
            "packets_sent": self.packets_sent,
            "settings": self.settings.to_dict() if self.settings else None,
        }
