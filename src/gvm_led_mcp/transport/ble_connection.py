"""BLE connection to a GVM light.

Commands are written without response to the first characteristic of the
vendor service. The connection knows nothing about packet contents; it only
checks that it was handed exactly one packet.
"""

from __future__ import annotations

import asyncio
import logging

from bleak import BleakClient
from bleak.exc import BleakError

from ..config import LightConfig
from ..protocol.framing import PACKET_SIZE
from .scanner import LightInfo

logger = logging.getLogger(__name__)


class TransportError(ConnectionError):
    """A connection or write to the light failed. Not retried by the caller."""


class BLEConnection:
    """Manages the BLE connection to one light.

    Usage::

        conn = BLEConnection(LightInfo(address))
        await conn.open()
        await conn.write(packet.data)
        await conn.close()
    """

    def __init__(self, info: LightInfo, config: LightConfig | None = None) -> None:
        self._info = info
        self._config = config or LightConfig()
        self._client: BleakClient | None = None
        self._characteristic = None

    @property
    def address(self) -> str:
        return self._info.address

    @property
    def info(self) -> LightInfo:
        return self._info

    @property
    def connected(self) -> bool:
        return self._client is not None and self._client.is_connected

    async def open(self) -> LightInfo:
        """Connect and locate the command characteristic.

        Raises:
            TransportError: If the light cannot be reached or lacks the service.
        """
        client = BleakClient(
            self._info.device or self._info.address,
            timeout=self._config.connect_timeout,
        )
        try:
            await client.connect()
            self._characteristic = self._find_characteristic(client)
        except TransportError:
            await self._disconnect(client)
            raise
        except (BleakError, asyncio.TimeoutError, OSError) as e:
            await self._disconnect(client)
            raise TransportError(
                f"Could not connect to light {self.address}: {e}"
            ) from e

        self._client = client
        logger.info(
            "Connected to %s (%s, mac=%s)",
            self.address,
            self._info.name or "unnamed",
            self._info.mac or "unknown",
        )
        return self._info

    def _find_characteristic(self, client: BleakClient):
        service = client.services.get_service(self._config.service_uuid)
        if service is None:
            raise TransportError(
                f"Light {self.address} does not expose service {self._config.service_uuid}"
            )
        if not service.characteristics:
            raise TransportError(f"Service on {self.address} has no characteristic")
        return service.characteristics[0]

    async def _disconnect(self, client: BleakClient) -> None:
        try:
            await client.disconnect()
        except (BleakError, asyncio.TimeoutError, OSError) as e:
            logger.warning("Error disconnecting from %s: %s", self.address, e)

    async def close(self) -> None:
        """Close the BLE connection."""
        if self._client is None:
            return
        try:
            await self._disconnect(self._client)
        finally:
            self._client = None
            self._characteristic = None
            logger.info("Disconnected from %s", self.address)

    async def write(self, data: bytes) -> None:
        """Write one packet to the light.

        Raises:
            TransportError: If not connected or the write fails.
            ValueError: If ``data`` is not a single packet.
        """
        if len(data) != PACKET_SIZE:
            raise ValueError(f"Packet must be {PACKET_SIZE} bytes, got {len(data)}")
        if not self.connected:
            raise TransportError(f"Not connected to light {self.address}")

        logger.debug("Write %s -> %s", data.hex(" "), self.address)
        try:
            await self._client.write_gatt_char(
                self._characteristic, data, response=False
            )
        except (BleakError, asyncio.TimeoutError, OSError) as e:
            raise TransportError(f"Write to {self.address} failed: {e}") from e

    async def ensure_connected(self) -> bool:
        """Reconnect if the link dropped.

        Returns:
            ``True`` if a reconnect happened, ``False`` if already connected.

        Raises:
            TransportError: If every reconnect attempt failed.
        """
        if self.connected:
            return False

        logger.warning("Light %s disconnected", self.address)
        attempts = max(1, self._config.reconnect_attempts)
        last_error: TransportError | None = None
        for attempt in range(1, attempts + 1):
            try:
                await self.open()
            except TransportError as e:
                last_error = e
                logger.warning(
                    "Reconnect attempt %d/%d to %s failed: %s",
                    attempt, attempts, self.address, e,
                )
                if attempt < attempts:
                    await asyncio.sleep(self._config.reconnect_delay)
                continue
            logger.info("Reconnected to %s", self.address)
            return True

        raise TransportError(
            f"Could not reconnect to {self.address} after {attempts} attempts"
        ) from last_error


class FakeConnection:
    """Stand-in for :class:`BLEConnection` when no lights are available.

    Writes are recorded and logged at INFO level.
    """

    def __init__(self, info: LightInfo, config: LightConfig | None = None) -> None:
        self._info = info
        self._connected = False
        self.writes: list[bytes] = []

    @property
    def address(self) -> str:
        return self._info.address

    @property
    def info(self) -> LightInfo:
        return self._info

    @property
    def connected(self) -> bool:
        return self._connected

    async def open(self) -> LightInfo:
        self._connected = True
        logger.info("Connected to simulated light %s", self.address)
        return self._info

    async def close(self) -> None:
        self._connected = False

    async def write(self, data: bytes) -> None:
        if len(data) != PACKET_SIZE:
            raise ValueError(f"Packet must be {PACKET_SIZE} bytes, got {len(data)}")
        if not self._connected:
            raise TransportError(f"Not connected to light {self.address}")
        self.writes.append(bytes(data))
        logger.info("Simulated light %s received %s", self.address, data.hex(" "))

    async def ensure_connected(self) -> bool:
        if self._connected:
            return False
        await self.open()
        return True
