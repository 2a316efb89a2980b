"""BLE discovery of GVM lights.

Lights advertise the local name ``BT_LED`` and the vendor service UUID.
CoreBluetooth hides peripheral MAC addresses, so the MAC is rebuilt from the
manufacturer data instead: the 16-bit manufacturer id carries the first two
address bytes (little-endian) and its 4-byte payload the remaining four.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from bleak import BleakScanner

from ..config import LightConfig

logger = logging.getLogger(__name__)


@dataclass
class LightInfo:
    """Summary of a discovered (or configured) light.

    Attributes:
        address: BLE address (MAC on Linux/Windows, CoreBluetooth UUID on macOS).
        name:    Advertisement local name, or an empty string if absent.
        mac:     MAC rebuilt from manufacturer data, if it was advertised.
        rssi:    Received signal strength in dBm (0 if unknown).
    """

    address: str
    name: str = ""
    mac: str | None = None
    rssi: int = 0
    device: Any = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "name": self.name,
            "mac": self.mac,
            "rssi": self.rssi,
        }


def format_mac(data: bytes) -> str:
    return ":".join(f"{b:02x}" for b in data)


def mac_from_manufacturer_data(manufacturer_data: dict[int, bytes] | None) -> str | None:
    """Rebuild the light's MAC address from advertised manufacturer data.

    Returns ``None`` if no entry has the expected 4-byte payload.
    """
    for company_id, payload in (manufacturer_data or {}).items():
        if len(payload) != 4:
            continue
        return format_mac(company_id.to_bytes(2, "little") + bytes(payload))
    return None


def is_gvm_light(
    local_name: str | None,
    service_uuids: list[str] | None,
    config: LightConfig,
) -> bool:
    """Return ``True`` if advertisement data belongs to a GVM light."""
    if local_name and local_name.strip() == config.device_name:
        return True
    if service_uuids:
        return config.service_uuid.lower() in {u.lower() for u in service_uuids}
    return False


def light_from_advertisement(
    address: str,
    local_name: str | None,
    service_uuids: list[str] | None,
    manufacturer_data: dict[int, bytes] | None,
    config: LightConfig,
    rssi: int = 0,
    device: Any = None,
) -> LightInfo | None:
    """Build a :class:`LightInfo` from raw advertisement fields, or ``None``."""
    if not is_gvm_light(local_name, service_uuids, config):
        return None
    return LightInfo(
        address=address,
        name=(local_name or "").strip(),
        mac=mac_from_manufacturer_data(manufacturer_data),
        rssi=rssi,
        device=device,
    )


async def discover_lights(config: LightConfig) -> list[LightInfo]:
    """Scan for ``config.scan_timeout`` seconds and return the lights seen.

    Results are sorted by signal strength, strongest first.
    """
    found = await BleakScanner.discover(timeout=config.scan_timeout, return_adv=True)

    lights = []
    for address, (device, adv) in found.items():
        info = light_from_advertisement(
            address,
            adv.local_name,
            adv.service_uuids,
            adv.manufacturer_data,
            config,
            rssi=adv.rssi,
            device=device,
        )
        if info is not None:
            lights.append(info)

    lights.sort(key=lambda light: light.rssi, reverse=True)
    logger.info("Scan found %d light(s) out of %d device(s)", len(lights), len(found))
    return lights
