"""MCP server entry point for GVM Bluetooth LED lights.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Sequence

from mcp.server.fastmcp import FastMCP

from .config import LightConfig
from .models.settings import LightSettings
from .protocol.catalog import Scene, iter_commands, lookup
from .protocol.errors import ProtocolError
from .session import LightSession
from .transport.ble_connection import BLEConnection, FakeConnection, TransportError
from .transport.scanner import LightInfo, discover_lights

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "gvm-led",
    instructions="MCP server for GVM Bluetooth RGB/CCT studio lights",
)

# Sessions keyed by light address; each owns its own mode belief
_config = LightConfig()
_sessions: dict[str, LightSession] = {}
_discovered: dict[str, LightInfo] = {}

DEMO_LIGHT_COUNT = 3


def _get_sessions(address: str | None = None) -> list[LightSession]:
    """Sessions targeted by a tool call, raising if none are connected."""
    if not _sessions:
        raise RuntimeError("No lights connected. Use the 'connect' tool first.")
    if address is None:
        return list(_sessions.values())
    if address not in _sessions:
        raise RuntimeError(
            f"Light {address} is not connected. Connected: {list(_sessions)}"
        )
    return [_sessions[address]]


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.name.lower()
    return value


def _open_connection(info: LightInfo):
    if _config.demo:
        return FakeConnection(info, _config)
    return BLEConnection(info, _config)


async def _find_lights() -> list[LightInfo]:
    if _config.demo:
        lights = [
            LightInfo(address=f"DEMO-{i}", name=f"LED {i}")
            for i in range(1, DEMO_LIGHT_COUNT + 1)
        ]
    else:
        lights = await discover_lights(_config)
    for light in lights:
        _discovered[light.address] = light
    return lights


async def _send_all(
    command: str,
    value: Any,
    address: str | None = None,
    enforce_mode: bool = True,
) -> dict[str, Any]:
    """Send one command to each targeted light, reporting per-light results."""
    sessions = _get_sessions(address)
    results: dict[str, Any] = {}
    for session in sessions:
        try:
            packet = await session.send(command, value, enforce_mode=enforce_mode)
        except ProtocolError as e:
            results[session.address] = {"error": str(e)}
        except TransportError as e:
            results[session.address] = {"error": f"Transport failure: {e}"}
        else:
            results[session.address] = {
                "sent": packet.hex(" "),
                "mode": session.state.to_dict()["mode"],
            }
    return {"command": command, "value": _jsonable(value), "lights": results}


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
async def scan_lights() -> dict[str, Any]:
    """Scan for nearby GVM lights (BLE name 'BT_LED').

    Lights must be powered on and in 'APP' mode to be discoverable.
    """
    lights = await _find_lights()
    return {
        "lights": [
            {**light.to_dict(), "connected": light.address in _sessions}
            for light in lights
        ]
    }


@mcp.tool()
async def connect(address: str | None = None) -> dict[str, Any]:
    """Connect to a light, or to every light found by a scan.

    A session-start packet is sent after connecting unless disabled in the
    configuration.

    Args:
        address: BLE address from scan_lights. Omit to connect to all lights.
    """
    if address is not None:
        targets = [_discovered.get(address) or LightInfo(address=address)]
    else:
        targets = await _find_lights()

    connected = []
    errors = {}
    for info in targets:
        if info.address in _sessions:
            connected.append(info.address)
            continue
        session = LightSession(_open_connection(info), start_session=_config.start_session)
        try:
            await session.open()
        except TransportError as e:
            logger.warning("Could not connect to %s: %s", info.address, e)
            errors[info.address] = str(e)
            continue
        _sessions[info.address] = session
        connected.append(info.address)

    result: dict[str, Any] = {"connected": connected}
    if errors:
        result["errors"] = errors
    if not targets:
        result["message"] = "No lights found. Ensure they are powered on and in APP mode."
    return result


@mcp.tool()
async def disconnect(address: str | None = None) -> dict[str, Any]:
    """Close the connection to one light, or to all of them.

    Args:
        address: Light address. Omit to disconnect everything.
    """
    addresses = [address] if address is not None else list(_sessions)
    closed = []
    for addr in addresses:
        session = _sessions.pop(addr, None)
        if session is not None:
            await session.close()
            closed.append(addr)
    return {"disconnected": closed}


@mcp.tool()
def list_lights() -> dict[str, Any]:
    """List connected lights with their believed mode and last settings."""
    return {"lights": [session.to_dict() for session in _sessions.values()]}


@mcp.tool()
async def start_session(address: str | None = None) -> dict[str, Any]:
    """Resend the session-start packet.

    Args:
        address: Light address. Omit to target all connected lights.
    """
    results: dict[str, Any] = {}
    for session in _get_sessions(address):
        try:
            packet = await session.start()
        except TransportError as e:
            results[session.address] = {"error": f"Transport failure: {e}"}
        else:
            results[session.address] = {"sent": packet.hex(" ")}
    return {"lights": results}


# ─── LIGHT CONTROL TOOLS ─────────────────────────────────────────────

@mcp.tool()
async def set_power(on: bool, address: str | None = None) -> dict[str, Any]:
    """Switch light output on or off.

    Args:
        on: True to turn on, False to turn off.
        address: Light address. Omit to target all connected lights.
    """
    return await _send_all("power", on, address)


@mcp.tool()
async def set_intensity(percent: int, address: str | None = None) -> dict[str, Any]:
    """Set output intensity.

    Args:
        percent: Intensity 0-100.
        address: Light address. Omit to target all connected lights.
    """
    return await _send_all("intensity", percent, address)


@mcp.tool()
async def set_color_temperature(kelvin: int, address: str | None = None) -> dict[str, Any]:
    """Set white color temperature. Only valid in CCT mode.

    Args:
        kelvin: 3200-5600 in steps of 100.
        address: Light address. Omit to target all connected lights.
    """
    return await _send_all("color_temperature", kelvin, address)


@mcp.tool()
async def set_hue(hue: int, address: str | None = None) -> dict[str, Any]:
    """Set hue. Only valid in HSI mode.

    Args:
        hue: Hue step 0-82. Higher values switch the light off on the
             fixture, so they are rejected.
        address: Light address. Omit to target all connected lights.
    """
    return await _send_all("hue", hue, address)


@mcp.tool()
async def set_saturation(percent: int, address: str | None = None) -> dict[str, Any]:
    """Set color saturation. Only valid in HSI mode.

    Args:
        percent: Saturation 0-100.
        address: Light address. Omit to target all connected lights.
    """
    return await _send_all("saturation", percent, address)


@mcp.tool()
async def set_mode(mode: str, address: str | None = None) -> dict[str, Any]:
    """Switch operating mode.

    Args:
        mode: One of 'cct', 'hsi', 'scene'.
        address: Light address. Omit to target all connected lights.
    """
    return await _send_all("mode_select", mode, address)


@mcp.tool()
async def pick_scene(scene: int, address: str | None = None) -> dict[str, Any]:
    """Select a built-in scene. Only valid in scene mode.

    Args:
        scene: Scene number 1-8.
        address: Light address. Omit to target all connected lights.
    """
    return await _send_all("pick_scene", scene, address)


@mcp.tool()
async def set_scene_interval(seconds: float, address: str | None = None) -> dict[str, Any]:
    """Set the scene animation interval. Only valid in scene mode.

    Args:
        seconds: 0.1-5.0 in steps of 0.1.
        address: Light address. Omit to target all connected lights.
    """
    return await _send_all("scene_interval", seconds, address)


@mcp.tool()
async def send_command(
    command: str,
    value: Any,
    address: str | None = None,
    force: bool = False,
) -> dict[str, Any]:
    """Send any catalog command by name.

    Args:
        command: Command name (see the gvm://catalog/commands resource).
        value: Value in the command's human unit.
        address: Light address. Omit to target all connected lights.
        force: Skip the mode check, e.g. to preload values before a mode switch.
    """
    try:
        name = lookup(command).name
    except ProtocolError as e:
        return {"error": str(e)}
    return await _send_all(name, value, address, enforce_mode=not force)


@mcp.tool()
async def apply_settings(
    settings: dict[str, Any],
    address: str | None = None,
) -> dict[str, Any]:
    """Bring lights to a full settings snapshot, writing only what changed.

    Missing fields keep each light's current settings.

    Args:
        settings: Any of enabled, mode ('cct'/'hsi'/'scene'), hue, saturation,
                  intensity, temperature, scene, scene_interval.
        address: Light address. Omit to target all connected lights.
    """
    results: dict[str, Any] = {}
    for session in _get_sessions(address):
        base = session.settings or LightSettings()
        try:
            target = base.replace(**{
                k: v for k, v in settings.items()
                if k in LightSettings.__dataclass_fields__
            })
            packets = await session.apply(target)
        except ProtocolError as e:
            results[session.address] = {"error": str(e)}
        except TransportError as e:
            results[session.address] = {"error": f"Transport failure: {e}"}
        else:
            results[session.address] = {
                "sent": [p.hex(" ") for p in packets],
                "settings": target.to_dict(),
            }
    return {"lights": results}


@mcp.tool()
def get_status(address: str | None = None) -> dict[str, Any]:
    """Report believed mode, settings and packet counts.

    Args:
        address: Light address. Omit to report all connected lights.
    """
    return {"lights": [s.to_dict() for s in _get_sessions(address)]}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("gvm://catalog/commands")
def resource_commands() -> str:
    """Command catalog with opcodes, domains and modes."""
    return json.dumps({"commands": [cmd.to_dict() for cmd in iter_commands()]})


@mcp.resource("gvm://catalog/scenes")
def resource_scenes() -> str:
    """Built-in scenes."""
    return json.dumps({"scenes": {s.name.lower(): s.value for s in Scene}})


@mcp.resource("gvm://lights/status")
def resource_lights_status() -> str:
    """Connection and believed state of every connected light."""
    return json.dumps({"lights": [s.to_dict() for s in _sessions.values()]})


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def light_look(description: str) -> str:
    """Guide the AI to set up the lights for a described look.

    Args:
        description: The look to achieve, e.g. "warm interview key light".
    """
    return f"""Set up the connected lights for: {description}

Consider:
- CCT mode (3200-5600 K) for natural white light
- HSI mode (hue 0-82, saturation 0-100) for colored accents
- Scene mode for animated effects
- Intensity 0-100 for balance between lights

Use list_lights to see what is connected, then apply_settings to set
mode and values on each light in one step."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if level.upper() != "DEBUG":
        logging.getLogger("bleak").setLevel(logging.WARNING)


def main(argv: Sequence[str] | None = None) -> None:
    """Run the MCP server with stdio transport."""
    global _config
    _config = LightConfig.from_cli(argv)
    setup_logging(_config.log_level)
    if _config.demo:
        logger.warning("--demo set, not using a real bluetooth stack")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
