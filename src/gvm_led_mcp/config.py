"""Configuration for the GVM light MCP server.

Values are layered: dataclass defaults, then an optional JSON file, then
``GVM_*`` environment variables, then command-line flags.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "gvm_led.json"
ENV_PREFIX = "GVM_"


@dataclass
class LightConfig:
    device_name: str = "BT_LED"
    service_uuid: str = "00010203-0405-0607-0809-0a0b0c0d1910"
    scan_timeout: float = 5.0
    connect_timeout: float = 20.0
    reconnect_attempts: int = 3
    reconnect_delay: float = 5.0
    start_session: bool = True
    demo: bool = False
    log_level: str = "INFO"

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH) -> LightConfig:
        """Load from JSON file. Missing fields keep defaults."""
        config = cls()
        path = Path(config_path)
        if path.exists():
            with open(path, "r") as f:
                data = json.load(f)
            config.update(data, source=str(path))
        return config

    def update(self, data: dict, source: str = "") -> None:
        """Set known fields from ``data``, converting to the field's type."""
        types = {f.name: f.type for f in fields(self)}
        for key, value in data.items():
            if key not in types:
                logger.warning("Ignoring unknown config key %r in %s", key, source)
                continue
            setattr(self, key, _convert(types[key], value))

    def apply_env(self, environ: dict[str, str] | None = None) -> None:
        """Override fields from ``GVM_<FIELD>`` environment variables."""
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(self):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is not None:
                overrides[f.name] = raw
        self.update(overrides, source="environment")

    @classmethod
    def from_cli(cls, argv: Sequence[str] | None = None) -> LightConfig:
        """Parse CLI args overlaid on JSON config and environment."""
        parser = argparse.ArgumentParser(
            description="MCP server for GVM Bluetooth LED lights",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=(
                "Examples:\n"
                "  gvm-led-mcp\n"
                "  gvm-led-mcp --demo --log-level DEBUG\n"
                "  gvm-led-mcp --scan-timeout 10 --name BT_LED\n"
            ),
        )
        parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help=f"Path to config JSON file (default: {DEFAULT_CONFIG_PATH})")
        parser.add_argument("--name", dest="device_name", help="BLE local name of the lights (default: BT_LED)")
        parser.add_argument("--scan-timeout", dest="scan_timeout", type=float, help="Seconds to scan for lights (default: 5)")
        parser.add_argument("--connect-timeout", dest="connect_timeout", type=float, help="Seconds to wait for a connection (default: 20)")
        parser.add_argument("--reconnect-attempts", dest="reconnect_attempts", type=int, help="Reconnect attempts before giving up (default: 3)")
        parser.add_argument("--no-session-start", dest="start_session", action="store_false", default=None, help="Do not send the session-start packet on connect")
        parser.add_argument("--demo", dest="demo", action="store_true", default=None, help="Use simulated lights instead of Bluetooth")
        parser.add_argument("--log-level", dest="log_level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level (default: INFO)")

        args = parser.parse_args(argv)

        config = cls.load(args.config)
        config.apply_env()

        # Override with any CLI args that were explicitly provided
        for key, value in vars(args).items():
            if key == "config":
                continue
            if value is not None:
                setattr(config, key, value)

        return config


def _convert(type_name: object, value: object) -> object:
    # Field types are strings under postponed annotations
    name = type_name if isinstance(type_name, str) else getattr(type_name, "__name__", "")
    if name == "bool" and isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    if name == "int":
        return int(value)
    if name == "float":
        return float(value)
    if name == "bool":
        return bool(value)
    return str(value)
