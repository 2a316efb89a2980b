"""Command encoding and MCP control for GVM Bluetooth LED lights."""

__version__ = "0.1.0"
