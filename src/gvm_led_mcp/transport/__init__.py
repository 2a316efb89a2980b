"""Bluetooth transport and discovery for GVM lights."""
