"""Data models for light state and settings."""

from .settings import LightSettings, PlannedCommand, plan_changes, plan_full
from .state import ModeState
