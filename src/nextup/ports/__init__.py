"""Ports - interfaces/protocols for external dependencies."""

from .item_provider import ItemProvider
from .settings_store import SettingsStore
from .badge_sink import BadgeSink

__all__ = [
    "ItemProvider",
    "SettingsStore",
    "BadgeSink",
]
