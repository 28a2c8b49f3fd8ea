"""Adapters - I/O implementations of ports."""

from .ticktick_api import TickTickAdapter, AuthenticationError
from .icalpal import IcalPalAdapter
from .composite import CompositeProvider
from .json_settings import JsonFileSettingsStore
from .file_badge import FileBadgeSink

__all__ = [
    "TickTickAdapter",
    "AuthenticationError",
    "IcalPalAdapter",
    "CompositeProvider",
    "JsonFileSettingsStore",
    "FileBadgeSink",
]
