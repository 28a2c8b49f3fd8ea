"""Functional core - pure business logic with no I/O."""

from .items import Item, Source, SourceKind, format_time, format_event_span
from .visibility import is_visible, visible_sources, decode_id_set, encode_id_set, cycle_source
from .window import Window, WindowKind, single_day, today, unbounded_future, completed_only
from .merge import Agenda, merge, sort_items, build_agenda
from .ordering import project, reorder, decode_order, encode_order

__all__ = [
    # Items
    "Item",
    "Source",
    "SourceKind",
    "format_time",
    "format_event_span",
    # Visibility
    "is_visible",
    "visible_sources",
    "decode_id_set",
    "encode_id_set",
    "cycle_source",
    # Windows
    "Window",
    "WindowKind",
    "single_day",
    "today",
    "unbounded_future",
    "completed_only",
    # Merge
    "Agenda",
    "merge",
    "sort_items",
    "build_agenda",
    # Manual order
    "project",
    "reorder",
    "decode_order",
    "encode_order",
]
