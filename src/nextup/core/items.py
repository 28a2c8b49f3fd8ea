"""Pure item domain logic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SourceKind(str, Enum):
    """The two disjoint kinds of source."""

    TASK = "task"
    EVENT = "event"


@dataclass(frozen=True)
class Source:
    """A named, coloured collection that owns items (a task list or a calendar)."""

    id: str
    title: str
    color: str = ""
    kind: SourceKind = SourceKind.TASK

    @property
    def is_read_only(self) -> bool:
        return self.kind == SourceKind.EVENT


@dataclass
class Item:
    """A task or an event occurrence."""

    id: str
    title: str
    source_id: str
    kind: SourceKind = SourceKind.TASK
    due_at: datetime | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    is_completed: bool = False
    completed_at: datetime | None = None
    has_recurrence: bool = False
    priority: int = 0
    notes: str | None = None
    source_title: str = ""
    all_day: bool = False

    @property
    def is_event(self) -> bool:
        return self.kind == SourceKind.EVENT

    @property
    def relevant_instant(self) -> datetime | None:
        """Due instant for tasks, start instant for events."""
        return self.start_at if self.is_event else self.due_at

    def mark_completed(self, at: datetime) -> None:
        """Complete the item; completion flag and timestamp move together."""
        self.is_completed = True
        self.completed_at = at

    def mark_incomplete(self) -> None:
        self.is_completed = False
        self.completed_at = None

    def marker(self) -> str:
        """Single-character status marker for list rendering."""
        if self.is_completed:
            return "x"
        if self.has_recurrence:
            return "~"
        if self.priority != 0:
            return "!"
        return " "


def format_time(dt: datetime) -> str:
    """
    Format a time compactly as "6pm".

    Midnight is treated as "no time of day" and renders as an empty string.
    """
    if dt.hour == 0 and dt.minute == 0:
        return ""
    hour = dt.hour % 12 or 12
    suffix = "am" if dt.hour < 12 else "pm"
    return f"{hour}{suffix}"


def format_event_span(item: Item) -> str:
    """Format an event's time span for display."""
    if item.all_day or item.start_at is None:
        return "All day"
    start = item.start_at.strftime("%H:%M")
    if item.end_at is None:
        return start
    return f"{start} - {item.end_at.strftime('%H:%M')}"
