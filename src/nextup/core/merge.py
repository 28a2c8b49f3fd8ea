"""Pure merge and sort logic - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Callable, Iterable

from .items import Item
from .window import Window, WindowKind, localize


@dataclass
class Agenda:
    """A day's events and tasks, kept as two separately sorted sections."""

    events: list[Item] = field(default_factory=list)
    tasks: list[Item] = field(default_factory=list)


def _timestamp(instant: datetime, tz: tzinfo | None) -> float:
    if tz is not None:
        instant = localize(instant, tz)
    return instant.timestamp()


def sort_items(items: Iterable[Item], window: Window) -> list[Item]:
    """
    Sort items for a window.

    Ascending by relevant instant, except completed-only windows, which list the
    most recently completed first. Ties keep their input order. Naive instants
    are read in the window's timezone, as `Window.contains` reads them.
    """
    tz = window.start.tzinfo if window.start is not None else None

    def chronological(item: Item) -> tuple[bool, float]:
        # Undated items sort after every timed item
        instant = item.relevant_instant
        return (instant is None, _timestamp(instant, tz) if instant else 0.0)

    def completion(item: Item) -> tuple[bool, float]:
        done = item.completed_at
        return (done is None, -_timestamp(done, tz) if done else 0.0)

    if window.kind == WindowKind.COMPLETED_ONLY:
        return sorted(items, key=completion)
    return sorted(items, key=chronological)


def merge(
    per_source_results: Iterable[Iterable[Item]],
    window: Window,
    predicate: Callable[[Item], bool] | None = None,
) -> list[Item]:
    """
    Concatenate per-source results, keep what the window admits, and sort.

    Pure function - no I/O.
    """
    admitted = [
        item
        for results in per_source_results
        for item in results
        if window.admits(item) and (predicate is None or predicate(item))
    ]
    return sort_items(admitted, window)


def build_agenda(
    event_results: Iterable[Iterable[Item]],
    task_results: Iterable[Iterable[Item]],
    window: Window,
) -> Agenda:
    """Build an agenda; events and tasks are never merged into one sequence."""
    return Agenda(
        events=merge(event_results, window, predicate=lambda i: i.is_event),
        tasks=merge(task_results, window, predicate=lambda i: not i.is_event),
    )
