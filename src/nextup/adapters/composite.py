"""Composite provider - tasks from one backend, events from another."""

from datetime import datetime

from nextup.core.items import Item, Source, SourceKind
from nextup.core.window import Window
from nextup.errors import PersistFailure
from nextup.ports.item_provider import ItemProvider


class CompositeProvider:
    """
    Composite provider that routes by source kind.

    Implements the ItemProvider protocol. Either side may be missing, in which
    case that kind simply has no sources.
    """

    def __init__(
        self,
        tasks: ItemProvider | None = None,
        events: ItemProvider | None = None,
    ):
        self._tasks = tasks
        self._events = events

    def _for_kind(self, kind: SourceKind) -> ItemProvider | None:
        return self._events if kind == SourceKind.EVENT else self._tasks

    def list_sources(self, kind: SourceKind) -> list[Source]:
        provider = self._for_kind(kind)
        if provider is None:
            return []
        return provider.list_sources(kind)

    def query(self, source: Source, window: Window) -> list[Item]:
        provider = self._for_kind(source.kind)
        if provider is None:
            return []
        return provider.query(source, window)

    def save(self, item: Item) -> None:
        if item.is_event or self._tasks is None:
            raise PersistFailure(f"'{item.title}' is read-only", item)
        self._tasks.save(item)

    def create(
        self,
        source_id: str,
        title: str,
        due_at: datetime | None = None,
        notes: str | None = None,
    ) -> Item:
        if self._tasks is None:
            raise PersistFailure("No task provider configured")
        return self._tasks.create(source_id, title, due_at, notes)
