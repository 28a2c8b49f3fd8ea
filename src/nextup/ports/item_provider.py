"""Item provider interface."""

from datetime import datetime
from typing import Protocol

from nextup.core.items import Item, Source, SourceKind
from nextup.core.window import Window


class ItemProvider(Protocol):
    """Interface for the external source of truth for tasks and events.

    There is no cross-source query: items are fetched one source at a time.
    """

    def list_sources(self, kind: SourceKind) -> list[Source]:
        """List all sources of a kind. Raises ProviderUnavailable."""
        ...

    def query(self, source: Source, window: Window) -> list[Item]:
        """Fetch a source's items relevant to a window.

        May return more than the window admits; callers filter. Raises
        ProviderUnavailable or FetchFailure.
        """
        ...

    def save(self, item: Item) -> None:
        """Persist an item's completion state. Raises PersistFailure."""
        ...

    def create(
        self,
        source_id: str,
        title: str,
        due_at: datetime | None = None,
        notes: str | None = None,
    ) -> Item:
        """Create a new task in a task source. Raises PersistFailure."""
        ...
