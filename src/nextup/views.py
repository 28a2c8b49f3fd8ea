"""Views - each owns the last known-good snapshot of what it displays."""

import asyncio
import logging
from datetime import date, datetime, tzinfo
from typing import Callable

from .badge import BadgeCounter
from .core.items import Item, Source, SourceKind
from .core.merge import Agenda, build_agenda, merge
from .core.ordering import project, reorder
from .core.window import Window, single_day
from .errors import FetchFailure, NextupError, ProviderUnavailable
from .fetcher import SourceFetcher
from .preferences import Preferences
from .timers import Timer
from .toggler import COMPLETE_DELAY, CompletionToggler, TogglePlan

logger = logging.getLogger(__name__)


def _label_sources(items: list[Item], sources: list[Source]) -> None:
    titles = {s.id: s.title for s in sources}
    for item in items:
        if not item.source_title:
            item.source_title = titles.get(item.source_id, "")


class TaskView:
    """
    A list of tasks for one window.

    `refresh` re-reads the hidden lists, fetches, merges and, for views with a
    manual order, re-applies the stored order. A failed fetch keeps the previous
    snapshot and records the error in `last_error`.
    """

    def __init__(
        self,
        name: str,
        fetcher: SourceFetcher,
        preferences: Preferences,
        window_factory: Callable[[], Window],
        timer: Timer,
        badge: BadgeCounter | None = None,
        source_id: str | None = None,
        manual_order: bool = False,
        delay: float = COMPLETE_DELAY,
        clock: Callable[[], datetime] | None = None,
    ):
        self.name = name
        self.fetcher = fetcher
        self.preferences = preferences
        self.window_factory = window_factory
        self.badge = badge
        self.source_id = source_id
        self.manual_order = manual_order
        self.clock = clock
        self.snapshot: list[Item] = []
        self.last_error: NextupError | None = None

        self.toggler = CompletionToggler(
            fetcher.provider,
            timer,
            on_commit=self._after_commit,
            delay=delay,
            clock=clock,
        )

    async def refresh(self) -> list[Item]:
        window = self.window_factory()
        hidden = self.preferences.hidden_sources(SourceKind.TASK)
        try:
            sources = await self.fetcher.list_sources(SourceKind.TASK, hidden)
            if self.source_id is not None:
                sources = [s for s in sources if s.id == self.source_id]
            batch = await self.fetcher.fetch(sources, window)
        except (FetchFailure, ProviderUnavailable) as e:
            logger.warning(f"Keeping previous '{self.name}' list: {e}")
            self.last_error = e
            return self.snapshot

        items = merge(batch.results, window)
        _label_sources(items, batch.sources)
        if self.manual_order:
            items = project(items, self.preferences.manual_order(self.name))

        self.snapshot = items
        self.last_error = None
        return items

    def reorder(self, from_index: int, to_index: int) -> list[Item]:
        """Move an item within the displayed list and persist the new order."""
        if not self.manual_order:
            raise ValueError(f"View '{self.name}' has no manual order")
        new_order = reorder([i.id for i in self.snapshot], from_index, to_index)
        self.preferences.set_manual_order(self.name, new_order)
        self.snapshot = project(self.snapshot, new_order)
        return self.snapshot

    async def toggle(self, item: Item) -> TogglePlan:
        return await self.toggler.toggle(item)

    async def _after_commit(self, item: Item) -> None:
        await self.refresh()
        if self.badge is None:
            return
        now = self.clock() if self.clock is not None else None
        try:
            await self.badge.recompute(now)
        except (FetchFailure, ProviderUnavailable) as e:
            logger.warning(f"Badge not updated after toggling {item.id}: {e}")


class AgendaView:
    """A day's events and tasks as two sections."""

    def __init__(
        self,
        fetcher: SourceFetcher,
        preferences: Preferences,
        day: date,
        tz: tzinfo,
    ):
        self.fetcher = fetcher
        self.preferences = preferences
        self.day = day
        self.tz = tz
        self.snapshot = Agenda()
        self.last_error: NextupError | None = None

    async def refresh(self) -> Agenda:
        window = single_day(self.day, self.tz)
        try:
            event_sources, task_sources = await asyncio.gather(
                self.fetcher.list_sources(
                    SourceKind.EVENT, self.preferences.hidden_sources(SourceKind.EVENT)
                ),
                self.fetcher.list_sources(
                    SourceKind.TASK, self.preferences.hidden_sources(SourceKind.TASK)
                ),
            )
            events, tasks = await asyncio.gather(
                self.fetcher.fetch(event_sources, window),
                self.fetcher.fetch(task_sources, window),
            )
        except (FetchFailure, ProviderUnavailable) as e:
            logger.warning(f"Keeping previous agenda for {self.day}: {e}")
            self.last_error = e
            return self.snapshot

        agenda = build_agenda(events.results, tasks.results, window)
        _label_sources(agenda.events, events.sources)
        _label_sources(agenda.tasks, tasks.sources)
        self.snapshot = agenda
        self.last_error = None
        return agenda
