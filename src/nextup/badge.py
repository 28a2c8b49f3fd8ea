"""Outstanding-item badge count."""

import logging
from datetime import datetime, tzinfo
from typing import Iterable

from .core.items import Item, SourceKind
from .core.merge import merge
from .core.window import Window, today
from .fetcher import SourceFetcher
from .ports.badge_sink import BadgeSink
from .preferences import Preferences

logger = logging.getLogger(__name__)


def count_outstanding(items: Iterable[Item], window: Window) -> int:
    """Count incomplete tasks the window admits. Pure function - no I/O."""
    return len(merge([items], window, predicate=lambda i: not i.is_event))


class BadgeCounter:
    """Recomputes today's outstanding task count and sends it to the sink."""

    def __init__(
        self,
        fetcher: SourceFetcher,
        preferences: Preferences,
        sink: BadgeSink,
        tz: tzinfo,
    ):
        self.fetcher = fetcher
        self.preferences = preferences
        self.sink = sink
        self.tz = tz

    async def recompute(self, now: datetime | None = None) -> int:
        if not self.preferences.badges_enabled():
            self.sink.set_count(0)
            return 0

        now = now or datetime.now(self.tz)
        window = today(now, self.tz)
        hidden = self.preferences.hidden_sources(SourceKind.TASK)
        sources = await self.fetcher.list_sources(SourceKind.TASK, hidden)
        batch = await self.fetcher.fetch(sources, window)

        count = count_outstanding(batch.items, window)
        logger.debug(f"Badge count {count} across {len(sources)} lists")
        self.sink.set_count(count)
        return count
