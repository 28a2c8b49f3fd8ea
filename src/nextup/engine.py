"""Shared wiring: builds views and preference actions over one provider."""

import asyncio
import logging
from datetime import date, datetime, tzinfo
from typing import Callable
from zoneinfo import ZoneInfo

from .adapters.composite import CompositeProvider
from .adapters.file_badge import FileBadgeSink
from .adapters.icalpal import IcalPalAdapter
from .adapters.json_settings import JsonFileSettingsStore
from .adapters.ticktick_api import TickTickAdapter
from .badge import BadgeCounter
from .config import Config
from .core.items import Item, SourceKind
from .core.window import completed_only, single_day, today, unbounded_future
from .fetcher import FailurePolicy, SourceFetcher
from .ports.badge_sink import BadgeSink
from .ports.item_provider import ItemProvider
from .ports.settings_store import SettingsStore
from .preferences import Preferences
from .timers import SchedulerTimer, Timer
from .toggler import COMPLETE_DELAY
from .views import AgendaView, TaskView

logger = logging.getLogger(__name__)

NEXT_VIEW = "next"


class Engine:
    """Entry point for the presentation layer."""

    def __init__(
        self,
        provider: ItemProvider,
        store: SettingsStore,
        sink: BadgeSink,
        tz: tzinfo,
        policy: FailurePolicy = FailurePolicy.ABORT,
        timer: Timer | None = None,
        delay: float = COMPLETE_DELAY,
        clock: Callable[[], datetime] | None = None,
    ):
        self.provider = provider
        self.tz = tz
        self.timer = timer or SchedulerTimer()
        self.delay = delay
        self.clock = clock or (lambda: datetime.now(tz))
        self.fetcher = SourceFetcher(provider, policy)
        self.preferences = Preferences(store)
        self.badge = BadgeCounter(self.fetcher, self.preferences, sink, tz)

    def _task_view(self, name: str, window_factory, **kwargs) -> TaskView:
        return TaskView(
            name,
            self.fetcher,
            self.preferences,
            window_factory,
            self.timer,
            badge=self.badge,
            delay=self.delay,
            clock=self.clock,
            **kwargs,
        )

    def today_view(self) -> TaskView:
        return self._task_view("today", lambda: today(self.clock(), self.tz))

    def day_view(self, day: date) -> TaskView:
        return self._task_view(f"day:{day.isoformat()}", lambda: single_day(day, self.tz))

    def next_view(self) -> TaskView:
        """Today's tasks in the user's manual order."""
        return self._task_view(NEXT_VIEW, lambda: today(self.clock(), self.tz), manual_order=True)

    def all_view(self) -> TaskView:
        return self._task_view("all", unbounded_future)

    def completed_view(self) -> TaskView:
        return self._task_view("completed", completed_only)

    def list_view(self, source_id: str) -> TaskView:
        return self._task_view(f"list:{source_id}", unbounded_future, source_id=source_id)

    def agenda_view(self, day: date | None = None) -> AgendaView:
        return AgendaView(self.fetcher, self.preferences, day or self.clock().date(), self.tz)

    async def sources(self, kind: SourceKind, include_hidden: bool = False):
        hidden = frozenset() if include_hidden else self.preferences.hidden_sources(kind)
        return await self.fetcher.list_sources(kind, hidden)

    async def recompute_badge(self) -> int:
        return await self.badge.recompute(self.clock())

    async def set_visibility(self, kind: SourceKind, source_id: str, visible: bool) -> frozenset[str]:
        hidden = self.preferences.set_visibility(kind, source_id, visible)
        if kind == SourceKind.TASK:
            await self.recompute_badge()
        return hidden

    async def set_badges_enabled(self, enabled: bool) -> int:
        self.preferences.set_badges_enabled(enabled)
        return await self.recompute_badge()

    async def create_item(
        self,
        source_id: str,
        title: str,
        due_at: datetime | None = None,
        notes: str | None = None,
    ) -> Item:
        """Create a task, then refresh the badge."""
        item = await asyncio.to_thread(self.provider.create, source_id, title, due_at, notes)
        logger.debug(f"Created {item.id} in {source_id}")
        await self.recompute_badge()
        return item


def build_provider(config: Config, tz: tzinfo) -> CompositeProvider:
    """Task lists from TickTick; calendars from icalPal when enabled."""
    events = None
    if config.use_icalpal:
        events = IcalPalAdapter(
            include_calendars=config.icalpal_include_calendars or None,
            tz=tz,
        )
    return CompositeProvider(tasks=TickTickAdapter(config), events=events)


def build_engine(config: Config, timer: Timer | None = None) -> Engine:
    tz = ZoneInfo(config.timezone)
    return Engine(
        provider=build_provider(config, tz),
        store=JsonFileSettingsStore(config.settings_file),
        sink=FileBadgeSink(config.badge_file),
        tz=tz,
        policy=FailurePolicy(config.fetch_policy),
        timer=timer,
        delay=config.completion_delay_ms / 1000,
    )
