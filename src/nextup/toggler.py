"""Completion toggling with a deferred commit."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable

from .core.items import Item
from .errors import PersistFailure
from .ports.item_provider import ItemProvider
from .timers import Timer, TimerHandle

logger = logging.getLogger(__name__)

COMPLETE_DELAY = 0.3


class ToggleAction(str, Enum):
    DEFERRED_COMPLETE = "deferred_complete"
    IMMEDIATE_UNCOMPLETE = "immediate_uncomplete"
    IGNORED = "ignored"


@dataclass(frozen=True)
class TogglePlan:
    """What a toggle request resulted in."""

    item_id: str
    action: ToggleAction
    delay: float = 0.0


@dataclass
class _PendingCommit:
    handle: TimerHandle | None
    done: asyncio.Future


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _key(item: Item) -> tuple[str, str]:
    # Ids are only unique within a source
    return (item.source_id, item.id)


class CompletionToggler:
    """
    Flips items between complete and incomplete.

    Completing is deferred by `delay` seconds so the UI can acknowledge the tap
    before the item leaves its list. While a completion is pending the item is
    "completing" and further toggles on it are ignored. Un-completing commits
    right away.

    A commit sets the completion flag and timestamp together, saves through the
    provider, and on success awaits `on_commit`. A failed save is logged and
    recorded in `failures`; the in-memory change stays.
    """

    def __init__(
        self,
        provider: ItemProvider,
        timer: Timer,
        on_commit: Callable[[Item], Awaitable[None]] | None = None,
        delay: float = COMPLETE_DELAY,
        clock: Callable[[], datetime] | None = None,
    ):
        self.provider = provider
        self.timer = timer
        self.on_commit = on_commit
        self.delay = delay
        self.clock = clock or _local_now
        self.failures: list[PersistFailure] = []
        self._pending: dict[tuple[str, str], _PendingCommit] = {}

    def is_completing(self, item: Item) -> bool:
        return _key(item) in self._pending

    async def toggle(self, item: Item) -> TogglePlan:
        if item.is_event:
            logger.debug(f"Ignoring toggle on read-only event {item.id}")
            return TogglePlan(item.id, ToggleAction.IGNORED)

        key = _key(item)
        if key in self._pending:
            logger.debug(f"Ignoring toggle on {item.id}: completion already pending")
            return TogglePlan(item.id, ToggleAction.IGNORED)

        if item.is_completed:
            await self._commit(item, completed=False)
            return TogglePlan(item.id, ToggleAction.IMMEDIATE_UNCOMPLETE)

        pending = _PendingCommit(handle=None, done=asyncio.get_running_loop().create_future())
        self._pending[key] = pending

        async def fire() -> None:
            if self._pending.get(key) is not pending:
                return  # superseded
            try:
                await self._commit(item, completed=True)
            finally:
                self._pending.pop(key, None)
                if not pending.done.done():
                    pending.done.set_result(None)

        pending.handle = self.timer.call_later(self.delay, fire)
        return TogglePlan(item.id, ToggleAction.DEFERRED_COMPLETE, self.delay)

    def cancel(self, item: Item) -> bool:
        """Supersede a pending completion. Returns False if none was pending."""
        pending = self._pending.pop(_key(item), None)
        if pending is None:
            return False
        if pending.handle is not None:
            pending.handle.cancel()
        if not pending.done.done():
            pending.done.set_result(None)
        return True

    async def drain(self) -> None:
        """Wait until every scheduled completion has committed or been cancelled."""
        waiting = [p.done for p in self._pending.values()]
        if waiting:
            await asyncio.gather(*waiting)

    async def _commit(self, item: Item, completed: bool) -> bool:
        if completed:
            item.mark_completed(self.clock())
        else:
            item.mark_incomplete()

        try:
            await asyncio.to_thread(self.provider.save, item)
        except PersistFailure as e:
            logger.error(f"Failed to save {item.id} ({item.title}): {e}")
            self.failures.append(e)
            return False

        if self.on_commit is not None:
            await self.on_commit(item)
        return True
