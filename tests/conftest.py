"""Shared fakes for the provider, settings store, badge sink and timer."""

import threading
from dataclasses import replace
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from nextup.core.items import Item, Source, SourceKind
from nextup.errors import FetchFailure, PersistFailure

TZ = ZoneInfo("America/Toronto")


class FakeProvider:
    """In-memory ItemProvider. Each query returns fresh copies, like a real backend."""

    def __init__(self, sources: list[Source] | None = None):
        self.sources: list[Source] = sources or []
        self.items: dict[str, list[Item]] = {}
        self.failing: set[str] = set()
        self.fail_saves = False
        self.saved: list[tuple[str, bool]] = []
        self.query_calls: list[str] = []
        self._lock = threading.Lock()

    def add(self, source: Source, *items: Item) -> None:
        if source not in self.sources:
            self.sources.append(source)
        self.items.setdefault(source.id, []).extend(items)

    def list_sources(self, kind: SourceKind) -> list[Source]:
        return [s for s in self.sources if s.kind == kind]

    def query(self, source, window) -> list[Item]:
        with self._lock:
            self.query_calls.append(source.id)
        if source.id in self.failing:
            raise FetchFailure(f"{source.id} unreachable")
        return [replace(i) for i in self.items.get(source.id, [])]

    def save(self, item: Item) -> None:
        if self.fail_saves:
            raise PersistFailure(f"cannot save {item.id}", item)
        self.saved.append((item.id, item.is_completed))
        stored = self.items.get(item.source_id, [])
        for i, existing in enumerate(stored):
            if existing.id == item.id:
                stored[i] = replace(item)

    def create(self, source_id, title, due_at=None, notes=None) -> Item:
        item = Item(id=f"new-{title}", title=title, source_id=source_id, due_at=due_at, notes=notes)
        self.items.setdefault(source_id, []).append(item)
        return replace(item)


class MemorySettingsStore:
    def __init__(self):
        self.data: dict[str, bytes] = {}

    def read(self, key):
        return self.data.get(key)

    def write(self, key, value):
        self.data[key] = value

    def update(self, key, fn):
        self.data[key] = fn(self.data.get(key))
        return self.data[key]


class RecordingSink:
    def __init__(self):
        self.counts: list[int] = []

    def set_count(self, count: int) -> None:
        self.counts.append(count)


class _ManualHandle:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualTimer:
    """Timer that only fires when told to."""

    def __init__(self):
        self.scheduled: list[_ManualHandle] = []

    def call_later(self, delay, callback):
        handle = _ManualHandle(delay, callback)
        self.scheduled.append(handle)
        return handle

    async def fire_all(self):
        pending, self.scheduled = self.scheduled, []
        for handle in pending:
            if not handle.cancelled:
                await handle.callback()


@pytest.fixture
def tz():
    return TZ


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 7, 0, tzinfo=TZ)


@pytest.fixture
def at(now):
    """Factory for instants on the reference day."""
    def _at(hour: int, minute: int = 0, day_offset: int = 0) -> datetime:
        return now.replace(day=now.day + day_offset, hour=hour, minute=minute)
    return _at


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def store():
    return MemorySettingsStore()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def timer():
    return ManualTimer()


def task_source(source_id: str, title: str | None = None) -> Source:
    return Source(id=source_id, title=title or source_id.upper(), kind=SourceKind.TASK)


def event_source(source_id: str, title: str | None = None) -> Source:
    return Source(id=source_id, title=title or source_id.upper(), kind=SourceKind.EVENT)


def task(item_id: str, source_id: str = "a", due_at=None, **kwargs) -> Item:
    return Item(id=item_id, title=f"Task {item_id}", source_id=source_id, due_at=due_at, **kwargs)


def event(item_id: str, source_id: str = "cal", start_at=None, **kwargs) -> Item:
    return Item(
        id=item_id,
        title=f"Event {item_id}",
        source_id=source_id,
        kind=SourceKind.EVENT,
        start_at=start_at,
        **kwargs,
    )
