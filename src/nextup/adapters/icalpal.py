"""icalPal adapter - subprocess provider for macOS Calendar events."""

import json
import logging
import subprocess
from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

from nextup.core.items import Item, Source, SourceKind
from nextup.core.window import Window, WindowKind
from nextup.errors import FetchFailure, PersistFailure, ProviderUnavailable

logger = logging.getLogger(__name__)


class IcalPalAdapter:
    """
    icalPal subprocess adapter.

    Implements the ItemProvider protocol for event sources (calendars), which
    are read-only.
    """

    def __init__(
        self,
        include_calendars: list[str] | None = None,
        tz: tzinfo | None = None,
        timeout: int = 30,
    ):
        self.include_calendars = include_calendars
        self.tz = tz or ZoneInfo("UTC")
        self.timeout = timeout

    def _run(self, args: list[str]) -> list[dict]:
        cmd = ["icalPal", *args, "-o", "json"]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ProviderUnavailable("icalPal not found - install with 'brew install icalpal'") from e
        except subprocess.CalledProcessError as e:
            raise FetchFailure(f"icalPal command failed: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise FetchFailure(f"icalPal timed out after {self.timeout}s") from e

        try:
            return json.loads(result.stdout) if result.stdout else []
        except json.JSONDecodeError as e:
            raise FetchFailure(f"Failed to parse icalPal output: {e}") from e

    def list_sources(self, kind: SourceKind) -> list[Source]:
        if kind != SourceKind.EVENT:
            return []
        try:
            data = self._run(["calendars"])
        except FetchFailure as e:
            raise ProviderUnavailable(str(e)) from e

        sources = []
        for entry in data:
            name = entry.get("calendar", "")
            if not name:
                continue
            if self.include_calendars and name not in self.include_calendars:
                continue
            sources.append(
                Source(id=name, title=name, color=entry.get("color") or "", kind=SourceKind.EVENT)
            )
        return sources

    def query(self, source: Source, window: Window) -> list[Item]:
        """Fetch one calendar's events for a single-day window."""
        if window.kind != WindowKind.SINGLE_DAY or window.day is None:
            return []

        # icalPal only counts forward from today, so fetch a range and filter
        days_ahead = (window.day - datetime.now(self.tz).date()).days
        if days_ahead < 0:
            return []  # Can't fetch past events easily

        command = "eventsToday" if days_ahead == 0 else f"eventsToday+{days_ahead + 1}"
        data = self._run([command, "--ic", source.id])
        return [
            e for e in self._parse_events(data, source) if e.start_at and e.start_at.date() == window.day
        ]

    def save(self, item: Item) -> None:
        raise PersistFailure(f"Calendar events are read-only: '{item.title}'", item)

    def create(self, source_id: str, title: str, due_at=None, notes=None) -> Item:
        raise PersistFailure(f"Cannot create items in calendar '{source_id}'")

    def _parse_events(self, data: list[dict], source: Source) -> list[Item]:
        """Parse icalPal JSON output into event Items."""
        events = []

        for entry in data:
            if entry.get("calendar", source.id) != source.id:
                continue
            try:
                event = self._parse_event(entry, source)
                if event:
                    events.append(event)
            except (ValueError, KeyError, TypeError) as e:
                logger.debug(f"Skipping malformed event: {e}")
                continue

        return events

    def _parse_timestamp(self, text: str, seconds) -> datetime | None:
        if text:
            return datetime.strptime(text[:19], "%Y-%m-%d %H:%M:%S").replace(tzinfo=self.tz)
        if seconds:
            return datetime.fromtimestamp(seconds, tz=self.tz)
        return None

    def _parse_event(self, entry: dict, source: Source) -> Item | None:
        """Parse a single event from icalPal data."""
        # Use sctime/ectime strings - they have correct dates for recurring events
        start = self._parse_timestamp(entry.get("sctime", ""), entry.get("sseconds"))
        if start is None:
            return None
        end = self._parse_timestamp(entry.get("ectime", ""), entry.get("eseconds"))

        title = entry.get("title", "Untitled")
        return Item(
            id=entry.get("UUID") or f"{source.id}:{start.isoformat()}:{title}",
            title=title,
            source_id=source.id,
            kind=SourceKind.EVENT,
            start_at=start,
            end_at=end,
            has_recurrence=bool(entry.get("rrule")),
            notes=entry.get("notes") or None,
            source_title=source.title,
            all_day=entry.get("all_day") == 1,
        )
