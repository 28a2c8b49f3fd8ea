"""Pure date-window logic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum

from .items import Item


class WindowKind(str, Enum):
    SINGLE_DAY = "single_day"
    UNBOUNDED_FUTURE = "unbounded_future"
    COMPLETED_ONLY = "completed_only"


def localize(dt: datetime, tz: tzinfo) -> datetime:
    """Interpret naive datetimes in `tz`; convert aware ones into it."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def start_of_day(day: date, tz: tzinfo) -> datetime:
    """Local midnight opening `day`.

    Every day boundary in the package goes through here so that an instant at
    exactly midnight always lands in the same day.
    """
    return datetime.combine(day, time(0, 0), tzinfo=tz)


@dataclass(frozen=True)
class Window:
    """A half-open time range, or a completion-state predicate."""

    kind: WindowKind
    start: datetime | None = None
    end: datetime | None = None

    def contains(self, instant: datetime | None) -> bool:
        """Whether an instant lies in [start, end). Unbounded windows take anything."""
        if self.start is None and self.end is None:
            return True
        if instant is None:
            return False
        if instant.tzinfo is None and self.start is not None:
            instant = instant.replace(tzinfo=self.start.tzinfo)
        if self.start is not None and instant < self.start:
            return False
        if self.end is not None and instant >= self.end:
            return False
        return True

    def admits(self, item: Item) -> bool:
        """Whether an item belongs to this window."""
        if self.kind == WindowKind.COMPLETED_ONLY:
            return item.is_completed
        if item.is_completed:
            return False
        return self.contains(item.relevant_instant)

    @property
    def day(self) -> date | None:
        if self.kind != WindowKind.SINGLE_DAY or self.start is None:
            return None
        return self.start.date()


def single_day(day: date, tz: tzinfo) -> Window:
    start = start_of_day(day, tz)
    end = start_of_day(day + timedelta(days=1), tz)
    return Window(WindowKind.SINGLE_DAY, start, end)


def today(now: datetime, tz: tzinfo) -> Window:
    return single_day(localize(now, tz).date(), tz)


def unbounded_future() -> Window:
    """All outstanding items, dated or not."""
    return Window(WindowKind.UNBOUNDED_FUTURE)


def completed_only() -> Window:
    return Window(WindowKind.COMPLETED_ONLY)


def is_overdue(instant: datetime, now: datetime, tz: tzinfo) -> bool:
    """Overdue means due before the start of today, not merely earlier today."""
    return localize(instant, tz) < start_of_day(localize(now, tz).date(), tz)


def monday_of_week(day: date) -> date:
    return day - timedelta(days=day.weekday())


def week_days(day: date) -> list[date]:
    """The Monday-to-Sunday week containing `day`."""
    monday = monday_of_week(day)
    return [monday + timedelta(days=i) for i in range(7)]
