"""Tests for core item logic."""

from datetime import datetime

from nextup.core.items import Item, Source, SourceKind, format_event_span, format_time

from conftest import TZ, event, task


class TestItem:
    def test_relevant_instant_for_task_is_due(self):
        due = datetime(2025, 1, 15, 9, 0, tzinfo=TZ)
        assert task("1", due_at=due).relevant_instant == due

    def test_relevant_instant_for_event_is_start(self):
        start = datetime(2025, 1, 15, 10, 0, tzinfo=TZ)
        assert event("e1", start_at=start).relevant_instant == start

    def test_mark_completed_sets_flag_and_timestamp(self):
        item = task("1")
        done_at = datetime(2025, 1, 15, 12, 0, tzinfo=TZ)
        item.mark_completed(done_at)
        assert item.is_completed is True
        assert item.completed_at == done_at

    def test_mark_incomplete_clears_both(self):
        item = task("1")
        item.mark_completed(datetime(2025, 1, 15, 12, 0, tzinfo=TZ))
        item.mark_incomplete()
        assert item.is_completed is False
        assert item.completed_at is None


class TestMarker:
    def test_completed_wins(self):
        item = task("1", has_recurrence=True, priority=5)
        item.mark_completed(datetime(2025, 1, 15, tzinfo=TZ))
        assert item.marker() == "x"

    def test_recurring(self):
        assert task("1", has_recurrence=True, priority=5).marker() == "~"

    def test_prioritised(self):
        assert task("1", priority=1).marker() == "!"

    def test_plain(self):
        assert task("1").marker() == " "


class TestSource:
    def test_event_sources_are_read_only(self):
        assert Source("c", "Cal", kind=SourceKind.EVENT).is_read_only is True
        assert Source("l", "List").is_read_only is False


class TestFormatTime:
    def test_morning(self):
        assert format_time(datetime(2025, 1, 15, 9, 0)) == "9am"

    def test_evening(self):
        assert format_time(datetime(2025, 1, 15, 18, 0)) == "6pm"

    def test_noon(self):
        assert format_time(datetime(2025, 1, 15, 12, 0)) == "12pm"

    def test_midnight_is_blank(self):
        assert format_time(datetime(2025, 1, 15, 0, 0)) == ""

    def test_just_after_midnight(self):
        assert format_time(datetime(2025, 1, 15, 0, 30)) == "12am"


class TestFormatEventSpan:
    def test_all_day(self):
        item = event("e", start_at=datetime(2025, 1, 15, tzinfo=TZ), all_day=True)
        assert format_event_span(item) == "All day"

    def test_with_end(self):
        item = Item(
            id="e",
            title="Standup",
            source_id="cal",
            kind=SourceKind.EVENT,
            start_at=datetime(2025, 1, 15, 9, 0, tzinfo=TZ),
            end_at=datetime(2025, 1, 15, 9, 15, tzinfo=TZ),
        )
        assert format_event_span(item) == "09:00 - 09:15"

    def test_without_end(self):
        item = event("e", start_at=datetime(2025, 1, 15, 14, 30, tzinfo=TZ))
        assert format_event_span(item) == "14:30"
