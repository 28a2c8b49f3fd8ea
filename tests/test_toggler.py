"""Tests for completion toggling."""

import asyncio
import time
from datetime import datetime

import pytest

from nextup.toggler import COMPLETE_DELAY, CompletionToggler, ToggleAction

from conftest import TZ, event, task, task_source

DONE_AT = datetime(2025, 1, 15, 12, 0, tzinfo=TZ)


@pytest.fixture
def item(provider):
    item = task("t1", "a", datetime(2025, 1, 15, 9, 0, tzinfo=TZ))
    provider.add(task_source("a"), item)
    return item


@pytest.fixture
def commits():
    return []


@pytest.fixture
def toggler(provider, timer, commits):
    async def on_commit(item):
        commits.append((item.id, item.is_completed))

    return CompletionToggler(provider, timer, on_commit=on_commit, clock=lambda: DONE_AT)


class TestCompleting:
    def test_completion_is_deferred(self, toggler, timer, provider, item):
        async def scenario():
            plan = await toggler.toggle(item)
            assert plan.action == ToggleAction.DEFERRED_COMPLETE
            assert plan.delay == COMPLETE_DELAY
            assert toggler.is_completing(item) is True
            assert item.is_completed is False
            assert provider.saved == []

            await timer.fire_all()

        asyncio.run(scenario())

        assert item.is_completed is True
        assert item.completed_at == DONE_AT
        assert provider.saved == [("t1", True)]
        assert toggler.is_completing(item) is False

    def test_timer_gets_the_configured_delay(self, provider, timer, item):
        toggler = CompletionToggler(provider, timer, delay=0.05)
        asyncio.run(toggler.toggle(item))
        assert timer.scheduled[0].delay == 0.05

    def test_second_toggle_while_completing_is_ignored(self, toggler, timer, provider, commits, item):
        async def scenario():
            first = await toggler.toggle(item)
            second = await toggler.toggle(item)
            await timer.fire_all()
            return first, second

        first, second = asyncio.run(scenario())

        assert first.action == ToggleAction.DEFERRED_COMPLETE
        assert second.action == ToggleAction.IGNORED
        assert provider.saved == [("t1", True)]
        assert commits == [("t1", True)]

    def test_distinct_items_do_not_share_the_guard(self, toggler, timer, provider, item):
        other = task("t2", "a")
        provider.add(task_source("a"), other)

        async def scenario():
            await toggler.toggle(item)
            plan = await toggler.toggle(other)
            await timer.fire_all()
            return plan

        plan = asyncio.run(scenario())
        assert plan.action == ToggleAction.DEFERRED_COMPLETE
        assert sorted(provider.saved) == [("t1", True), ("t2", True)]

    def test_same_id_in_another_source_is_not_guarded(self, toggler, timer, provider, item):
        twin = task("t1", "b")
        provider.add(task_source("b"), twin)

        async def scenario():
            await toggler.toggle(item)
            plan = await toggler.toggle(twin)
            assert toggler.is_completing(twin) is True
            await timer.fire_all()
            return plan

        plan = asyncio.run(scenario())
        assert plan.action == ToggleAction.DEFERRED_COMPLETE
        assert item.is_completed is True
        assert twin.is_completed is True
        assert provider.saved == [("t1", True), ("t1", True)]

    def test_commit_callback_runs_after_save(self, toggler, timer, provider, commits, item):
        async def scenario():
            await toggler.toggle(item)
            await timer.fire_all()

        asyncio.run(scenario())
        assert commits == [("t1", True)]

    def test_cancel_supersedes_pending_completion(self, toggler, timer, provider, item):
        async def scenario():
            await toggler.toggle(item)
            assert toggler.cancel(item) is True
            await timer.fire_all()
            await toggler.drain()

        asyncio.run(scenario())
        assert item.is_completed is False
        assert provider.saved == []
        assert toggler.is_completing(item) is False

    def test_cancel_without_pending(self, toggler):
        assert toggler.cancel(task("nothing")) is False

    def test_toggle_again_after_commit(self, toggler, timer, provider, item):
        async def scenario():
            await toggler.toggle(item)
            await timer.fire_all()
            return await toggler.toggle(item)

        plan = asyncio.run(scenario())
        assert plan.action == ToggleAction.IMMEDIATE_UNCOMPLETE
        assert provider.saved == [("t1", True), ("t1", False)]


class TestUncompleting:
    def test_applied_immediately(self, toggler, timer, provider, commits, item):
        item.mark_completed(DONE_AT)

        plan = asyncio.run(toggler.toggle(item))

        assert plan.action == ToggleAction.IMMEDIATE_UNCOMPLETE
        assert timer.scheduled == []
        assert item.is_completed is False
        assert item.completed_at is None
        assert provider.saved == [("t1", False)]
        assert commits == [("t1", False)]


class TestPersistFailure:
    def test_logged_recorded_and_not_rolled_back(self, toggler, timer, provider, commits, item, caplog):
        provider.fail_saves = True

        async def scenario():
            await toggler.toggle(item)
            await timer.fire_all()

        with caplog.at_level("ERROR"):
            asyncio.run(scenario())

        assert item.is_completed is True
        assert item.completed_at == DONE_AT
        assert len(toggler.failures) == 1
        assert toggler.failures[0].item is item
        assert commits == []
        assert "Failed to save t1" in caplog.text
        assert toggler.is_completing(item) is False


class TestEvents:
    def test_events_are_not_toggled(self, toggler, timer, provider):
        plan = asyncio.run(toggler.toggle(event("e1", "cal", DONE_AT)))
        assert plan.action == ToggleAction.IGNORED
        assert timer.scheduled == []


class TestDrain:
    def test_drain_waits_for_scheduled_commit(self, provider, item):
        from nextup.timers import SchedulerTimer

        timer = SchedulerTimer()
        toggler = CompletionToggler(provider, timer, delay=0.01)

        async def scenario():
            try:
                await toggler.toggle(item)
                await asyncio.wait_for(toggler.drain(), timeout=5)
            finally:
                timer.shutdown()

        asyncio.run(scenario())
        assert provider.saved == [("t1", True)]

    def test_commit_runs_after_a_stalled_loop(self, provider, item):
        from nextup.timers import SchedulerTimer

        timer = SchedulerTimer()
        toggler = CompletionToggler(provider, timer, delay=0.01)

        async def scenario():
            try:
                await toggler.toggle(item)
                time.sleep(1.5)  # blocks the loop past APScheduler's default grace time
                await asyncio.wait_for(toggler.drain(), timeout=5)
            finally:
                timer.shutdown()

        asyncio.run(scenario())
        assert provider.saved == [("t1", True)]
