"""Timers for deferred work."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Protocol

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

logger = logging.getLogger(__name__)

Callback = Callable[[], Awaitable[None]]


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Timer(Protocol):
    """Runs a coroutine function once after a delay."""

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        ...


class _JobHandle:
    def __init__(self, job):
        self.job = job

    def cancel(self) -> None:
        try:
            self.job.remove()
        except JobLookupError:
            logger.debug(f"Job {self.job.id} already ran")


class SchedulerTimer:
    """
    Schedules callbacks as one-off APScheduler date jobs.

    The scheduler is started lazily on first use, which must happen inside a
    running event loop.
    """

    def __init__(self, scheduler: AsyncIOScheduler | None = None):
        self.scheduler = scheduler or AsyncIOScheduler()

    def call_later(self, delay: float, callback: Callback) -> _JobHandle:
        if not self.scheduler.running:
            self.scheduler.start()
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay)
        # No misfire limit: a stalled loop must still run the commit
        job = self.scheduler.add_job(
            callback,
            DateTrigger(run_date=run_date),
            misfire_grace_time=None,
        )
        return _JobHandle(job)

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
