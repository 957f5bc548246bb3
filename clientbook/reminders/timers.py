# clientbook/reminders/timers.py
"""
Timer registry on top of APScheduler's AsyncIOScheduler.

Every timer is an APScheduler job identified by a string key; the Job object
is the cancellation handle returned to callers.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED
from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


def job_listener(event):
    """Log failed or missed timer jobs; callbacks are expected to handle their own errors."""
    if getattr(event, "exception", None):
        logger.error(f"[Timers] Job {event.job_id} failed: {event.exception}")
    else:
        logger.warning(f"[Timers] Job {event.job_id} missed its run time")


class TimerRegistry:
    """
    arm(key, delay, callback) -> handle, cancel(handle), cancel_all().

    Arming a key that is already armed replaces the previous timer.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self._timezone = tz
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """Start the backend on the running event loop."""
        if self.running:
            return
        options: dict[str, Any] = {
            "event_loop": asyncio.get_running_loop(),
            "job_defaults": {
                "coalesce": True,  # Missed runs collapse into one
                "max_instances": 1,
                "misfire_grace_time": None,
            },
        }
        if self._timezone is not None:
            options["timezone"] = self._timezone
        self._scheduler = AsyncIOScheduler(**options)
        self._scheduler.add_listener(job_listener, EVENT_JOB_ERROR | EVENT_JOB_MISSED)
        self._scheduler.start()

    def shutdown(self) -> None:
        if self.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None

    def _require_scheduler(self) -> AsyncIOScheduler:
        if self._scheduler is None:
            raise RuntimeError("TimerRegistry is not started")
        return self._scheduler

    def arm(self, key: str, delay: float, callback: Callable, *args) -> Job:
        """One-shot timer firing `callback(*args)` after `delay` seconds."""
        run_date = datetime.now(timezone.utc) + timedelta(seconds=max(delay, 0))
        return self._require_scheduler().add_job(
            callback,
            trigger=DateTrigger(run_date=run_date),
            args=args,
            id=key,
            name=f"timer:{key}",
            replace_existing=True,
        )

    def every(self, key: str, seconds: float, callback: Callable, *args) -> Job:
        """Repeating timer, first run after `seconds`."""
        return self._require_scheduler().add_job(
            callback,
            trigger=IntervalTrigger(seconds=seconds),
            args=args,
            id=key,
            name=f"interval:{key}",
            replace_existing=True,
        )

    def daily_at_midnight(self, key: str, callback: Callable, *args) -> Job:
        """Fires at every local midnight."""
        scheduler = self._require_scheduler()
        return scheduler.add_job(
            callback,
            trigger=CronTrigger(hour=0, minute=0, second=0, timezone=scheduler.timezone),
            args=args,
            id=key,
            name=f"daily:{key}",
            replace_existing=True,
        )

    def get(self, key: str) -> Optional[Job]:
        if self._scheduler is None:
            return None
        return self._scheduler.get_job(key)

    def cancel(self, handle: Optional[Job]) -> bool:
        """Remove a timer. Returns False if it already ran or was removed."""
        if handle is None or self._scheduler is None:
            return False
        try:
            self._scheduler.remove_job(handle.id)
            return True
        except JobLookupError:
            return False

    def cancel_all(self) -> None:
        if self._scheduler is not None:
            self._scheduler.remove_all_jobs()

    def jobs(self) -> list[Job]:
        if self._scheduler is None:
            return []
        return self._scheduler.get_jobs()
