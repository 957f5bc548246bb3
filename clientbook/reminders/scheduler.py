# clientbook/reminders/scheduler.py
import logging
from collections import Counter
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Dict, Optional

from apscheduler.job import Job

from ..core.config import settings
from ..core.constants import ScheduleOutcome
from ..core.exceptions import ClientNotFound, NotificationUnavailable
from .models import ReminderClient
from .sinks import NotificationSink
from .store import ClientStore
from .timers import TimerRegistry
from .utils import (
    calculate_next_reminder_date,
    compute_fire_instant,
    is_reminder_today,
    local_now,
    reminder_key,
)

logger = logging.getLogger(__name__)

RESCAN_JOB_ID = "reminders:rescan"
MIDNIGHT_JOB_ID = "reminders:midnight-reset"


class ReminderScheduler:
    """
    Session-scoped reminder scheduler.

    Features:
    - Rolling look-ahead: only reminders due within `lookahead` get a timer
    - Each (client, next_work_date) fires at most once per day (`notified`)
    - A timer re-reads its client before firing; moved or deleted clients are skipped
    - Late reminders inside the grace window fire immediately, older ones are dropped
    - Recurring clients are moved to their next date and re-armed on fire
    - Periodic re-scan picks up edits made elsewhere and cancels timers of moved clients
    - Midnight forgets reminders delivered on earlier days

    One instance per authenticated session: start(token) ... stop().
    """

    def __init__(
        self,
        store: ClientStore,
        sink: NotificationSink,
        *,
        timers: Optional[TimerRegistry] = None,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None,
        rescan_interval: Optional[float] = None,
        lookahead: Optional[timedelta] = None,
        grace: Optional[timedelta] = None,
    ):
        self.store = store
        self.sink = sink
        self.timers = timers or TimerRegistry(tz)
        self._clock = clock or (lambda: local_now(tz))
        self.rescan_interval = rescan_interval or settings.reminder_rescan_seconds
        self.lookahead = lookahead or timedelta(hours=settings.reminder_lookahead_hours)
        self.grace = grace or timedelta(minutes=settings.reminder_grace_minutes)

        self.scheduled: Dict[str, Job] = {}
        self.notified: Dict[str, date] = {}  # key -> local day it was delivered
        self.pending_recurrences: Dict[str, ReminderClient] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def now(self) -> datetime:
        return self._clock()

    # --- Lifecycle ---
    async def start(self, session_token: Optional[str] = None) -> Dict[str, int]:
        """Open the store, arm the periodic jobs and schedule every current client."""
        if self._running:
            return {}
        await self.store.open(session_token)
        self.timers.start()
        self._running = True

        self.timers.every(RESCAN_JOB_ID, self.rescan_interval, self._rescan_job)
        self.timers.daily_at_midnight(MIDNIGHT_JOB_ID, self._midnight_job)
        logger.info(
            f"[ReminderScheduler] Started (re-scan: {self.rescan_interval}s, "
            f"look-ahead: {self.lookahead}, grace: {self.grace})"
        )
        return await self.rescan()

    async def stop(self) -> None:
        """Cancel every timer and forget all state. Safe to call twice."""
        if not self._running:
            return
        self._running = False
        self.timers.cancel_all()
        self.timers.shutdown()
        self.scheduled.clear()
        self.notified.clear()
        self.pending_recurrences.clear()
        try:
            await self.store.close()
        except Exception as e:
            logger.error(f"[ReminderScheduler] Error closing store: {e}")
        logger.info("[ReminderScheduler] Stopped")

    # --- Scheduling ---
    async def schedule_reminder(self, client: ReminderClient) -> ScheduleOutcome:
        """
        Decide what to do with one client's reminder right now:
        arm a timer, fire it late, drop it, or leave it for a later re-scan.
        """
        if not self._running:
            return ScheduleOutcome.SKIPPED
        if not client.is_active or client.next_work_date is None or not client.reminder_time:
            return ScheduleOutcome.SKIPPED

        key = reminder_key(client.id, client.next_work_date)
        if key in self.notified:
            return ScheduleOutcome.SKIPPED

        now = self.now()
        fire_at = compute_fire_instant(client.next_work_date, client.reminder_time, now.tzinfo)
        if fire_at is None:
            logger.warning(
                f"[ReminderScheduler] Invalid reminder time '{client.reminder_time}' for {client.name}"
            )
            return ScheduleOutcome.SKIPPED

        delta = fire_at - now

        if timedelta(0) < delta <= self.lookahead:
            existing = self.scheduled.pop(key, None)
            if existing is not None:
                self.timers.cancel(existing)
            self.scheduled[key] = self.timers.arm(
                key, delta.total_seconds(), self._fire_job, client
            )
            logger.info(f"[ReminderScheduler] Reminder scheduled for {client.name} at {fire_at}")
            return ScheduleOutcome.ARMED

        if delta <= timedelta(0):
            late_by = now - fire_at
            if is_reminder_today(client.next_work_date, now) and late_by < self.grace:
                if await self.on_fire(client):
                    return ScheduleOutcome.FIRED
                return ScheduleOutcome.SKIPPED
            logger.debug(
                f"[ReminderScheduler] Dropping stale reminder for {client.name} (late by {late_by})"
            )
            return ScheduleOutcome.DROPPED

        return ScheduleOutcome.DEFERRED

    async def on_fire(self, client: ReminderClient) -> bool:
        """
        Deliver a reminder once. Returns False when the key was already notified
        or the stored client no longer matches it (moved, deleted or deactivated).
        """
        key = reminder_key(client.id, client.next_work_date)
        if key in self.notified:
            return False

        current = await self._refresh(client)
        if current is None or not current.is_active or current.next_work_date is None \
                or reminder_key(current.id, current.next_work_date) != key:
            logger.info(f"[ReminderScheduler] Skipping stale reminder for {client.name}")
            self._forget(key)
            return False
        client = current
        self.notified[key] = self.now().date()

        try:
            await self.sink.notify(client)
            logger.info(f"[ReminderScheduler] Reminder delivered for {client.name}")
        except NotificationUnavailable as e:
            logger.warning(f"[ReminderScheduler] Notification unavailable: {e}")
        except Exception as e:
            logger.error(f"[ReminderScheduler] Notification failed for {client.name}: {e}")

        if client.repeat_after_days > 0:
            await self._reschedule(client)

        self._forget(key)
        return True

    async def _refresh(self, client: ReminderClient) -> Optional[ReminderClient]:
        """
        Latest stored state of the client, None if it is gone.
        When the store is unreachable the armed copy is used so the alert still goes out.
        """
        try:
            return await self.store.get_client(client.id)
        except ClientNotFound:
            return None
        except Exception as e:
            logger.warning(f"[ReminderScheduler] Could not refresh {client.name}, using armed copy: {e}")
            return client

    def _forget(self, key: str) -> None:
        handle = self.scheduled.pop(key, None)
        if handle is not None:
            self.timers.cancel(handle)

    async def _reschedule(self, client: ReminderClient) -> None:
        """Move a recurring client to its next date, persist it and arm it."""
        next_date = calculate_next_reminder_date(client.next_work_date, client.repeat_after_days)
        updated = client.model_copy(update={"next_work_date": next_date})
        try:
            await self.store.update_next_work_date(client.id, next_date)
        except ClientNotFound:
            logger.warning(f"[ReminderScheduler] Client {client.id} no longer exists; not rescheduled")
            return
        except Exception as e:
            logger.error(
                f"[ReminderScheduler] Failed to reschedule {client.name}, retrying on next re-scan: {e}"
            )
            self.pending_recurrences[str(client.id)] = updated
            return

        logger.info(f"[ReminderScheduler] Reminder rescheduled for {client.name} to {next_date}")
        await self.schedule_reminder(updated)

    async def _retry_pending_recurrences(self) -> None:
        for client_id, updated in list(self.pending_recurrences.items()):
            try:
                await self.store.update_next_work_date(updated.id, updated.next_work_date)
            except ClientNotFound:
                self.pending_recurrences.pop(client_id, None)
                continue
            except Exception as e:
                logger.error(f"[ReminderScheduler] Recurrence write for {updated.name} still failing: {e}")
                continue
            self.pending_recurrences.pop(client_id, None)
            await self.schedule_reminder(updated)

    async def rescan(self) -> Dict[str, int]:
        """
        Re-derive reminders from the latest client list. Only keys that are
        neither armed nor notified are considered, so nothing is armed twice.
        Timers whose key no longer matches any active client are cancelled.
        """
        stats: Counter = Counter()
        if not self._running:
            return dict(stats)

        await self._retry_pending_recurrences()

        try:
            clients = await self.store.list_clients()
        except Exception as e:
            logger.error(f"[ReminderScheduler] Failed to refresh reminders: {e}")
            return dict(stats)

        live = {
            reminder_key(c.id, c.next_work_date): c
            for c in clients
            if c.is_active and c.next_work_date is not None and c.reminder_time
        }
        for key in [k for k in self.scheduled if k not in live]:
            self._forget(key)
            stats["cancelled"] += 1

        for key, client in live.items():
            if key in self.scheduled or key in self.notified:
                continue
            try:
                outcome = await self.schedule_reminder(client)
            except Exception as e:
                logger.error(f"[ReminderScheduler] Error scheduling {client.name}: {e}")
                continue
            stats[outcome.value] += 1
        return dict(stats)

    def reset_daily(self) -> None:
        """
        New day: reminders delivered on an earlier day become eligible again.
        Keys already delivered today (a 00:00 reminder that beat this job) stay
        notified. Armed timers are kept.
        """
        today = self.now().date()
        self.notified = {key: day for key, day in self.notified.items() if day >= today}
        logger.info("[ReminderScheduler] Cleared reminder notifications for new day")

    # --- Job callbacks ---
    async def _fire_job(self, client: ReminderClient) -> None:
        try:
            await self.on_fire(client)
        except Exception as e:
            logger.error(f"[ReminderScheduler] Reminder for {client.name} failed: {e}", exc_info=True)

    async def _rescan_job(self) -> None:
        await self.rescan()

    async def _midnight_job(self) -> None:
        self.reset_daily()
        await self.rescan()
