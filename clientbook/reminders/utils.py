# clientbook/reminders/utils.py
"""
Time utilities for the reminder system.

Dates coming from the database are naive UTC; everything user-facing (the
reminder's HH:MM, "today", midnight) is evaluated in the local timezone,
which callers pass explicitly as `tz` or through an aware `now`.
"""
import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional


_REMINDER_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def parse_reminder_time(value: Optional[str]) -> Optional[tuple[int, int]]:
    """
    Parse "HH:MM" (24-hour) into (hour, minute).
    Returns None for missing or malformed values.
    """
    if not value:
        return None
    match = _REMINDER_TIME_RE.match(value)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours, minutes


def normalize_reminder_time(value: str) -> str:
    """Zero-padded "HH:MM"; raises ValueError when the value cannot be parsed."""
    parsed = parse_reminder_time(value)
    if parsed is None:
        raise ValueError(f"Invalid reminder time '{value}', expected HH:MM (24-hour)")
    return f"{parsed[0]:02d}:{parsed[1]:02d}"


def as_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Storage form of a datetime: naive, in UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_local(value: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Aware datetime in `tz` (system local when None). Naive input is UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz)


def local_now(tz: Optional[tzinfo] = None) -> datetime:
    return datetime.now(timezone.utc).astimezone(tz)


def reminder_key(client_id, next_work_date: datetime) -> str:
    """Identifies one schedulable reminder: client id + due date."""
    return f"{client_id}-{as_utc_naive(next_work_date).isoformat()}"


def compute_fire_instant(
    next_work_date: Optional[datetime],
    reminder_time: Optional[str],
    tz: Optional[tzinfo] = None,
) -> Optional[datetime]:
    """The local calendar day of next_work_date at HH:MM:00.000."""
    if next_work_date is None:
        return None
    parsed = parse_reminder_time(reminder_time)
    if parsed is None:
        return None
    hours, minutes = parsed
    local = to_local(next_work_date, tz)
    return local.replace(hour=hours, minute=minutes, second=0, microsecond=0)


def time_until_reminder(
    next_work_date: Optional[datetime],
    reminder_time: Optional[str],
    now: datetime,
) -> Optional[float]:
    """Seconds until the reminder fires, or None if invalid or already past."""
    fire_at = compute_fire_instant(next_work_date, reminder_time, now.tzinfo)
    if fire_at is None:
        return None
    diff = (fire_at - now).total_seconds()
    return diff if diff > 0 else None


def is_reminder_today(next_work_date: Optional[datetime], now: datetime) -> bool:
    if next_work_date is None:
        return False
    return to_local(next_work_date, now.tzinfo).date() == now.date()


def format_reminder_datetime(
    next_work_date: Optional[datetime],
    reminder_time: Optional[str],
    now: datetime,
) -> str:
    """Human readable reminder moment, e.g. "Today at 09:00 (passed)"."""
    if next_work_date is None or not reminder_time:
        return "Not set"
    fire_at = compute_fire_instant(next_work_date, reminder_time, now.tzinfo)
    if fire_at is None:
        return "Invalid date"

    if is_reminder_today(next_work_date, now):
        if fire_at < now:
            return f"Today at {reminder_time} (passed)"
        return f"Today at {reminder_time}"
    return f"{fire_at.date().isoformat()} at {reminder_time}"


def calculate_next_reminder_date(
    current_date: Optional[datetime], repeat_after_days: Optional[int]
) -> Optional[datetime]:
    """current_date + repeat_after_days, or None when the client does not repeat."""
    if current_date is None or not repeat_after_days or repeat_after_days <= 0:
        return None
    return current_date + timedelta(days=repeat_after_days)


def next_midnight(now: datetime) -> datetime:
    return (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)


def seconds_until_midnight(now: datetime) -> float:
    return (next_midnight(now) - now).total_seconds()
