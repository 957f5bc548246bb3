from datetime import datetime, timedelta, timezone

import pytest

from clientbook.reminders.utils import (
    as_utc_naive,
    calculate_next_reminder_date,
    compute_fire_instant,
    format_reminder_datetime,
    is_reminder_today,
    normalize_reminder_time,
    parse_reminder_time,
    reminder_key,
    seconds_until_midnight,
    time_until_reminder,
)

IST = timezone(timedelta(hours=5, minutes=30))
NOW = datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value, expected",
    [("09:00", (9, 0)), ("9:05", (9, 5)), ("23:59", (23, 59)), (" 00:00 ", (0, 0))],
)
def test_parse_valid_reminder_times(value, expected):
    assert parse_reminder_time(value) == expected


@pytest.mark.parametrize("value", [None, "", "24:00", "12:60", "noon", "9", "09:00:00"])
def test_parse_invalid_reminder_times(value):
    assert parse_reminder_time(value) is None


def test_normalize_pads_and_rejects():
    assert normalize_reminder_time("7:30") == "07:30"
    with pytest.raises(ValueError):
        normalize_reminder_time("25:00")


def test_as_utc_naive_converts_aware_values():
    aware = datetime(2026, 3, 10, 5, 30, tzinfo=IST)
    assert as_utc_naive(aware) == datetime(2026, 3, 10, 0, 0)
    assert as_utc_naive(datetime(2026, 3, 10)) == datetime(2026, 3, 10)
    assert as_utc_naive(None) is None


def test_reminder_key_is_stable_across_representations():
    naive = datetime(2026, 3, 10)
    aware = datetime(2026, 3, 10, tzinfo=timezone.utc)
    assert reminder_key("abc", naive) == reminder_key("abc", aware) == "abc-2026-03-10T00:00:00"


def test_fire_instant_uses_local_calendar_day():
    # 20:00 UTC on the 9th is already the 10th in India
    fire_at = compute_fire_instant(datetime(2026, 3, 9, 20, 0), "09:00", IST)
    assert fire_at == datetime(2026, 3, 10, 9, 0, tzinfo=IST)


def test_fire_instant_invalid_inputs():
    assert compute_fire_instant(None, "09:00", timezone.utc) is None
    assert compute_fire_instant(datetime(2026, 3, 10), "bad", timezone.utc) is None


def test_time_until_reminder():
    assert time_until_reminder(datetime(2026, 3, 10), "09:00", NOW) == 3600
    assert time_until_reminder(datetime(2026, 3, 10), "07:00", NOW) is None
    assert time_until_reminder(datetime(2026, 3, 10), "", NOW) is None


def test_is_reminder_today():
    assert is_reminder_today(datetime(2026, 3, 10, 23, 0), NOW)
    assert not is_reminder_today(datetime(2026, 3, 11), NOW)
    assert not is_reminder_today(None, NOW)


@pytest.mark.parametrize(
    "next_work_date, reminder_time, expected",
    [
        (None, "09:00", "Not set"),
        (datetime(2026, 3, 10), None, "Not set"),
        (datetime(2026, 3, 10), "xx", "Invalid date"),
        (datetime(2026, 3, 10), "07:00", "Today at 07:00 (passed)"),
        (datetime(2026, 3, 10), "09:00", "Today at 09:00"),
        (datetime(2026, 3, 12), "09:00", "2026-03-12 at 09:00"),
    ],
)
def test_format_reminder_datetime(next_work_date, reminder_time, expected):
    assert format_reminder_datetime(next_work_date, reminder_time, NOW) == expected


def test_calculate_next_reminder_date():
    base = datetime(2026, 3, 10)
    assert calculate_next_reminder_date(base, 7) == datetime(2026, 3, 17)
    assert calculate_next_reminder_date(base, 0) is None
    assert calculate_next_reminder_date(None, 7) is None


def test_seconds_until_midnight():
    assert seconds_until_midnight(NOW) == 16 * 3600
