"""Tests for matcher.py: schedule classification and due checks."""

from datetime import date, datetime, time, timezone

import pytest

from teleworker.config import TZ
from teleworker.scheduling.matcher import (
    IntervalPattern,
    ScheduleError,
    ScheduleKind,
    classify_schedule,
    interval_occurrence,
    is_due,
    matches_cron,
    matches_field,
    next_fire_time,
    parse_interval,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


# --- matches_field ---


@pytest.mark.parametrize("value", [0, 1, 7, 59])
def test_star_matches_anything(value):
    assert matches_field("*", value) is True


def test_bare_integer_matches_only_itself():
    assert matches_field("7", 7) is True
    assert matches_field("7", 8) is False
    assert matches_field("07", 7) is True


def test_step_matches_multiples():
    assert [v for v in range(21) if matches_field("*/5", v)] == [0, 5, 10, 15, 20]


def test_comma_list():
    assert [v for v in range(7) if matches_field("1,3,5", v)] == [1, 3, 5]


def test_range_inclusive():
    assert [v for v in range(20) if matches_field("10-12", v)] == [10, 11, 12]


def test_list_of_ranges_and_steps():
    assert matches_field("1-2,*/10", 20) is True
    assert matches_field("1-2,*/10", 2) is True
    assert matches_field("1-2,*/10", 15) is False


@pytest.mark.parametrize("field", ["abc", "*/0", "1-x", ""])
def test_garbage_field_never_matches(field):
    assert matches_field(field, 0) is False


# --- cron ---


def test_cron_matches_exact_minute():
    assert matches_cron("30 9 * * *", utc(2025, 3, 4, 9, 30)) is True
    assert matches_cron("30 9 * * *", utc(2025, 3, 4, 9, 31)) is False
    assert matches_cron("30 9 * * *", utc(2025, 3, 4, 8, 30)) is False


def test_cron_ignores_seconds():
    assert matches_cron("30 9 * * *", utc(2025, 3, 4, 9, 30, 59)) is True


def test_cron_day_of_week_sunday_is_zero():
    sunday = utc(2025, 1, 5, 9, 0)

    assert matches_cron("0 9 * * 0", sunday) is True
    assert matches_cron("0 9 * * 1-5", sunday) is False


def test_cron_reads_fields_in_cron_timezone():
    # 09:30 UTC is 16:30 in Jakarta; cron is matched in UTC
    jakarta = datetime(2025, 3, 4, 16, 30, tzinfo=TZ)

    assert matches_cron("30 9 * * *", jakarta) is True


def test_cron_day_and_month():
    assert matches_cron("0 0 1 1 *", utc(2025, 1, 1, 0, 0)) is True
    assert matches_cron("0 0 1 1 *", utc(2025, 2, 1, 0, 0)) is False


# --- classification ---


@pytest.mark.parametrize(
    ("schedule", "kind"),
    [
        ("30 9 * * *", ScheduleKind.CRON),
        ("  */5 * * * 1-5 ", ScheduleKind.CRON),
        ("P1D@2025-01-01", ScheduleKind.INTERVAL),
        ("P3M@2025-01-15T09:00", ScheduleKind.INTERVAL),
        ("2025-01-01T00:00:00Z", ScheduleKind.DATE),
        ("2025-01-01T07:00:00+07:00", ScheduleKind.DATE),
        ("2025-01-01", ScheduleKind.DATE),
    ],
)
def test_classify_schedule(schedule, kind):
    assert classify_schedule(schedule) is kind


@pytest.mark.parametrize(
    "schedule",
    [
        "",
        "tomorrow",
        "* * * *",
        "every day at nine am",
        "*/0 * * * *",
        "60 * * * *",
        "0 24 * * *",
        "0 9 32 * *",
        "0 9 * * 7",
        "1-x * * * *",
        "P0D@2025-01-01",
        "P1W@2025-01-01",
        "P1D@2025-13-01",
        "2025-02-30",
    ],
)
def test_classify_rejects_garbage(schedule):
    with pytest.raises(ScheduleError):
        classify_schedule(schedule)


def test_malformed_schedule_is_never_due():
    assert is_due("tomorrow", utc(2025, 1, 1)) is False


# --- one-shot ---


def test_one_shot_due_once_time_passed():
    schedule = "2025-01-01T00:00:00Z"

    assert is_due(schedule, utc(2025, 1, 1, 0, 0)) is True
    assert is_due(schedule, utc(2026, 6, 1, 12, 0)) is True
    assert is_due(schedule, utc(2024, 12, 31, 23, 59)) is False


def test_one_shot_never_due_after_firing():
    schedule = "2025-01-01T00:00:00Z"

    assert is_due(schedule, utc(2025, 1, 1, 0, 0), trigger_count=1) is False
    assert is_due(schedule, utc(2030, 1, 1), trigger_count=1) is False


def test_one_shot_naive_instant_is_local_time():
    # 07:00 Jakarta == 00:00 UTC
    assert is_due("2025-01-01T07:00:00", utc(2025, 1, 1, 0, 0)) is True
    assert is_due("2025-01-01T07:00:00", utc(2024, 12, 31, 23, 59)) is False


# --- interval ---


def test_parse_interval_defaults_to_eight_am():
    pattern = parse_interval("P2D@2025-01-01")

    assert pattern == IntervalPattern(value=2, unit="D", reference=date(2025, 1, 1), at=time(8, 0))


def test_parse_interval_with_time():
    assert parse_interval("P1Y@2025-06-01T21:15").at == time(21, 15)


def test_interval_occurrence_zero_is_reference():
    pattern = parse_interval("P1D@2025-01-01")

    assert interval_occurrence(pattern, 0) == datetime(2025, 1, 1, 8, 0, tzinfo=TZ)


def test_interval_month_clamps_to_month_end():
    pattern = parse_interval("P1M@2025-01-31T09:00")

    assert interval_occurrence(pattern, 1) == datetime(2025, 2, 28, 9, 0, tzinfo=TZ)
    assert interval_occurrence(pattern, 2) == datetime(2025, 3, 31, 9, 0, tzinfo=TZ)


def test_interval_year_from_leap_day():
    pattern = parse_interval("P1Y@2024-02-29")

    assert interval_occurrence(pattern, 1).date() == date(2025, 2, 28)
    assert interval_occurrence(pattern, 4).date() == date(2028, 2, 29)


def test_interval_first_fire_is_one_step_after_reference():
    # 08:00 Jakarta == 01:00 UTC
    schedule = "P1D@2025-01-01"

    assert is_due(schedule, utc(2025, 1, 1, 1, 0), trigger_count=0) is False
    assert is_due(schedule, utc(2025, 1, 2, 1, 0, 30), trigger_count=0) is True
    assert is_due(schedule, utc(2025, 1, 2, 1, 1), trigger_count=0) is False


def test_interval_advances_with_trigger_count():
    schedule = "P3M@2025-01-15T09:00"
    april = utc(2025, 4, 15, 2, 0)  # 09:00 Jakarta
    july = utc(2025, 7, 15, 2, 0)

    assert is_due(schedule, april, trigger_count=0) is True
    assert is_due(schedule, april, trigger_count=1) is False
    assert is_due(schedule, july, trigger_count=1) is True


# --- next_fire_time ---


def test_next_fire_time_cron():
    nxt = next_fire_time("30 9 * * *", utc(2025, 1, 1, 10, 0))

    assert nxt == utc(2025, 1, 2, 9, 30)


def test_next_fire_time_cron_sunday():
    nxt = next_fire_time("0 9 * * 0", utc(2025, 1, 1, 0, 0))

    assert nxt == utc(2025, 1, 5, 9, 0)


@pytest.mark.parametrize(
    ("expr", "expected"),
    [
        ("0 0 */5 * *", utc(2025, 1, 5, 0, 0)),
        ("0 9 * * */2", utc(2025, 1, 2, 9, 0)),  # Sun, Tue, Thu, Sat
        ("*/20 * * * 0", utc(2025, 1, 5, 0, 0)),
        ("15 6 1-3 2 *", utc(2025, 2, 1, 6, 15)),
    ],
)
def test_next_fire_time_cron_agrees_with_is_due(expr, expected):
    nxt = next_fire_time(expr, utc(2025, 1, 1, 0, 1))

    assert nxt == expected
    assert is_due(expr, nxt) is True


def test_next_fire_time_interval():
    nxt = next_fire_time("P1D@2025-01-01", utc(2024, 12, 1), trigger_count=0)

    assert nxt == datetime(2025, 1, 2, 8, 0, tzinfo=TZ)


def test_next_fire_time_interval_missed_is_none():
    assert next_fire_time("P1D@2025-01-01", utc(2025, 6, 1), trigger_count=0) is None


def test_next_fire_time_one_shot():
    assert next_fire_time("2025-01-01T00:00:00Z", utc(2024, 1, 1)) == utc(2025, 1, 1)
    assert next_fire_time("2025-01-01T00:00:00Z", utc(2024, 1, 1), trigger_count=1) is None
