"""Temporal matching for reminder schedules.

A schedule string is one of three shapes, told apart by parsing:

- cron: exactly five whitespace-separated fields
  (minute hour day-of-month month day-of-week, 0=Sunday)
- interval: ``P<N><D|M|Y>@YYYY-MM-DD[THH:MM]``, every N days/months/years
  counted from a reference date, at a fixed local time (default 08:00)
- date: an ISO-8601 instant, fired once

Everything here is pure. Cron and interval schedules match at minute
resolution, so every tick inside a matching minute sees the reminder as due.
"""

import calendar
import enum
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from apscheduler.triggers.cron import CronTrigger

from teleworker.config import CRON_TZ, TZ


class ScheduleError(ValueError):
    """A schedule string that is none of cron, interval, or ISO date."""


class ScheduleKind(enum.Enum):
    CRON = "cron"
    INTERVAL = "interval"
    DATE = "date"


_INTERVAL_RE = re.compile(
    r"^P(?P<value>\d+)(?P<unit>[DMY])@(?P<date>\d{4}-\d{2}-\d{2})"
    r"(?:T(?P<hour>\d{2}):(?P<minute>\d{2}))?$"
)
_DEFAULT_INTERVAL_TIME = time(8, 0)


@dataclass(frozen=True, slots=True)
class IntervalPattern:
    value: int
    unit: str  # "D", "M" or "Y"
    reference: date
    at: time = _DEFAULT_INTERVAL_TIME


def classify_schedule(schedule: str) -> ScheduleKind:
    """Decide which schedule shape a string is. Raises ScheduleError."""
    text = schedule.strip()
    if len(text.split()) == 5:
        _check_cron(text)
        return ScheduleKind.CRON
    if _INTERVAL_RE.match(text):
        parse_interval(text)
        return ScheduleKind.INTERVAL
    try:
        _parse_instant(text)
    except ValueError:
        raise ScheduleError(f"Unrecognized schedule: {schedule!r}") from None
    return ScheduleKind.DATE


# --- cron ---


def matches_field(field: str, value: int) -> bool:
    """Match one cron field against a calendar value.

    Supports ``*``, comma lists, inclusive ranges ``a-b``, steps ``*/n``
    (``value % n == 0``) and bare integers. Unparseable fields never match.
    """
    if field == "*":
        return True
    if "," in field:
        return any(matches_field(part.strip(), value) for part in field.split(","))
    if field.startswith("*/"):
        step = _to_int(field[2:])
        return step is not None and step > 0 and value % step == 0
    if "-" in field:
        start, _, end = field.partition("-")
        lo, hi = _to_int(start), _to_int(end)
        return lo is not None and hi is not None and lo <= value <= hi
    number = _to_int(field)
    return number is not None and number == value


def _to_int(text: str) -> int | None:
    text = text.strip()
    return int(text) if text.isdigit() else None


def matches_cron(expr: str, when: datetime) -> bool:
    """All five fields must match ``when`` read in CRON_TZ."""
    parts = expr.split()
    if len(parts) != 5:
        return False
    local = when.astimezone(CRON_TZ)
    minute, hour, day, month, dow = parts
    return (
        matches_field(minute, local.minute)
        and matches_field(hour, local.hour)
        and matches_field(day, local.day)
        and matches_field(month, local.month)
        # isoweekday: Mon=1..Sun=7 -> cron Sun=0..Sat=6
        and matches_field(dow, local.isoweekday() % 7)
    )


# Standard cron: 0=Sunday. APScheduler CronTrigger: 0=Monday.
# Day-of-week values are handed over as names to avoid the mismatch.
_DOW_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")

# minute, hour, day of month, month, day of week
_CRON_BOUNDS = ((0, 59), (0, 23), (1, 31), (1, 12), (0, 6))
_CRON_PART_RE = re.compile(r"^(?:\*|\*/[1-9]\d*|\d+|\d+-\d+)$")


def _expand_field(field: str, lo: int, hi: int) -> list[int]:
    return [value for value in range(lo, hi + 1) if matches_field(field, value)]


def _check_cron(expr: str) -> None:
    """Every field must parse and match at least one value in its range."""
    for field, (lo, hi) in zip(expr.split(), _CRON_BOUNDS):
        if not all(_CRON_PART_RE.match(part) for part in field.split(",")):
            raise ScheduleError(f"Invalid cron field {field!r} in {expr!r}")
        if not _expand_field(field, lo, hi):
            raise ScheduleError(f"Cron field {field!r} out of range {lo}-{hi} in {expr!r}")


def _cron_trigger(expr: str) -> CronTrigger:
    """CronTrigger over explicit value lists, so steps count like matches_field."""
    minute, hour, day, month, dow = (
        _expand_field(field, lo, hi) for field, (lo, hi) in zip(expr.split(), _CRON_BOUNDS)
    )
    return CronTrigger(
        minute=",".join(map(str, minute)),
        hour=",".join(map(str, hour)),
        day=",".join(map(str, day)),
        month=",".join(map(str, month)),
        day_of_week=",".join(_DOW_NAMES[value] for value in dow),
        timezone=CRON_TZ,
    )


# --- interval ---


def parse_interval(schedule: str) -> IntervalPattern:
    m = _INTERVAL_RE.match(schedule.strip())
    if m is None:
        raise ScheduleError(f"Not an interval pattern: {schedule!r}")
    value = int(m["value"])
    if value <= 0:
        raise ScheduleError(f"Interval must be positive: {schedule!r}")
    try:
        reference = date.fromisoformat(m["date"])
        at = time(int(m["hour"]), int(m["minute"])) if m["hour"] else _DEFAULT_INTERVAL_TIME
    except ValueError as exc:
        raise ScheduleError(f"Invalid interval pattern {schedule!r}: {exc}") from None
    return IntervalPattern(value=value, unit=m["unit"], reference=reference, at=at)


def _add_months(day: date, months: int) -> date:
    """Clamp to the last day of the target month (Jan 31 + 1M -> Feb 28/29)."""
    total = day.month - 1 + months
    year, month = day.year + total // 12, total % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def interval_occurrence(pattern: IntervalPattern, index: int) -> datetime:
    """Instant of occurrence ``index``; index 0 is the reference date itself."""
    step = pattern.value * index
    if pattern.unit == "D":
        day = pattern.reference + timedelta(days=step)
    elif pattern.unit == "M":
        day = _add_months(pattern.reference, step)
    else:
        day = _add_months(pattern.reference, step * 12)
    return datetime.combine(day, pattern.at, tzinfo=TZ)


# --- one-shot ---


def _parse_instant(text: str) -> datetime:
    """ISO-8601 instant; naive values are read in local TZ."""
    if not re.match(r"^\d{4}-\d{2}-\d{2}", text):
        raise ValueError(f"Not an ISO date: {text!r}")
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=TZ)
    return parsed


# --- public ---


def _same_minute(a: datetime, b: datetime) -> bool:
    return a.replace(second=0, microsecond=0) == b.replace(second=0, microsecond=0)


def is_due(schedule: str, now: datetime, trigger_count: int = 0) -> bool:
    """Whether ``schedule`` fires at ``now`` given how often it already fired.

    Malformed schedules are never due; callers that need to report the
    failure call classify_schedule themselves.
    """
    try:
        kind = classify_schedule(schedule)
    except ScheduleError:
        return False
    text = schedule.strip()
    if kind is ScheduleKind.CRON:
        return matches_cron(text, now)
    if kind is ScheduleKind.INTERVAL:
        # Occurrence 0 is the reference date and never fires.
        occurrence = interval_occurrence(parse_interval(text), trigger_count + 1)
        return _same_minute(occurrence, now)
    return trigger_count == 0 and _parse_instant(text) <= now


def next_fire_time(
    schedule: str, after: datetime, trigger_count: int = 0
) -> datetime | None:
    """Next instant the schedule would fire, or None if it never will again."""
    kind = classify_schedule(schedule)
    text = schedule.strip()
    if kind is ScheduleKind.CRON:
        return _cron_trigger(text).get_next_fire_time(None, after)
    if kind is ScheduleKind.INTERVAL:
        occurrence = interval_occurrence(parse_interval(text), trigger_count + 1)
        return occurrence if occurrence >= after.replace(second=0, microsecond=0) else None
    if trigger_count > 0:
        return None
    return _parse_instant(text)
