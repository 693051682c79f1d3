"""One scheduling tick: match, gate, render, dispatch, count.

Reminders are processed one at a time, so each record has a single writer
within a tick. Nothing raised while handling one reminder escapes to the
tick; it is logged and the reminder's trigger_count stays untouched.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime

import aiohttp

from teleworker.conditions import resolve
from teleworker.dispatch import Dispatcher
from teleworker.scheduling.matcher import (
    ScheduleError,
    ScheduleKind,
    classify_schedule,
    is_due,
    next_fire_time,
)
from teleworker.scheduling.reminders import Reminder, ReminderStore

log = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")

# (reminder id, trigger_count) pairs already reported as stalled
_stalled_seen: set[tuple[str, int]] = set()


def render_message(template: str, substitutions: dict[str, object]) -> str:
    """Replace {{key}} with the substitution; unknown keys stay literal."""

    def _sub(m: re.Match[str]) -> str:
        key = m.group(1)
        return str(substitutions[key]) if key in substitutions else m.group(0)

    return _PLACEHOLDER.sub(_sub, template)


@dataclass(slots=True)
class TickReport:
    fired: list[str] = field(default_factory=list)
    gated: list[str] = field(default_factory=list)  # due, condition not met
    failed: list[str] = field(default_factory=list)
    deferred: list[str] = field(default_factory=list)  # not started, deadline hit


async def run_tick(
    now: datetime,
    *,
    store: ReminderStore,
    dispatcher: Dispatcher,
    session: aiohttp.ClientSession,
    deadline: float | None = None,
) -> TickReport:
    """Evaluate every active reminder against ``now``.

    ``deadline`` is a time.monotonic() value; once passed, remaining
    reminders are not started. In-flight work is always finished.
    """
    report = TickReport()
    try:
        reminders = store.list_active()
    except Exception:
        log.exception("Could not load reminders")
        return report

    for i, reminder in enumerate(reminders):
        if deadline is not None and time.monotonic() >= deadline:
            report.deferred.extend(r.id for r in reminders[i:])
            log.warning(
                "Tick deadline reached, deferring %d reminder(s)", len(report.deferred)
            )
            break
        try:
            outcome = await _process(reminder, now, store, dispatcher, session)
        except Exception:
            log.exception("Reminder %s failed", reminder.id)
            report.failed.append(reminder.id)
            continue
        if outcome == "fired":
            report.fired.append(reminder.id)
        elif outcome == "gated":
            report.gated.append(reminder.id)
    return report


async def _process(
    reminder: Reminder,
    now: datetime,
    store: ReminderStore,
    dispatcher: Dispatcher,
    session: aiohttp.ClientSession,
) -> str | None:
    if not reminder.active:
        return None
    try:
        kind = classify_schedule(reminder.schedule)
    except ScheduleError as exc:
        log.error("Reminder %s: %s", reminder.id, exc)
        return None
    if not is_due(reminder.schedule, now, reminder.trigger_count):
        if kind is ScheduleKind.INTERVAL:
            _warn_if_stalled(reminder, now)
        return None

    text = reminder.message
    if reminder.condition_ref:
        result = await resolve(reminder.condition_ref, now, session)
        if not result.trigger:
            log.info("Reminder %s: condition %s not met", reminder.id, reminder.condition_ref)
            return "gated"
        text = render_message(text, result.substitutions)

    sent = await dispatcher.notify(reminder.recipient_list, text, reminder.ring_on_trigger)
    log.info(
        "Reminder %s fired: %d delivered, %d failed%s",
        reminder.id,
        len(sent.delivered),
        len(sent.failed),
        ", called" if sent.called else "",
    )

    try:
        store.increment_count(reminder.id)
    except Exception:
        # A one-shot reminder re-arms when this fails.
        log.exception("Reminder %s: could not persist trigger count", reminder.id)
    return "fired"


def _warn_if_stalled(reminder: Reminder, now: datetime) -> None:
    """An interval whose next occurrence already passed never fires again."""
    if next_fire_time(reminder.schedule, now, reminder.trigger_count) is not None:
        return
    key = (reminder.id, reminder.trigger_count)
    if key in _stalled_seen:
        return
    _stalled_seen.add(key)
    log.warning(
        "Reminder %s: interval occurrence %d was missed, it will not fire again",
        reminder.id,
        reminder.trigger_count + 1,
    )
