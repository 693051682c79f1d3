"""Scheduling: reminder records, temporal matching, and the trigger engine."""

from teleworker.scheduling.engine import TickReport, render_message, run_tick
from teleworker.scheduling.matcher import ScheduleError, ScheduleKind, is_due
from teleworker.scheduling.reminders import (
    FileReminderStore,
    Reminder,
    ReminderStore,
    append_reminder,
    list_active,
    list_reminders,
    remove_reminder,
)
from teleworker.scheduling.scheduler import run_once, setup_scheduler

__all__ = [
    "FileReminderStore",
    "Reminder",
    "ReminderStore",
    "ScheduleError",
    "ScheduleKind",
    "TickReport",
    "append_reminder",
    "is_due",
    "list_active",
    "list_reminders",
    "remove_reminder",
    "render_message",
    "run_once",
    "run_tick",
    "setup_scheduler",
]
