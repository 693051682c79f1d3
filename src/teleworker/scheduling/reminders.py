"""Reminder data model and markdown persistence.

One reminder per file under ~/.teleworker/reminders/. The trigger engine
only reads reminders and bumps trigger_count; everything else is done by
the `teleworker reminder` CLI.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol
from uuid import uuid4

from teleworker.scheduling.matcher import classify_schedule
from teleworker.storage import DATA_DIR, TZ, read_md_dir, remove_md, write_md

REMINDERS_DIR = DATA_DIR / "reminders"


@dataclass(frozen=True, slots=True)
class Reminder:
    id: str
    name: str
    message: str  # template, may contain {{key}} placeholders
    recipients: str  # comma-delimited chat ids
    schedule: str  # cron, interval pattern, or ISO instant
    condition_ref: str | None = None
    ring_on_trigger: bool = False
    active: bool = True
    trigger_count: int = 0
    created_at: str = ""  # ISO datetime

    @property
    def recipient_list(self) -> list[str]:
        return [r.strip() for r in self.recipients.split(",") if r.strip()]

    @staticmethod
    def new(
        name: str,
        message: str,
        *,
        recipients: list[str] | str,
        schedule: str,
        condition_ref: str | None = None,
        ring_on_trigger: bool = False,
        active: bool = True,
    ) -> "Reminder":
        """Create a reminder. Raises ScheduleError for an unclassifiable schedule."""
        classify_schedule(schedule)
        if not isinstance(recipients, str):
            recipients = ",".join(recipients)
        return Reminder(
            id=uuid4().hex[:8],
            name=name,
            message=message,
            recipients=recipients,
            schedule=schedule.strip(),
            condition_ref=condition_ref or None,
            ring_on_trigger=ring_on_trigger,
            active=active,
            trigger_count=0,
            created_at=datetime.now(TZ).isoformat(),
        )


class ReminderStore(Protocol):
    def list_active(self) -> list[Reminder]: ...

    def increment_count(self, reminder_id: str) -> None: ...


def append_reminder(reminder: Reminder) -> None:
    write_md(REMINDERS_DIR, reminder, reminder.name, f"add reminder {reminder.id}")


def update_reminder(reminder: Reminder) -> None:
    write_md(REMINDERS_DIR, reminder, reminder.name, f"update reminder {reminder.id}")


def list_reminders() -> list[Reminder]:
    return read_md_dir(REMINDERS_DIR, Reminder)


def list_active() -> list[Reminder]:
    return [r for r in list_reminders() if r.active]


def get_reminder(reminder_id: str) -> Reminder | None:
    for reminder in list_reminders():
        if reminder.id == reminder_id:
            return reminder
    return None


def remove_reminder(reminder_id: str) -> bool:
    return remove_md(REMINDERS_DIR, reminder_id, f"remove reminder {reminder_id}")


def increment_count(reminder_id: str) -> None:
    """Read-modify-write of one record. Not committed to git."""
    reminder = get_reminder(reminder_id)
    if reminder is None:
        raise KeyError(f"reminder {reminder_id} not found")
    bumped = replace(reminder, trigger_count=reminder.trigger_count + 1)
    write_md(REMINDERS_DIR, bumped, bumped.name, None)


class FileReminderStore:
    """ReminderStore over the markdown files."""

    def list_active(self) -> list[Reminder]:
        return list_active()

    def increment_count(self, reminder_id: str) -> None:
        increment_count(reminder_id)
