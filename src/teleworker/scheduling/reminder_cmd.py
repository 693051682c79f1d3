"""CLI handler for `teleworker reminder` subcommand."""

import argparse
import sys
from dataclasses import replace
from datetime import datetime, timezone

from teleworker.scheduling.matcher import (
    ScheduleError,
    ScheduleKind,
    classify_schedule,
    next_fire_time,
)
from teleworker.scheduling.reminders import (
    Reminder,
    append_reminder,
    get_reminder,
    list_reminders,
    remove_reminder,
    update_reminder,
)
from teleworker.storage import TZ


def _fmt_next(r: Reminder) -> str:
    if not r.active:
        return "paused"
    try:
        nxt = next_fire_time(r.schedule, datetime.now(timezone.utc), r.trigger_count)
    except ScheduleError:
        return "invalid schedule"
    if nxt is None:
        # a missed interval occurrence is never caught up
        return "stalled" if classify_schedule(r.schedule) is ScheduleKind.INTERVAL else "done"
    return f"next {nxt.astimezone(TZ).strftime('%Y-%m-%d %H:%M')}"


def _fmt_flags(r: Reminder) -> str:
    parts = []
    if r.ring_on_trigger:
        parts.append("ring")
    if r.condition_ref:
        parts.append(f"if {r.condition_ref}")
    return f"[{', '.join(parts)}]" if parts else ""


def run_reminder_command(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="teleworker reminder")
    sub = parser.add_subparsers(dest="action")

    add_p = sub.add_parser("add", help="Create a reminder")
    add_p.add_argument("--name", "-n", required=True, help="Short label")
    add_p.add_argument("--message", "-m", required=True, help="Message template")
    add_p.add_argument(
        "--to", nargs="+", required=True, help="Recipient chat ids", dest="recipients"
    )
    add_p.add_argument(
        "--when",
        required=True,
        help='Cron ("30 9 * * *"), ISO instant, or interval ("P3M@2025-01-15T09:00")',
    )
    add_p.add_argument("--condition", default=None, help="Internal path or http(s) URL")
    add_p.add_argument("--ring", action="store_true", help="Also place a voice call")
    add_p.add_argument("--paused", action="store_true", help="Create inactive")

    sub.add_parser("list", help="Show all reminders")

    for name, help_text in (
        ("cancel", "Delete a reminder by ID"),
        ("pause", "Stop evaluating a reminder"),
        ("resume", "Resume a paused reminder"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("id", help="Reminder ID")

    args = parser.parse_args(argv)

    if args.action == "add":
        _handle_add(args)
    elif args.action == "list":
        _handle_list()
    elif args.action == "cancel":
        _handle_cancel(args.id)
    elif args.action in ("pause", "resume"):
        _handle_set_active(args.id, active=args.action == "resume")
    else:
        parser.print_help()
        sys.exit(1)


def _handle_add(args: argparse.Namespace) -> None:
    try:
        reminder = Reminder.new(
            args.name,
            args.message,
            recipients=args.recipients,
            schedule=args.when,
            condition_ref=args.condition,
            ring_on_trigger=args.ring,
            active=not args.paused,
        )
    except ScheduleError as exc:
        print(f"error: {exc}")
        sys.exit(1)
    append_reminder(reminder)
    print(f"scheduled {reminder.id}: {reminder.schedule} -- {reminder.name}")


def _handle_list() -> None:
    reminders = list_reminders()
    if not reminders:
        print("no reminders")
        return
    for r in reminders:
        line = f"  {r.id}  {r.schedule:20s}  {_fmt_next(r):24s}  {r.name}"
        flags = _fmt_flags(r)
        if flags:
            line += f"  {flags}"
        print(line)


def _handle_cancel(reminder_id: str) -> None:
    if remove_reminder(reminder_id):
        print(f"cancelled {reminder_id}")
    else:
        print(f"reminder {reminder_id} not found")
        sys.exit(1)


def _handle_set_active(reminder_id: str, *, active: bool) -> None:
    reminder = get_reminder(reminder_id)
    if reminder is None:
        print(f"reminder {reminder_id} not found")
        sys.exit(1)
    update_reminder(replace(reminder, active=active))
    print(f"{'resumed' if active else 'paused'} {reminder_id}")
