"""Entry point for teleworker."""

from __future__ import annotations

import asyncio
import atexit
import logging
import os
import signal
import sys
from pathlib import Path

from teleworker.storage import STATE_DIR

PID_FILE = STATE_DIR / "teleworker.pid"


HELP = """\
teleworker -- personal reminder scheduler with chat and voice notifications

commands:
  teleworker [run]             Run the scheduler (one tick per minute)
  teleworker tick              Run a single tick now
  teleworker reminder add      Create a reminder
  teleworker reminder list     Show all reminders
  teleworker reminder cancel   Delete a reminder by ID
  teleworker reminder pause    Stop evaluating a reminder
  teleworker reminder resume   Resume a paused reminder
  teleworker condition [REF]   Evaluate a condition (no REF: list internal ones)
  teleworker help              Show this help message

examples:
  teleworker reminder add -n standup -m "Standup in 5" --to 12345 --when "55 1 * * 1-5"
  teleworker reminder add -n dca -m "Index at {{value}}, consider {{action}}" \\
      --to 12345 --when "0 * * * *" --condition /condition/extreme
  teleworker reminder add -n rent -m "Pay rent" --to 12345 --when "P1M@2025-01-01T09:00"
  teleworker tick --at 2025-01-01T00:00:00Z
"""


def _check_already_running() -> None:
    STATE_DIR.mkdir(parents=True, exist_ok=True)
    if PID_FILE.exists():
        pid = int(PID_FILE.read_text().strip())
        proc_cmdline = Path(f"/proc/{pid}/cmdline")
        if proc_cmdline.exists() and "teleworker" in proc_cmdline.read_bytes().decode(errors="replace"):
            print(f"teleworker is already running (pid {pid})")
            raise SystemExit(1)
    PID_FILE.write_text(str(os.getpid()))
    atexit.register(PID_FILE.unlink, missing_ok=True)


def _dispatch_subcommand() -> bool:
    """Route CLI subcommands. Returns True if handled."""
    if len(sys.argv) < 2:
        return False
    cmd = sys.argv[1]
    rest = sys.argv[2:]
    if cmd == "run":
        return False
    if cmd in ("help", "--help", "-h"):
        print(HELP)
        return True
    routes: dict[str, tuple[str, str]] = {
        "reminder": ("teleworker.scheduling.reminder_cmd", "run_reminder_command"),
        "tick": ("teleworker.scheduling.tick_cmd", "run_tick_command"),
        "condition": ("teleworker.conditions.condition_cmd", "run_condition_command"),
    }
    if cmd in routes:
        from importlib import import_module

        mod_path, func_name = routes[cmd]
        getattr(import_module(mod_path), func_name)(rest)
        return True
    print(f"unknown command: {cmd}\n\n{HELP}", file=sys.stderr)
    raise SystemExit(2)


log = logging.getLogger(__name__)


async def _run() -> None:
    """Run the tick scheduler (and condition server) until SIGTERM/SIGINT."""
    from teleworker.conditions import server
    from teleworker.config import CONDITION_PORT
    from teleworker.scheduling import setup_scheduler

    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, stop.set)

    scheduler = setup_scheduler()
    scheduler.start()
    runner = await server.start(CONDITION_PORT) if CONDITION_PORT else None
    log.info("teleworker started")
    try:
        await stop.wait()
    finally:
        scheduler.shutdown(wait=False)
        if runner is not None:
            await runner.cleanup()
        log.info("teleworker stopped")


def main() -> None:
    if _dispatch_subcommand():
        return

    import discord

    discord.utils.setup_logging()
    _check_already_running()
    asyncio.run(_run())


if __name__ == "__main__":
    main()
