"""CLI handler for `teleworker tick` subcommand."""

import argparse
import asyncio
from datetime import datetime, timezone

from teleworker.scheduling.scheduler import run_once


def run_tick_command(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="teleworker tick")
    parser.add_argument(
        "--at", default=None, help="Evaluate as of this ISO instant instead of now"
    )
    args = parser.parse_args(argv)

    now = None
    if args.at:
        now = datetime.fromisoformat(args.at.replace("Z", "+00:00"))
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

    report = asyncio.run(run_once(now))
    print(f"fired: {', '.join(report.fired) or '-'}")
    if report.gated:
        print(f"condition not met: {', '.join(report.gated)}")
    if report.failed:
        print(f"failed: {', '.join(report.failed)}")
    if report.deferred:
        print(f"deferred: {', '.join(report.deferred)}")
