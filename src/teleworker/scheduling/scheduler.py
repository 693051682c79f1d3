"""Tick timer via APScheduler.

A cron job fires once a minute and runs one tick against a fresh HTTP
session and freshly built channels.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

import aiohttp
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from teleworker.config import CRON_TZ, TICK_DEADLINE_SECONDS
from teleworker.dispatch import build_dispatcher
from teleworker.scheduling.engine import TickReport, run_tick
from teleworker.scheduling.reminders import FileReminderStore, ReminderStore

log = logging.getLogger(__name__)

_HTTP_TIMEOUT = aiohttp.ClientTimeout(total=20)


async def run_once(
    now: datetime | None = None, *, store: ReminderStore | None = None
) -> TickReport:
    """Run a single tick with the configured channels."""
    now = now or datetime.now(timezone.utc)
    deadline = time.monotonic() + TICK_DEADLINE_SECONDS
    async with aiohttp.ClientSession(timeout=_HTTP_TIMEOUT) as session:
        dispatcher = build_dispatcher(session)
        try:
            return await run_tick(
                now,
                store=store or FileReminderStore(),
                dispatcher=dispatcher,
                session=session,
                deadline=deadline,
            )
        finally:
            await dispatcher.close()


def setup_scheduler() -> AsyncIOScheduler:
    """One tick at the top of every minute; overlapping ticks are dropped."""
    scheduler = AsyncIOScheduler(timezone=CRON_TZ)

    @scheduler.scheduled_job(
        CronTrigger(minute="*", timezone=CRON_TZ),
        max_instances=1,
        coalesce=True,
        misfire_grace_time=30,
    )
    async def tick() -> None:
        report = await run_once()
        if report.fired or report.failed or report.deferred:
            log.info(
                "Tick: fired=%s failed=%s deferred=%s",
                report.fired,
                report.failed,
                report.deferred,
            )

    return scheduler
