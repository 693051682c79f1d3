"""Recurring meeting calendar."""

from datetime import date, datetime, timedelta

import aiohttp

from teleworker.conditions.base import ConditionResult
from teleworker.config import TZ

_THURSDAY = 3


def is_last_thursday(day: date) -> bool:
    return day.weekday() == _THURSDAY and (day + timedelta(days=7)).month != day.month


async def monthly(now: datetime, session: aiohttp.ClientSession) -> ConditionResult:
    today = now.astimezone(TZ).date()
    return ConditionResult(
        trigger=is_last_thursday(today),
        substitutions={"date": today.isoformat()},
    )
