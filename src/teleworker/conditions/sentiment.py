"""Crypto Fear & Greed index from alternative.me.

0-24 is extreme fear, 76-100 extreme greed.
"""

from dataclasses import dataclass
from datetime import datetime

import aiohttp

from teleworker.conditions.base import ConditionResult

FNG_API_URL = "https://api.alternative.me/fng/"
EXTREME_FEAR_MAX = 24
EXTREME_GREED_MIN = 76


@dataclass(frozen=True, slots=True)
class FearGreed:
    value: int
    classification: str


async def fetch_fear_greed(session: aiohttp.ClientSession) -> FearGreed:
    async with session.get(FNG_API_URL) as resp:
        resp.raise_for_status()
        data = await resp.json(content_type=None)
    current = data["data"][0]
    return FearGreed(
        value=int(current["value"]),
        classification=current["value_classification"],
    )


def sentiment_action(value: int) -> str | None:
    """Contrarian hint: buy into extreme fear, sell into extreme greed."""
    if value <= EXTREME_FEAR_MAX:
        return "buying"
    if value >= EXTREME_GREED_MIN:
        return "selling"
    return None


def _result(index: FearGreed, trigger: bool) -> ConditionResult:
    return ConditionResult(
        trigger=trigger,
        substitutions={
            "value": str(index.value),
            "classification": index.classification,
            "action": sentiment_action(index.value) or "holding",
        },
    )


async def extreme(now: datetime, session: aiohttp.ClientSession) -> ConditionResult:
    index = await fetch_fear_greed(session)
    return _result(index, sentiment_action(index.value) is not None)


async def extreme_fear(now: datetime, session: aiohttp.ClientSession) -> ConditionResult:
    index = await fetch_fear_greed(session)
    return _result(index, index.value <= EXTREME_FEAR_MAX)


async def extreme_greed(now: datetime, session: aiohttp.ClientSession) -> ConditionResult:
    index = await fetch_fear_greed(session)
    return _result(index, index.value >= EXTREME_GREED_MIN)
