"""Shared types for gating conditions."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime

import aiohttp


@dataclass(frozen=True, slots=True)
class ConditionResult:
    trigger: bool
    substitutions: dict[str, str] = field(default_factory=dict)


NOT_MET = ConditionResult(trigger=False)

Provider = Callable[[datetime, aiohttp.ClientSession], Awaitable[ConditionResult]]
