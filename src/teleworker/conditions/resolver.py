"""Resolve a reminder's condition reference into a go/no-go plus substitutions."""

import logging
from datetime import datetime

import aiohttp

from teleworker.conditions.base import NOT_MET, ConditionResult
from teleworker.conditions.registry import lookup

log = logging.getLogger(__name__)

_EXTERNAL_TIMEOUT = aiohttp.ClientTimeout(total=15)


async def fetch_flag(url: str, session: aiohttp.ClientSession) -> ConditionResult:
    """GET url; the condition holds iff the trimmed body is exactly "1"."""
    async with session.get(url, timeout=_EXTERNAL_TIMEOUT) as resp:
        if resp.status >= 400:
            log.warning("Condition %s answered HTTP %d", url, resp.status)
            return NOT_MET
        body = (await resp.text()).strip()
    return ConditionResult(trigger=body == "1")


async def resolve(
    condition_ref: str, now: datetime, session: aiohttp.ClientSession
) -> ConditionResult:
    """Never raises; every failure resolves to NOT_MET and is logged.

    Internal paths (leading "/") are answered by the provider registry and
    never fall through to an HTTP request.
    """
    ref = condition_ref.strip()
    try:
        if ref.startswith("/"):
            provider = lookup(ref)
            if provider is None:
                log.error("Unknown internal condition %s", ref)
                return NOT_MET
            return await provider(now, session)
        if ref.startswith(("http://", "https://")):
            return await fetch_flag(ref, session)
    except Exception:
        log.exception("Condition %s failed", ref)
        return NOT_MET
    log.error("Unrecognized condition reference %r", ref)
    return NOT_MET
