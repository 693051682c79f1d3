"""Daily prayer-time calendar from the Aladhan API.

Timings change every day, so they are fetched once per local day and cached
in the state dir. The wake-up conditions hold during the single minute that
sits a fixed lead time before the named prayer.
"""

import logging
from datetime import date, datetime, timedelta

import aiohttp

from teleworker.conditions.base import ConditionResult, Provider
from teleworker.config import PRAYER_CITY, PRAYER_COUNTRY, PRAYER_METHOD, TZ
from teleworker.storage import STATE_DIR, read_json_state, write_json_state

API_URL = "https://api.aladhan.com/v1/timingsByCity"
CACHE_FILE = STATE_DIR / "prayer_times.json"
PRAYERS = ("Fajr", "Sunrise", "Dhuhr", "Asr", "Maghrib", "Isha")

log = logging.getLogger(__name__)


async def get_prayer_times(session: aiohttp.ClientSession, day: date) -> dict[str, str]:
    """HH:MM local times keyed by prayer name."""
    cached = read_json_state(CACHE_FILE)
    if cached and cached.get("date") == day.isoformat():
        return cached["timings"]

    log.info("Fetching prayer times for %s", day.isoformat())
    params = {"city": PRAYER_CITY, "country": PRAYER_COUNTRY, "method": str(PRAYER_METHOD)}
    async with session.get(f"{API_URL}/{day:%d-%m-%Y}", params=params) as resp:
        resp.raise_for_status()
        data = await resp.json(content_type=None)
    raw = data["data"]["timings"]
    # Aladhan may suffix a zone label, e.g. "04:18 (WIB)"
    timings = {name: raw[name].split()[0] for name in PRAYERS}
    write_json_state(CACHE_FILE, {"date": day.isoformat(), "timings": timings})
    return timings


def _at(day: date, hhmm: str) -> datetime:
    hour, minute = (int(part) for part in hhmm.split(":"))
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=TZ)


def minutes_before(prayer: str, lead: int, *, weekday: int | None = None) -> Provider:
    """Provider that holds exactly ``lead`` minutes before ``prayer``.

    ``weekday`` (Mon=0) restricts it to one day of the week.
    """

    async def evaluate(now: datetime, session: aiohttp.ClientSession) -> ConditionResult:
        local = now.astimezone(TZ)
        if weekday is not None and local.weekday() != weekday:
            return ConditionResult(trigger=False)
        timings = await get_prayer_times(session, local.date())
        alarm = _at(local.date(), timings[prayer]) - timedelta(minutes=lead)
        hit = (local.hour, local.minute) == (alarm.hour, alarm.minute)
        return ConditionResult(
            trigger=hit,
            substitutions={"prayer": prayer, "time": timings[prayer]},
        )

    return evaluate


wake_up = minutes_before("Fajr", 5)
wake_up_sunrise = minutes_before("Sunrise", 10)
friday_prayer = minutes_before("Dhuhr", 30, weekday=4)
