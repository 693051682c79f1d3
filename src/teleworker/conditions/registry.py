"""Internal condition paths and the providers behind them.

This table is the only place a condition path is bound to code. The resolver
and the read-only HTTP server both look paths up here.
"""

from urllib.parse import urlsplit

from teleworker.conditions import meetings, prayer, sentiment
from teleworker.conditions.base import Provider

PROVIDERS: dict[str, Provider] = {
    "/condition/extreme": sentiment.extreme,
    "/condition/extreme-fear": sentiment.extreme_fear,
    "/condition/extreme-greed": sentiment.extreme_greed,
    "/condition/wake-up": prayer.wake_up,
    "/condition/wake-up-sunrise": prayer.wake_up_sunrise,
    "/condition/friday-prayer": prayer.friday_prayer,
    "/condition/monthly-meeting": meetings.monthly,
}

# Paths used by reminders created against the older microservice routes.
ALIASES: dict[str, str] = {
    "/microservices/fng/extreme": "/condition/extreme",
    "/microservices/fng/extreme-fear": "/condition/extreme-fear",
    "/microservices/fng/extreme-greed": "/condition/extreme-greed",
    "/microservices/prayer/wake-up": "/condition/wake-up",
    "/microservices/prayer/wake-up-sunrise": "/condition/wake-up-sunrise",
    "/microservices/prayer/friday-prayer": "/condition/friday-prayer",
    "/microservices/meetings/monthly": "/condition/monthly-meeting",
}


def canonical_path(ref: str) -> str:
    path = urlsplit(ref).path
    if len(path) > 1:
        path = path.rstrip("/")
    return ALIASES.get(path, path)


def lookup(ref: str) -> Provider | None:
    """Provider for an internal condition path, or None if unknown."""
    return PROVIDERS.get(canonical_path(ref))
