"""User-configurable values loaded from environment variables."""

import os
import sys
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

TEXT_CHANNEL: str = os.environ.get("TELEWORKER_TEXT_CHANNEL", "telegram")
if TEXT_CHANNEL not in ("telegram", "discord"):
    print(f"Unknown TELEWORKER_TEXT_CHANNEL: {TEXT_CHANNEL!r}", file=sys.stderr)
    print("Use telegram or discord.", file=sys.stderr)
    raise SystemExit(1)

TELEGRAM_BOT_TOKEN: str | None = os.environ.get("TELEGRAM_BOT_TOKEN")
DISCORD_TOKEN: str | None = os.environ.get("DISCORD_TOKEN")

CALLMEBOT_USER: str | None = os.environ.get("CALLMEBOT_USER")
TWILIO_ACCOUNT_SID: str | None = os.environ.get("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN: str | None = os.environ.get("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER: str | None = os.environ.get("TWILIO_PHONE_NUMBER")
MY_PHONE_NUMBER: str | None = os.environ.get("MY_PHONE_NUMBER")

# Local wall clock: interval-pattern times and daily-event providers.
# Must be a fixed-offset zone; DST transitions are not handled.
TZ: ZoneInfo = ZoneInfo(os.environ.get("TELEWORKER_TIMEZONE") or "Asia/Jakarta")
# Zone whose calendar fields cron expressions are matched against.
CRON_TZ: ZoneInfo = ZoneInfo(os.environ.get("TELEWORKER_CRON_TIMEZONE") or "UTC")

CONDITION_PORT: int | None = (
    int(os.environ["TELEWORKER_CONDITION_PORT"])
    if os.environ.get("TELEWORKER_CONDITION_PORT")
    else None
)
TICK_DEADLINE_SECONDS: float = float(os.environ.get("TELEWORKER_TICK_DEADLINE", "50"))

PRAYER_CITY: str = os.environ.get("PRAYER_CITY", "Sidoarjo")
PRAYER_COUNTRY: str = os.environ.get("PRAYER_COUNTRY", "Indonesia")
PRAYER_METHOD: int = int(os.environ.get("PRAYER_METHOD", "20"))  # Kemenag RI
