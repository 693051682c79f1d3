"""Fan a rendered message out to recipients and, optionally, one voice call."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import aiohttp

from teleworker import config
from teleworker.channels import (
    CallMeBotChannel,
    DiscordChannel,
    TelegramChannel,
    TextChannel,
    TwilioChannel,
    VoiceChannel,
)

log = logging.getLogger(__name__)


@dataclass(slots=True)
class DispatchReport:
    delivered: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    called: bool = False


class Dispatcher:
    def __init__(self, text: TextChannel, voice: VoiceChannel | None = None) -> None:
        self.text = text
        self.voice = voice

    async def notify(self, recipients: list[str], text: str, ring: bool) -> DispatchReport:
        """Deliver to every recipient independently; never raises.

        A ring places one call for the whole reminder, not one per recipient.
        """
        report = DispatchReport()
        for recipient in recipients:
            try:
                await self.text.send(recipient, text)
            except Exception:
                log.exception("Failed to notify %s", recipient)
                report.failed.append(recipient)
            else:
                report.delivered.append(recipient)

        if ring:
            if self.voice is None:
                log.warning("Ring requested but no voice channel is configured")
            else:
                try:
                    await self.voice.call(text)
                except Exception:
                    log.exception("Voice call failed")
                else:
                    report.called = True
        return report

    async def close(self) -> None:
        for channel in (self.text, self.voice):
            close = getattr(channel, "close", None)
            if close is not None:
                await close()


def build_dispatcher(session: aiohttp.ClientSession) -> Dispatcher:
    """Channels chosen from config; Twilio wins over CallMeBot when both are set."""
    text: TextChannel
    if config.TEXT_CHANNEL == "discord":
        if not config.DISCORD_TOKEN:
            raise SystemExit("TELEWORKER_TEXT_CHANNEL=discord requires DISCORD_TOKEN")
        text = DiscordChannel(config.DISCORD_TOKEN)
    else:
        if not config.TELEGRAM_BOT_TOKEN:
            raise SystemExit("TELEWORKER_TEXT_CHANNEL=telegram requires TELEGRAM_BOT_TOKEN")
        text = TelegramChannel(config.TELEGRAM_BOT_TOKEN, session)

    voice: VoiceChannel | None = None
    twilio = (
        config.TWILIO_ACCOUNT_SID,
        config.TWILIO_AUTH_TOKEN,
        config.TWILIO_PHONE_NUMBER,
        config.MY_PHONE_NUMBER,
    )
    if all(twilio):
        sid, token, from_number, to_number = twilio
        voice = TwilioChannel(sid, token, from_number, to_number, session)  # type: ignore[arg-type]
    elif config.CALLMEBOT_USER:
        voice = CallMeBotChannel(config.CALLMEBOT_USER, session)
    return Dispatcher(text, voice)
