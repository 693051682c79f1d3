"""Notification transports: chat text channels and voice-call channels."""

from __future__ import annotations

import logging
from typing import Protocol
from xml.sax.saxutils import escape

import aiohttp
import discord

log = logging.getLogger(__name__)

CALLMEBOT_MAX_TEXT = 256


class ChannelError(Exception):
    """A transport refused or failed to deliver."""


class TextChannel(Protocol):
    async def send(self, recipient: str, text: str) -> None: ...


class VoiceChannel(Protocol):
    async def call(self, text: str) -> None: ...


class TelegramChannel:
    """Bot API sendMessage; recipients are chat ids."""

    def __init__(self, token: str, session: aiohttp.ClientSession) -> None:
        self._url = f"https://api.telegram.org/bot{token}/sendMessage"
        self._session = session

    async def send(self, recipient: str, text: str) -> None:
        payload = {"chat_id": recipient, "text": text}
        async with self._session.post(self._url, json=payload) as resp:
            if resp.status != 200:
                body = await resp.text()
                raise ChannelError(f"telegram HTTP {resp.status}: {body[:200]}")


class DiscordChannel:
    """DMs Discord users by id over the REST API (no gateway connection)."""

    def __init__(self, token: str) -> None:
        self._token = token
        self._client: discord.Client | None = None

    async def _ensure_client(self) -> discord.Client:
        if self._client is None:
            client = discord.Client(intents=discord.Intents.none())
            await client.login(self._token)
            self._client = client
        return self._client

    async def send(self, recipient: str, text: str) -> None:
        try:
            user_id = int(recipient)
            client = await self._ensure_client()
            user = await client.fetch_user(user_id)
            await user.send(text[:2000])
        except (discord.DiscordException, ValueError) as exc:
            raise ChannelError(f"discord: {exc}") from exc

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


class CallMeBotChannel:
    """Telegram voice call via CallMeBot. Text is cut to 256 chars, read twice."""

    URL = "http://api.callmebot.com/start.php"

    def __init__(self, user: str, session: aiohttp.ClientSession) -> None:
        self._user = user
        self._session = session

    async def call(self, text: str) -> None:
        params = {
            "user": self._user,
            "text": text[:CALLMEBOT_MAX_TEXT],
            "lang": "en-US-Standard-B",
            "rpt": "2",
        }
        log.info("Calling %s: %.50s", self._user, text)
        async with self._session.get(self.URL, params=params) as resp:
            body = await resp.text()
        if "Authorization OK" in body:
            log.info("CallMeBot call initiated")
        elif "Line is busy" in body:
            log.info("CallMeBot call queued (line busy)")
        else:
            raise ChannelError(f"callmebot: unexpected response {body[:200]!r}")


def build_twiml(text: str, repeats: int = 3) -> str:
    """Voice markup that speaks ``text`` several times with a pause between."""
    spoken = escape(text, {'"': "&quot;"})
    say = f'  <Say voice="alice" language="en-US">{spoken}</Say>'
    body = '\n  <Pause length="1"/>\n'.join([say] * repeats)
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<Response>\n{body}\n</Response>'


class TwilioChannel:
    """Phone call through Twilio's REST API with inline TwiML."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        to_number: str,
        session: aiohttp.ClientSession,
    ) -> None:
        self._url = f"https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Calls.json"
        self._auth = aiohttp.BasicAuth(account_sid, auth_token)
        self._from = from_number
        self._to = to_number
        self._session = session

    async def call(self, text: str) -> None:
        form = {"To": self._to, "From": self._from, "Twiml": build_twiml(text)}
        async with self._session.post(self._url, data=form, auth=self._auth) as resp:
            data = await resp.json(content_type=None)
            if resp.status >= 400:
                raise ChannelError(f"twilio: {data.get('message') or data}")
        log.info("Twilio call initiated: %s", data.get("sid"))
