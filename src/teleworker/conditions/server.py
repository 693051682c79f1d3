"""Read-only HTTP endpoints for the internal conditions.

Each registry path answers "1" or "0" so other deployments can use it as a
generic external condition URL.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import aiohttp
from aiohttp import web

from teleworker.conditions.registry import PROVIDERS, canonical_path, lookup

log = logging.getLogger(__name__)

_KEY_SESSION = web.AppKey("session", aiohttp.ClientSession)


async def _handle_condition(request: web.Request) -> web.Response:
    provider = lookup(request.path)
    if provider is None:
        return web.json_response(
            {"error": f"unknown condition: {request.path}"}, status=404
        )
    try:
        result = await provider(datetime.now(timezone.utc), request.app[_KEY_SESSION])
    except Exception as exc:
        log.exception("Condition %s failed", canonical_path(request.path))
        return web.Response(text=f"Condition error: {exc}", status=500)
    return web.Response(text="1" if result.trigger else "0")


async def _handle_index(request: web.Request) -> web.Response:
    return web.json_response({"conditions": sorted(PROVIDERS)})


async def _handle_health(request: web.Request) -> web.Response:
    return web.json_response({"ok": True})


async def _client_session(app: web.Application):
    async with aiohttp.ClientSession() as session:
        app[_KEY_SESSION] = session
        yield


def create_app() -> web.Application:
    app = web.Application()
    app.cleanup_ctx.append(_client_session)
    app.router.add_get("/health", _handle_health)
    app.router.add_get("/condition", _handle_index)
    app.router.add_get("/{tail:.+}", _handle_condition)
    return app


async def start(port: int) -> web.AppRunner:
    """Serve on 127.0.0.1; the caller owns the returned runner."""
    runner = web.AppRunner(create_app())
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    log.info("Condition server started on 127.0.0.1:%d", port)
    return runner
