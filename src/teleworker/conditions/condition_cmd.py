"""CLI handler for `teleworker condition` subcommand."""

import argparse
import asyncio
from datetime import datetime, timezone

import aiohttp

from teleworker.conditions.base import ConditionResult
from teleworker.conditions.registry import PROVIDERS
from teleworker.conditions.resolver import resolve


async def _check(ref: str) -> ConditionResult:
    async with aiohttp.ClientSession() as session:
        return await resolve(ref, datetime.now(timezone.utc), session)


def run_condition_command(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="teleworker condition")
    parser.add_argument("ref", nargs="?", help="Internal path or http(s) URL")
    args = parser.parse_args(argv)

    if args.ref is None:
        for path in sorted(PROVIDERS):
            print(f"  {path}")
        return

    result = asyncio.run(_check(args.ref))
    print("1" if result.trigger else "0")
    for key, value in result.substitutions.items():
        print(f"  {key}: {value}")
