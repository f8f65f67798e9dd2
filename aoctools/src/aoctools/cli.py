"""
Command line entry point.

Examples::

    aoctools login --verify
    aoctools input --year 2023 --day 1
    aoctools submit 1 12345
    aoctools next
    aoctools run python 01/main.py

Configuration is read from ``AOC_*`` environment variables (see
:mod:`aoctools.config`); ``LOG_LEVEL`` controls logging verbosity.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from datetime import timedelta
from typing import List, Optional, Tuple

import aiohttp

from .clients import RetryingHttpClient
from .clock import ChallengeClock, get_current_day, get_current_year, validate_day_and_year
from .config import Settings, load_settings
from .credentials import CredentialBroker
from .errors import AocError
from .prompter import ConsolePrompter
from .secrets_manager import get_default_credential_store
from .templates import build_command, get_dir_for_day, normalize_template


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aoctools", description="Advent of Code helper.")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_account(p: argparse.ArgumentParser) -> None:
        p.add_argument("--account", help="Credential store account (defaults to AOC_ACCOUNT).")

    def add_day(p: argparse.ArgumentParser) -> None:
        p.add_argument("--year", type=int, help="Event year (defaults to the current year).")
        p.add_argument("--day", type=int, help="Puzzle day (defaults to today).")

    p = sub.add_parser("login", help="Prompt for a session token and save it.")
    add_account(p)
    p.add_argument("--verify", action="store_true", help="Check the token against the platform.")

    p = sub.add_parser("token", help="Print the stored session token, prompting if missing.")
    add_account(p)
    p.add_argument("--verify", action="store_true", help="Check the token against the platform.")

    p = sub.add_parser("input", help="Print the puzzle input.")
    add_account(p)
    add_day(p)

    p = sub.add_parser("submit", help="Submit an answer.")
    add_account(p)
    add_day(p)
    p.add_argument("level", type=int, choices=(1, 2), help="Puzzle part.")
    p.add_argument("answer", help="Answer to submit.")

    sub.add_parser("next", help="Print the current challenge start time.")

    p = sub.add_parser("dir", help="Print the working directory for a day.")
    p.add_argument("day", type=int)

    p = sub.add_parser("run", help="Print a template's run command for a source file.")
    p.add_argument("template", help="Built-in template name.")
    p.add_argument("src", help="Path to the solution source.")
    return parser


def _resolve_day(args: argparse.Namespace) -> Tuple[int, int]:
    year = args.year if args.year is not None else get_current_year()
    day = args.day if args.day is not None else get_current_day()
    validate_day_and_year(day, year)
    return year, day


def _format_delta(delta: timedelta) -> str:
    seconds = int(abs(delta.total_seconds()))
    hours, rest = divmod(seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


async def run(args: argparse.Namespace, settings: Settings) -> None:
    if args.command == "next":
        clock = ChallengeClock(settings=settings)
        now = clock.now()
        start = clock.current_challenge_start_time(now=now)
        print(start.isoformat())
        if start > now:
            print(f"starts in {_format_delta(start - now)}")
        else:
            print(f"started {_format_delta(now - start)} ago")
        return
    if args.command == "dir":
        print(get_dir_for_day(args.day))
        return
    if args.command == "run":
        print(build_command(normalize_template(args.template).run_command, args.src))
        return

    client = RetryingHttpClient(settings)
    broker = CredentialBroker(
        get_default_credential_store(settings), ConsolePrompter(), client.is_token_valid, settings
    )
    if args.command == "login":
        token = await broker.prompt_for_token(args.verify)
        broker.save_session_token(token, args.account)
    elif args.command == "token":
        print(await broker.get_session_token(args.account, args.verify))
    elif args.command == "input":
        year, day = _resolve_day(args)
        token = await broker.get_session_token(args.account)
        sys.stdout.write(await client.fetch_input(year, day, token))
    elif args.command == "submit":
        year, day = _resolve_day(args)
        token = await broker.get_session_token(args.account)
        print(await client.submit_answer(year, day, args.level, args.answer, token))


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    args = build_parser().parse_args(argv)
    try:
        asyncio.run(run(args, load_settings()))
    except (AocError, aiohttp.ClientError) as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
