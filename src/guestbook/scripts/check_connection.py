"""Connectivity check for the configured guestbook database.

Verifies the messages table is readable and, with ``--write``, that a probe
message can be inserted and removed again.
"""
from __future__ import annotations

import argparse
import asyncio
import sys

from guestbook.core.settings import Settings, settings
from guestbook.services.context import GuestbookContext, build_context
from guestbook.services.errors import BACKEND_ERRORS, FailureCause, GuestbookError, classify_failure
from guestbook.services.feed import FeedAggregator

PROBE_USERNAME = "connection-check"
PROBE_CONTENT = "Connectivity probe; safe to delete."

_HINTS = {
    FailureCause.MISSING_RELATION: "the messages table is missing; run `alembic upgrade head`",
    FailureCause.PERMISSION_DENIED: "the database user lacks privileges on the guestbook tables",
    FailureCause.CONNECTION: "the database is unreachable; check DATABASE_URL",
}


def _report(label: str, exc: BaseException) -> str:
    cause = classify_failure(exc.__cause__ or exc)
    hint = _HINTS.get(cause, str(exc))
    return f"{label}: {hint}"


async def run_checks(context: GuestbookContext, *, write: bool = False) -> list[str]:
    """Run the checks and return a list of problems (empty when healthy)."""
    problems: list[str] = []

    print("[check_connection] reading messages table...")
    try:
        await context.repository.ping()
    except BACKEND_ERRORS as exc:
        problems.append(_report("read", exc))
        return problems
    print("[check_connection] read ok")

    if write:
        print("[check_connection] inserting probe message...")
        feed = FeedAggregator(context)
        try:
            probe = await feed.create_message(PROBE_USERNAME, PROBE_CONTENT)
        except GuestbookError as exc:
            problems.append(_report("write", exc))
            return problems
        print(f"[check_connection] write ok (probe id {probe.id})")

        print("[check_connection] deleting probe message...")
        try:
            await feed.delete_message(probe.id)
        except GuestbookError as exc:
            problems.append(
                _report(f"delete (probe message {probe.id} left behind, remove it by hand)", exc)
            )
        else:
            print(f"[check_connection] delete ok (probe id {probe.id} removed)")

    return problems


async def _main_async(config: Settings, write: bool) -> int:
    context = build_context(config)
    try:
        problems = await run_checks(context, write=write)
    finally:
        await context.close()

    for problem in problems:
        print(f"[check_connection] ERROR {problem}", file=sys.stderr)
    return 1 if problems else 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Check the guestbook database connection")
    parser.add_argument(
        "--write",
        action="store_true",
        help="Also insert and delete a probe message.",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Override database URL (defaults to DATABASE_URL)",
    )
    args = parser.parse_args(argv)

    config = settings.model_copy(update={"database_url": args.url}) if args.url else settings
    return asyncio.run(_main_async(config, args.write))


if __name__ == "__main__":
    sys.exit(main())
