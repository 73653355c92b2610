"""Command line entry-point to seed notification rules and run a pass on demand."""

from __future__ import annotations

import argparse
import logging
from typing import Optional

from ..database import SessionLocal, session_scope
from ..migrations import run_database_migrations
from ..services.notification_rules import NotificationRuleService
from ..services.notifications import NotificationService

LOGGER = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Seed the built-in notification rules and evaluate active rules."
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Create the built-in rules whose type has no definition yet.",
    )
    parser.add_argument(
        "--skip-check",
        action="store_true",
        help="Do not run an evaluation pass after seeding.",
    )
    parser.add_argument(
        "--skip-migrations",
        action="store_true",
        help="Assume the database schema is already up to date.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print additional debugging information.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    if not args.skip_migrations:
        run_database_migrations()

    if args.seed:
        with session_scope() as session:
            created = NotificationRuleService.seed_default_rules(session)
            LOGGER.info("Seeded %s notification rule(s)", len(created))

    if args.skip_check:
        return 0

    summary = NotificationService(SessionLocal).check_all_rules()
    if summary is None:
        LOGGER.error("Another notification pass is already running")
        return 1
    LOGGER.info("Pass summary: %s", summary.to_schema().model_dump())
    return 1 if summary.failed_rules else 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
