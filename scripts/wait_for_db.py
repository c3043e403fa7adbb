#!/usr/bin/env python3
"""
Wait for the database to accept connections.

Usage:
    python scripts/wait_for_db.py                          # Use DB_WAIT_* settings
    python scripts/wait_for_db.py --attempts 60 --interval 1
"""
import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from entrypoint.cli import configure_logging
from entrypoint.config import get_settings
from entrypoint.db.postgres import DatabaseUnavailableError, wait_for_database


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def non_negative_float(value: str) -> float:
    number = float(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return number


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Wait for PostgreSQL")
    parser.add_argument(
        "--attempts",
        type=positive_int,
        help="Maximum number of connection attempts (default: DB_WAIT_ATTEMPTS)"
    )
    parser.add_argument(
        "--interval",
        type=non_negative_float,
        help="Seconds to sleep between attempts (default: DB_WAIT_INTERVAL_SECONDS)"
    )

    args = parser.parse_args(argv)

    settings = get_settings()
    overrides = {}
    if args.attempts is not None:
        overrides["DB_WAIT_ATTEMPTS"] = args.attempts
    if args.interval is not None:
        overrides["DB_WAIT_INTERVAL_SECONDS"] = args.interval
    if overrides:
        settings = settings.model_copy(update=overrides)

    configure_logging(settings.log_level)

    try:
        wait_for_database(settings)
    except DatabaseUnavailableError:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
