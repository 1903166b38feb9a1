#!/usr/bin/env python3
"""
sweep_tokens.py
Removes expired and already-used download tokens once, without waiting
for the service's background sweeper.
"""

import argparse
from contextlib import closing

from config import DATABASE_URL
from database import SessionLocal
from tokens import sweep_tokens


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete stale download tokens.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only count the tokens that would be deleted.",
    )
    return parser.parse_args()


def main():
    args = _parse_args()
    with closing(SessionLocal()) as db:
        count = sweep_tokens(db, dry_run=args.dry_run)
    if args.dry_run:
        print(f"{count} stale token(s) in {DATABASE_URL} would be deleted.")
    else:
        print(f"Deleted {count} stale token(s) from {DATABASE_URL}.")

if __name__ == "__main__":
    main()
