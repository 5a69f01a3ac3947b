#!/usr/bin/env python3
"""
Contributor Accounts -- operator command line.

Usage:
  python main.py generate-key
  python main.py init-db
  python main.py init-db --database-url sqlite:///./accounts.db

Commands:
  generate-key  Print a random 256-bit hex secret suitable for SECRET_KEY.
  init-db       Create the users and contributions tables if missing.
                Uses DATABASE_URL from the environment / .env unless
                --database-url is given.

The HTTP API itself is served with:  uvicorn asgi:app
"""

import argparse
import secrets
import sys
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from auth.store import UserStore
from core.config import get_settings


def generate_key(nbytes: int = 32) -> str:
    """Return nbytes of randomness as hex (64 chars for the default 32 bytes)."""
    return secrets.token_hex(nbytes)


def _resolve_database_url(explicit: Optional[str]) -> Optional[str]:
    if explicit:
        return explicit
    try:
        return get_settings().database_url
    except (ValidationError, ValueError) as e:
        print(f"  [!] Could not load settings: {e}", file=sys.stderr)
        return None


def init_db(database_url: str) -> None:
    """Create the schema at database_url. Idempotent."""
    store = UserStore(db_url=database_url)
    store.close()


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="contrib-accounts",
        description="Operator tools for the contributor accounts service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py generate-key >> .env   # then prefix the line with SECRET_KEY=
  python main.py init-db
  python main.py init-db --database-url sqlite:///./accounts.db
        """,
    )
    sub = parser.add_subparsers(dest="command")

    keygen = sub.add_parser("generate-key", help="Print a random secret for SECRET_KEY")
    keygen.add_argument(
        "--bytes",
        type=int,
        default=32,
        metavar="N",
        help="Number of random bytes (default: 32; minimum 16 so the hex key meets the 32-char rule)",
    )

    initdb = sub.add_parser("init-db", help="Create database tables")
    initdb.add_argument(
        "--database-url",
        metavar="URL",
        default=None,
        help="SQLAlchemy database URL (default: DATABASE_URL setting)",
    )

    args = parser.parse_args(argv)

    if args.command == "generate-key":
        if args.bytes < 16:
            parser.error("--bytes must be at least 16")
        print(generate_key(args.bytes))
        return 0

    if args.command == "init-db":
        database_url = _resolve_database_url(args.database_url)
        if database_url is None:
            return 1
        try:
            init_db(database_url)
        except SQLAlchemyError as e:
            print(f"  [!] Could not initialize database: {e}", file=sys.stderr)
            return 1
        print(f"Database ready: {database_url}")
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
