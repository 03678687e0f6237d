"""Command-line access to a rod store.

Usage:
    rod app.db put users.chilts email andychilton@gmail.com
    rod app.db get users.chilts email
    rod app.db keys users.chilts
    rod app.db dump users.chilts
    rod app.db del users.chilts email

    # Or with a store URL
    rod "sqlite:///app.db?timeout=1" keys users
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from . import core
from .db import DB, connect
from .exceptions import RodError

logger = logging.getLogger(__name__)

# Exit codes
EXIT_OK = 0
EXIT_MISSING = 1
EXIT_ERROR = 2


def open_db(database: str, read_only: bool) -> DB:
    """Open a store from a URL or a plain SQLite file path."""
    if "://" in database:
        return connect(database, read_only=read_only)
    return connect(f"sqlite:///{database}", read_only=read_only)


def cmd_get(db: DB, args: argparse.Namespace) -> int:
    value = db.view(lambda tx: core.get(tx, args.location, args.key))
    if value is None:
        return EXIT_MISSING
    print(value.decode("utf-8", errors="replace"))
    return EXIT_OK


def cmd_put(db: DB, args: argparse.Namespace) -> int:
    db.update(lambda tx: core.put(tx, args.location, args.key, args.value.encode("utf-8")))
    return EXIT_OK


def cmd_del(db: DB, args: argparse.Namespace) -> int:
    db.update(lambda tx: core.delete(tx, args.location, args.key))
    return EXIT_OK


def cmd_keys(db: DB, args: argparse.Namespace) -> int:
    keys = db.view(lambda tx: core.all_keys(tx, args.location))
    for key in keys:
        print(key)
    return EXIT_OK


def cmd_dump(db: DB, args: argparse.Namespace) -> int:
    def read(tx):
        bucket = core.get_bucket(tx, args.location)
        if bucket is None:
            return None
        return {key: value.decode("utf-8", errors="replace") for key, value in bucket.items()}

    entries = db.view(read)
    if entries is None:
        return EXIT_MISSING
    print(json.dumps(entries, indent=2, ensure_ascii=False))
    return EXIT_OK


COMMANDS = {
    "get": (cmd_get, False),
    "put": (cmd_put, True),
    "del": (cmd_del, True),
    "keys": (cmd_keys, False),
    "dump": (cmd_dump, False),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rod",
        description="Read and write values in a rod store",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "database",
        help="SQLite file path or store URL (sqlite:///..., memory://)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("get", help="Print the value of a key")
    p.add_argument("location")
    p.add_argument("key")

    p = sub.add_parser("put", help="Set a key to a string value")
    p.add_argument("location")
    p.add_argument("key")
    p.add_argument("value")

    p = sub.add_parser("del", help="Delete a key")
    p.add_argument("location")
    p.add_argument("key")

    p = sub.add_parser("keys", help="List the keys in a bucket")
    p.add_argument("location")

    p = sub.add_parser("dump", help="Print a bucket's keys and values as JSON")
    p.add_argument("location")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the rod command."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    handler, writes = COMMANDS[args.command]
    try:
        with open_db(args.database, read_only=not writes) as db:
            return handler(db, args)
    except RodError as e:
        logger.debug("command %s failed", args.command, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
