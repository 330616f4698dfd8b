# manage_db.py
"""
Maintenance commands for tinylink storage.

Usage:
  python manage_db.py migrate [--backfill-days 30]   # create table + indexes (postgres)
  python manage_db.py check                          # connectivity check, prints store time
  python manage_db.py sweep                          # delete expired links once

The backend comes from TINYLINK_STORAGE_BACKEND / TINYLINK_DB_DSN unless --backend/--dsn are given.
"""
import argparse
import logging
import sys
import time

from tinylink.errors import StoreError
from tinylink.manager.sweeper import ExpirySweeper
from tinylink.storage.storage_factory import get_storage

log = logging.getLogger("tinylink.manage")


def cmd_migrate(storage, args) -> int:
    if not hasattr(storage, "migrate"):
        print(f"MIGRATION: skipped ({type(storage).__name__} has no schema)")
        return 0
    storage.migrate()
    if args.backfill_days:
        updated = storage.backfill_expiry(args.backfill_days)
        print(f"BACKFILLED: {updated} link(s) now expire {args.backfill_days} day(s) after creation")
    print("MIGRATION: ok")
    return 0


def cmd_check(storage, args) -> int:
    t0 = time.perf_counter()
    now = storage.ping()
    dt = time.perf_counter() - t0
    print(f"CONNECTED: {type(storage).__name__}")
    print(f"STORE TIME: {now.isoformat()}")
    print(f"LATENCY: {dt * 1000.0:.1f} ms")
    return 0


def cmd_sweep(storage, args) -> int:
    result = ExpirySweeper(storage).run()
    print(f"DELETED: {result.deleted_count}")
    print(f"TIMESTAMP: {result.timestamp.isoformat()}")
    return 0


COMMANDS = {
    "migrate": cmd_migrate,
    "check": cmd_check,
    "sweep": cmd_sweep,
}


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="tinylink storage maintenance")
    ap.add_argument("--backend", default=None, help='"memory" or "postgres" (default: from env)')
    ap.add_argument("--dsn", default=None, help="postgres DSN (default: TINYLINK_DB_DSN)")
    ap.add_argument("-v", "--verbose", action="store_true")
    sub = ap.add_subparsers(dest="command", required=True)

    migrate = sub.add_parser("migrate", help="create the links table and indexes")
    migrate.add_argument(
        "--backfill-days", type=int, default=0,
        help="give links without an expiry created_at + N days",
    )
    sub.add_parser("check", help="verify the store is reachable")
    sub.add_parser("sweep", help="delete expired links")

    args = ap.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    kwargs = {"dsn": args.dsn} if args.dsn else {}
    try:
        storage = get_storage(args.backend, **kwargs)
        return COMMANDS[args.command](storage, args)
    except (StoreError, ValueError) as exc:
        log.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
