"""CLI tool for admin operations.

Usage:
    python -m balancewatch.cli init-db
    python -m balancewatch.cli rollup
    python -m balancewatch.cli export-anchor [--force]
    python -m balancewatch.cli issue-token <owner_id>
"""

import asyncio
import json
import sys

from balancewatch.config import settings
from balancewatch.database import create_db_and_tables, make_engine
from balancewatch.engine.jobs import run_daily_export, run_hourly_cycle
from balancewatch.services.auth import create_access_token
from balancewatch.services.notifications import build_notifier
from balancewatch.store import SnapshotStore
from balancewatch.utils.logging import setup_logging


def _open_store() -> SnapshotStore:
    engine = make_engine(settings.database_url)
    create_db_and_tables(engine)
    return SnapshotStore(engine)


def init_db():
    """Create tables and apply migrations."""
    _open_store()
    print("Database ready.")


def rollup():
    """Run one hourly cycle (rollup of the previous hour, then rotation)."""
    result = asyncio.run(run_hourly_cycle(_open_store(), build_notifier()))
    print(json.dumps(result, indent=2))
    if not result["ok"]:
        sys.exit(1)


def export_anchor(force: bool):
    """Run the daily anchor export."""
    result = asyncio.run(run_daily_export(_open_store(), build_notifier(), force=force))
    print(json.dumps(result, indent=2, default=str))
    if not result["ok"]:
        sys.exit(1)


def issue_token(owner_id: str):
    """Mint an owner token for local testing of the dashboard API."""
    print(create_access_token(owner_id))


def main():
    if len(sys.argv) < 2:
        print("Usage: python -m balancewatch.cli <command>")
        print("Commands: init-db, rollup, export-anchor [--force], issue-token <owner_id>")
        sys.exit(1)

    setup_logging()
    command = sys.argv[1]
    if command == "init-db":
        init_db()
    elif command == "rollup":
        rollup()
    elif command == "export-anchor":
        export_anchor(force="--force" in sys.argv[2:])
    elif command == "issue-token":
        if len(sys.argv) < 3:
            print("Usage: python -m balancewatch.cli issue-token <owner_id>")
            sys.exit(1)
        issue_token(sys.argv[2])
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
