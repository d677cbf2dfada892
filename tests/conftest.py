"""Shared fixtures: an in-memory SQLite store and snapshot helpers."""

from datetime import datetime, timezone

import pytest

from balancewatch.database import create_db_and_tables, make_engine
from balancewatch.models.snapshot import Snapshot
from balancewatch.store import SnapshotStore


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def store() -> SnapshotStore:
    engine = make_engine("sqlite://")
    create_db_and_tables(engine)
    yield SnapshotStore(engine)
    engine.dispose()


@pytest.fixture
def add_snapshot(store):
    """Insert a snapshot directly, bypassing ingestion."""

    def _add(owner_id: str, account_id: int, captured_at: datetime, balance: float | None = None, **fields):
        return store.insert_snapshot(Snapshot(
            owner_id=owner_id,
            account_id=account_id,
            captured_at=captured_at,
            balance=balance,
            **fields,
        ))

    return _add
