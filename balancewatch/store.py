"""Snapshot store: the one handle every pipeline component reads and writes through.

A single ``SnapshotStore`` is built per process (FastAPI lifespan or CLI entry)
and passed to the services. Each method runs in its own session, commits once,
and turns any SQLAlchemy failure into ``StorageError`` after the session has
rolled back.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

from sqlalchemy import delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from balancewatch.errors import StorageError
from balancewatch.models.hourly_point import HourlyPoint
from balancewatch.models.job_log import JobLog
from balancewatch.models.snapshot import Snapshot
from balancewatch.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

HOURLY_KEY = ("hour_bucket", "owner_id", "account_id")
HOURLY_VALUES = ("balance_last", "equity_last", "profit_last", "updated_at")


class SnapshotStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def session(self, operation: str) -> Iterator[Session]:
        try:
            with Session(self.engine, expire_on_commit=False) as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Store operation '{operation}' failed: {e}")
            raise StorageError(f"{operation} failed: {e}") from e

    # -- snapshots ---------------------------------------------------------

    def insert_snapshot(self, snapshot: Snapshot) -> Snapshot:
        with self.session("snapshot insert") as session:
            session.add(snapshot)
            session.commit()
        return snapshot

    def select_snapshots(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        end_inclusive: bool = False,
        owner_id: str | None = None,
    ) -> list[Snapshot]:
        """Snapshots with ``start <= captured_at < end`` (``<= end`` if inclusive).

        Ordered by owner, account, captured_at, then insertion order.
        """
        stmt = select(Snapshot)
        if owner_id is not None:
            stmt = stmt.where(Snapshot.owner_id == owner_id)
        if start is not None:
            stmt = stmt.where(Snapshot.captured_at >= start)
        if end is not None:
            if end_inclusive:
                stmt = stmt.where(Snapshot.captured_at <= end)
            else:
                stmt = stmt.where(Snapshot.captured_at < end)
        stmt = stmt.order_by(
            Snapshot.owner_id, Snapshot.account_id, Snapshot.captured_at, Snapshot.id
        )
        with self.session("snapshot select") as session:
            return list(session.exec(stmt).all())

    def delete_snapshots_before(self, cutoff: datetime) -> int:
        with self.session("snapshot delete") as session:
            result = session.execute(delete(Snapshot).where(Snapshot.captured_at < cutoff))
            session.commit()
            return result.rowcount or 0

    # -- hourly series -----------------------------------------------------

    def upsert_hourly_points(self, points: list[dict[str, Any]]) -> int:
        """Insert or overwrite hourly rows keyed by (hour_bucket, owner_id, account_id)."""
        if not points:
            return 0
        now = utcnow()
        rows = [{**p, "updated_at": now} for p in points]

        with self.session("hourly upsert") as session:
            dialect = self.engine.dialect.name
            if dialect in ("postgresql", "sqlite"):
                insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
                stmt = insert(HourlyPoint.__table__).values(rows)
                stmt = stmt.on_conflict_do_update(
                    index_elements=list(HOURLY_KEY),
                    set_={col: stmt.excluded[col] for col in HOURLY_VALUES},
                )
                session.execute(stmt)
            else:
                for row in rows:
                    existing = session.exec(
                        select(HourlyPoint)
                        .where(HourlyPoint.hour_bucket == row["hour_bucket"])
                        .where(HourlyPoint.owner_id == row["owner_id"])
                        .where(HourlyPoint.account_id == row["account_id"])
                    ).first()
                    if existing is None:
                        session.add(HourlyPoint(**row))
                    else:
                        for col in HOURLY_VALUES:
                            setattr(existing, col, row[col])
                        session.add(existing)
            session.commit()
        return len(rows)

    def hourly_points(
        self,
        owner_id: str,
        *,
        account_id: int | None = None,
        since: datetime | None = None,
    ) -> list[HourlyPoint]:
        stmt = select(HourlyPoint).where(HourlyPoint.owner_id == owner_id)
        if account_id is not None:
            stmt = stmt.where(HourlyPoint.account_id == account_id)
        if since is not None:
            stmt = stmt.where(HourlyPoint.hour_bucket >= since)
        stmt = stmt.order_by(HourlyPoint.account_id, HourlyPoint.hour_bucket)
        with self.session("hourly select") as session:
            return list(session.exec(stmt).all())

    # -- job log -----------------------------------------------------------

    def add_job_log(self, log: JobLog) -> JobLog:
        with self.session("job log insert") as session:
            session.add(log)
            session.commit()
        return log

    def job_logs(
        self,
        *,
        job: str | None = None,
        status: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[JobLog]:
        stmt = select(JobLog).order_by(JobLog.timestamp.desc(), JobLog.id.desc())
        if job is not None:
            stmt = stmt.where(JobLog.job == job)
        if status is not None:
            stmt = stmt.where(JobLog.status == status)
        stmt = stmt.offset(offset).limit(limit)
        with self.session("job log select") as session:
            return list(session.exec(stmt).all())
