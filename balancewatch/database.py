"""SQLModel database engine and schema management."""

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

import balancewatch.models  # noqa: F401  registers the tables on SQLModel.metadata

logger = logging.getLogger(__name__)


def make_engine(database_url: str) -> Engine:
    """Build the engine for ``database_url``. Called once per process."""
    connect_args = {}
    kwargs = {}
    # SQLite needs check_same_thread=False; PostgreSQL does not
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool

    return create_engine(
        database_url,
        echo=False,
        connect_args=connect_args,
        **kwargs,
    )


def _run_migrations(engine: Engine):
    """Lightweight schema fixes for databases created by older releases."""
    from sqlalchemy import text

    inspector = inspect(engine)

    # Hourly upserts rely on a unique key over (hour_bucket, owner_id, account_id)
    if "hourly_point" in inspector.get_table_names():
        existing = {idx["name"] for idx in inspector.get_indexes("hourly_point")}
        existing |= {c["name"] for c in inspector.get_unique_constraints("hourly_point")}
        if "uq_hourly_point_bucket" not in existing:
            logger.info("Migrating: adding unique key on hourly_point bucket")
            with engine.connect() as conn:
                conn.execute(text(
                    "CREATE UNIQUE INDEX uq_hourly_point_bucket "
                    "ON hourly_point (hour_bucket, owner_id, account_id)"
                ))
                conn.commit()


def create_db_and_tables(engine: Engine):
    """Create all tables. Called on startup."""
    SQLModel.metadata.create_all(engine)
    _run_migrations(engine)
