"""Snapshot model: one raw, immutable observation of an account."""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, Index
from sqlmodel import SQLModel, Field

from balancewatch.models.types import UTCDateTime


class Snapshot(SQLModel, table=True):
    __tablename__ = "snapshot"
    __table_args__ = (
        Index("ix_snapshot_owner_account_captured", "owner_id", "account_id", "captured_at"),
    )

    id: int | None = Field(default=None, primary_key=True)  # insertion order
    owner_id: str = Field(index=True)
    account_id: int = Field(sa_column=Column(BigInteger, nullable=False))
    broker: str | None = None
    tag: str | None = None
    currency: str | None = None
    balance: float | None = None
    equity: float | None = None
    unrealized_profit: float | None = None
    margin: float | None = None
    reason: str | None = None
    captured_at: datetime = Field(sa_column=Column(UTCDateTime, nullable=False, index=True))
    received_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(UTCDateTime, nullable=False),
    )
