"""HourlyPoint model: last known values per account, one row per hour bucket."""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, UniqueConstraint
from sqlmodel import SQLModel, Field

from balancewatch.models.types import UTCDateTime


class HourlyPoint(SQLModel, table=True):
    __tablename__ = "hourly_point"
    __table_args__ = (
        UniqueConstraint("hour_bucket", "owner_id", "account_id", name="uq_hourly_point_bucket"),
    )

    id: int | None = Field(default=None, primary_key=True)
    hour_bucket: datetime = Field(sa_column=Column(UTCDateTime, nullable=False, index=True))  # bucket END
    owner_id: str = Field(index=True)
    account_id: int = Field(sa_column=Column(BigInteger, nullable=False))
    balance_last: float | None = None
    equity_last: float | None = None
    profit_last: float | None = None
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(UTCDateTime, nullable=False),
    )
