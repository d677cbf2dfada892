"""Pydantic schemas for the dashboard read view."""

from datetime import datetime

from pydantic import BaseModel


class DeltaRow(BaseModel):
    """Latest values for one account plus its two delta figures.

    Every ``*_value`` and ``delta_*`` field is None when its lookup window held
    no snapshot; None means "no data", not "no change".
    """

    owner_id: str
    account_id: int
    broker: str | None = None
    tag: str | None = None
    currency: str | None = None
    balance: float | None = None
    equity: float | None = None
    profit: float | None = None
    margin: float | None = None
    captured_at: datetime

    anchor_at: datetime
    anchor_value: float | None = None
    delta_anchor: float | None = None

    reference_at: datetime
    reference_value: float | None = None
    delta_24h: float | None = None


class DeltaSummary(BaseModel):
    """Per-owner totals. A total is None when no account contributed a value."""

    accounts: int = 0
    balance: float | None = None
    equity: float | None = None
    delta_anchor: float | None = None
    delta_24h: float | None = None


class HourlyPointRead(BaseModel):
    hour_bucket: datetime
    owner_id: str
    account_id: int
    balance_last: float | None = None
    equity_last: float | None = None
    profit_last: float | None = None

    model_config = {"from_attributes": True}
