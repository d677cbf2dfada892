"""Pydantic schemas for the daily anchor export."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class ExportRow(BaseModel):
    anchor_date: date
    anchor_time: str  # local "HH:MM" in the reference timezone
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


class AnchorExportResult(BaseModel):
    skipped: bool = False
    reason: str | None = None
    anchor_date: date | None = None
    anchor_at: datetime | None = None
    window_start: datetime | None = None
    rows: list[ExportRow] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.rows)
