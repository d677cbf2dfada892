"""JobLog model: one row per scheduled or triggered pipeline phase."""

from datetime import datetime, timezone
from typing import Any

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON

from balancewatch.models.types import UTCDateTime


class JobLog(SQLModel, table=True):
    __tablename__ = "job_log"

    id: int | None = Field(default=None, primary_key=True)
    job: str = Field(index=True)  # "rollup", "rotation", "anchor_export"
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(UTCDateTime, nullable=False, index=True),
    )
    status: str  # "success", "error", "skipped"
    count: int | None = None
    kind: str | None = None  # error kind when status == "error"
    message: str | None = None
    details: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
