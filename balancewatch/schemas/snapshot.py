"""Pydantic schemas for ingestion responses."""

from datetime import datetime

from pydantic import BaseModel


class IngestAccepted(BaseModel):
    ok: bool = True
    id: int
    owner_id: str
    account_id: int
    captured_at: datetime
