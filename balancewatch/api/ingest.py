"""Ingestion API: one snapshot per request from client agents."""

import json

from fastapi import APIRouter, Depends, Request

from balancewatch.api.deps import get_store, require_service_key
from balancewatch.errors import InvalidInput
from balancewatch.schemas.snapshot import IngestAccepted
from balancewatch.services.ingestion import ingest
from balancewatch.store import SnapshotStore

router = APIRouter(prefix="/api", tags=["ingest"], dependencies=[Depends(require_service_key)])


@router.post("/ingest", response_model=IngestAccepted)
async def ingest_snapshot(request: Request, store: SnapshotStore = Depends(get_store)):
    """Validate and store one snapshot. Failures come back as {ok, kind, message}."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidInput("Bad JSON")

    snapshot = ingest(store, payload)
    return IngestAccepted(
        id=snapshot.id,
        owner_id=snapshot.owner_id,
        account_id=snapshot.account_id,
        captured_at=snapshot.captured_at,
    )
