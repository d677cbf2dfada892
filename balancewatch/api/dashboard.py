"""Dashboard API: latest balances with delta figures, totals and hourly series."""

from datetime import timedelta

from fastapi import APIRouter, Depends, Query

from balancewatch.api.deps import get_current_owner, get_store
from balancewatch.schemas.dashboard import DeltaRow, DeltaSummary, HourlyPointRead
from balancewatch.services.deltas import resolve_deltas, summarize
from balancewatch.store import SnapshotStore
from balancewatch.utils.timeutils import utcnow

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/accounts", response_model=list[DeltaRow])
def account_deltas(
    owner_id: str = Depends(get_current_owner),
    store: SnapshotStore = Depends(get_store),
):
    """One row per account of the signed-in owner, ordered by account id."""
    return resolve_deltas(store, owner_id)


@router.get("/summary", response_model=DeltaSummary)
def dashboard_summary(
    owner_id: str = Depends(get_current_owner),
    store: SnapshotStore = Depends(get_store),
):
    """Totals across the owner's accounts."""
    return summarize(resolve_deltas(store, owner_id))


@router.get("/hourly", response_model=list[HourlyPointRead])
def hourly_series(
    account_id: int | None = None,
    hours: int = Query(default=48, ge=1, le=24 * 31),
    owner_id: str = Depends(get_current_owner),
    store: SnapshotStore = Depends(get_store),
):
    """Hourly series for the owner, optionally one account."""
    since = utcnow() - timedelta(hours=hours)
    return store.hourly_points(owner_id, account_id=account_id, since=since)
