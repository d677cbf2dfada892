"""Delta resolver: per-account change since the daily anchor and since ~24h ago.

Both figures compare the account's latest snapshot against a historical
value picked from the raw snapshot table:

- anchor: the newest snapshot at or before today's anchor instant (08:00 in
  the reference timezone), looking back at most ``anchor_lookback``;
- reference: the snapshot closest to ``now - reference_offset`` inside a
  ``± tolerance`` window.

An empty window yields None for the value and the delta. The resolver only
reads, so it can be called concurrently with ingestion and rotation.
"""

from datetime import datetime, timedelta

from balancewatch.config import settings
from balancewatch.models.snapshot import Snapshot
from balancewatch.schemas.dashboard import DeltaRow, DeltaSummary
from balancewatch.services.windows import (
    closest_to,
    group_by_account,
    latest_at_or_before,
    subtract,
)
from balancewatch.store import SnapshotStore
from balancewatch.utils.timeutils import anchor_instant, ensure_utc, utcnow


def compute_delta_row(
    snapshots: list[Snapshot],
    now: datetime,
    anchor: datetime,
    anchor_lookback: timedelta,
    reference_offset: timedelta,
    tolerance: timedelta,
) -> DeltaRow | None:
    """Delta row for one account's snapshots, or None if it has nothing at or before ``now``."""
    current = latest_at_or_before(snapshots, now)
    if current is None:
        return None

    anchor_snap = latest_at_or_before(snapshots, anchor, anchor_lookback)
    reference_at = now - reference_offset
    reference_snap = closest_to(snapshots, reference_at, tolerance)

    anchor_value = anchor_snap.balance if anchor_snap else None
    reference_value = reference_snap.balance if reference_snap else None

    return DeltaRow(
        owner_id=current.owner_id,
        account_id=current.account_id,
        broker=current.broker,
        tag=current.tag,
        currency=current.currency,
        balance=current.balance,
        equity=current.equity,
        profit=current.unrealized_profit,
        margin=current.margin,
        captured_at=ensure_utc(current.captured_at),
        anchor_at=anchor,
        anchor_value=anchor_value,
        delta_anchor=subtract(current.balance, anchor_value),
        reference_at=reference_at,
        reference_value=reference_value,
        delta_24h=subtract(current.balance, reference_value),
    )


def resolve_deltas(
    store: SnapshotStore,
    owner_id: str,
    now: datetime | None = None,
    *,
    anchor: datetime | None = None,
    anchor_lookback: timedelta | None = None,
    reference_offset: timedelta | None = None,
    tolerance: timedelta | None = None,
) -> list[DeltaRow]:
    """DeltaView rows for every account of ``owner_id``, ordered by account_id.

    ``anchor`` defaults to today's anchor instant in the reference timezone;
    pass one explicitly to compare against a different day.
    """
    now = ensure_utc(now) if now is not None else utcnow()
    if anchor is None:
        anchor = anchor_instant(now, settings.anchor_timezone, settings.anchor_hour)
    anchor = ensure_utc(anchor)
    if anchor_lookback is None:
        anchor_lookback = timedelta(hours=settings.anchor_lookback_hours)
    if reference_offset is None:
        reference_offset = timedelta(hours=settings.reference_offset_hours)
    if tolerance is None:
        tolerance = timedelta(minutes=settings.reference_tolerance_minutes)

    # Retention bounds the table, so one owner-scoped read covers every window
    snapshots = store.select_snapshots(owner_id=owner_id, end=max(now, anchor), end_inclusive=True)

    groups = group_by_account(snapshots)
    rows = []
    for key in sorted(groups):
        row = compute_delta_row(groups[key], now, anchor, anchor_lookback, reference_offset, tolerance)
        if row is not None:
            rows.append(row)
    return rows


def _total(values: list[float | None]) -> float | None:
    present = [v for v in values if v is not None]
    return sum(present) if present else None


def summarize(rows: list[DeltaRow]) -> DeltaSummary:
    """Per-owner totals over the rows' non-null values."""
    return DeltaSummary(
        accounts=len(rows),
        balance=_total([r.balance for r in rows]),
        equity=_total([r.equity for r in rows]),
        delta_anchor=_total([r.delta_anchor for r in rows]),
        delta_24h=_total([r.delta_24h for r in rows]),
    )
