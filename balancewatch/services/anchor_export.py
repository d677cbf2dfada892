"""Daily anchor export: each account's value at 08:00 reference time, sent to the sink.

This export is the only durable record of the daily figure, so unlike the
hourly forward a sink failure is raised to the caller.
"""

import logging
from datetime import datetime, timedelta

from balancewatch.config import settings
from balancewatch.errors import NotificationError
from balancewatch.schemas.export import AnchorExportResult, ExportRow
from balancewatch.services.notifications import WebhookNotifier
from balancewatch.services.windows import latest_per_account
from balancewatch.store import SnapshotStore
from balancewatch.utils.timeutils import (
    anchor_instant,
    ensure_utc,
    local_date,
    local_hour,
    utcnow,
)

logger = logging.getLogger(__name__)


def collect_anchor_rows(
    store: SnapshotStore,
    anchor: datetime,
    lookback: timedelta,
) -> list[ExportRow]:
    """Latest snapshot per account inside ``[anchor - lookback, anchor]``."""
    tz_name = settings.anchor_timezone
    anchor_date = local_date(anchor, tz_name)
    anchor_time = f"{settings.anchor_hour:02d}:00"

    snapshots = store.select_snapshots(start=anchor - lookback, end=anchor, end_inclusive=True)
    rows = []
    for (owner_id, account_id), snap in sorted(latest_per_account(snapshots).items()):
        rows.append(ExportRow(
            anchor_date=anchor_date,
            anchor_time=anchor_time,
            owner_id=owner_id,
            account_id=account_id,
            broker=snap.broker,
            tag=snap.tag,
            currency=snap.currency,
            balance=snap.balance,
            equity=snap.equity,
            profit=snap.unrealized_profit,
            margin=snap.margin,
            captured_at=ensure_utc(snap.captured_at),
        ))
    return rows


async def export_anchor(
    store: SnapshotStore,
    notifier: WebhookNotifier | None,
    now: datetime | None = None,
    force: bool = False,
    lookback: timedelta | None = None,
) -> AnchorExportResult:
    """Send today's anchor rows to the sink in one call.

    Outside the anchor hour (reference timezone) this is a skipped no-op
    unless ``force`` is set.

    Raises:
        StorageError: the snapshot read failed.
        NotificationError: no sink is configured or the POST failed.
    """
    now = ensure_utc(now) if now is not None else utcnow()
    tz_name = settings.anchor_timezone

    if not force and local_hour(now, tz_name) != settings.anchor_hour:
        reason = f"not {settings.anchor_hour:02d}:00 {tz_name}"
        logger.info(f"Anchor export skipped: {reason}")
        return AnchorExportResult(skipped=True, reason=reason)

    if notifier is None:
        raise NotificationError("Notification sink is not configured (BW_WEBHOOK_URL)")

    if lookback is None:
        lookback = timedelta(hours=settings.anchor_lookback_hours)
    anchor = anchor_instant(now, tz_name, settings.anchor_hour)
    rows = collect_anchor_rows(store, anchor, lookback)
    anchor_date = local_date(anchor, tz_name)

    await notifier.send({
        "anchor_date": anchor_date.isoformat(),
        "rows": [r.model_dump(mode="json") for r in rows],
    })
    logger.info(f"Anchor export {anchor_date.isoformat()}: sent {len(rows)} rows")

    return AnchorExportResult(
        anchor_date=anchor_date,
        anchor_at=anchor,
        window_start=anchor - lookback,
        rows=rows,
    )
