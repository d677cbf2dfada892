"""Hourly rollup: last known value per account into the hourly series.

Buckets are labelled with their END instant, so the snapshots captured in
``[10:00, 11:00)`` land in the row whose ``hour_bucket`` is 11:00. The write
is an upsert on (hour_bucket, owner_id, account_id), which makes re-running
the same hour harmless.
"""

import logging
from datetime import datetime, timedelta

from balancewatch.errors import InvalidInput
from balancewatch.services.notifications import WebhookNotifier, forward_best_effort
from balancewatch.services.windows import latest_per_account
from balancewatch.store import SnapshotStore
from balancewatch.utils.timeutils import ensure_utc, floor_to_hour

logger = logging.getLogger(__name__)

HOUR = timedelta(hours=1)


def _check_window(hour_start: datetime, hour_end: datetime) -> tuple[datetime, datetime]:
    hour_start, hour_end = ensure_utc(hour_start), ensure_utc(hour_end)
    if hour_start != floor_to_hour(hour_start):
        raise InvalidInput(f"hour_start {hour_start.isoformat()} is not aligned to the hour")
    if hour_end - hour_start != HOUR:
        raise InvalidInput("hour_end must be exactly one hour after hour_start")
    return hour_start, hour_end


def build_hourly_points(store: SnapshotStore, hour_start: datetime, hour_end: datetime) -> list[dict]:
    """One row per (owner, account) active in ``[hour_start, hour_end)``."""
    snapshots = store.select_snapshots(start=hour_start, end=hour_end)
    points = []
    for (owner_id, account_id), snap in sorted(latest_per_account(snapshots).items()):
        points.append({
            "hour_bucket": hour_end,
            "owner_id": owner_id,
            "account_id": account_id,
            "balance_last": snap.balance,
            "equity_last": snap.equity,
            "profit_last": snap.unrealized_profit,
        })
    return points


async def rollup(
    store: SnapshotStore,
    hour_start: datetime,
    hour_end: datetime,
    notifier: WebhookNotifier | None = None,
) -> int:
    """Upsert the hourly points for one completed hour and return how many were written.

    A quiet hour is a success with count 0. Notification failures are logged
    and never fail the rollup.
    """
    hour_start, hour_end = _check_window(hour_start, hour_end)

    points = build_hourly_points(store, hour_start, hour_end)
    if not points:
        logger.info(f"Rollup {hour_end.isoformat()}: no activity")
        return 0

    count = store.upsert_hourly_points(points)
    logger.info(f"Rollup {hour_end.isoformat()}: upserted {count} hourly points")

    await forward_best_effort(notifier, {
        "hour_bucket": hour_end.isoformat(),
        "rows": [{**p, "hour_bucket": hour_end.isoformat()} for p in points],
    })
    return count
