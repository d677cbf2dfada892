"""Rotation of the high-resolution snapshot table."""

import logging
from datetime import datetime, timedelta

from balancewatch.config import settings
from balancewatch.store import SnapshotStore
from balancewatch.utils.timeutils import ensure_utc, utcnow

logger = logging.getLogger(__name__)


def rotate(
    store: SnapshotStore,
    now: datetime | None = None,
    horizon: timedelta | None = None,
) -> int:
    """Delete every snapshot captured before ``now - horizon``; return the count.

    Idempotent. The horizon (48h by default) is longer than every read window,
    so readers never depend on a row this removes.
    """
    now = ensure_utc(now) if now is not None else utcnow()
    if horizon is None:
        horizon = timedelta(hours=settings.retention_hours)
    cutoff = now - horizon

    deleted = store.delete_snapshots_before(cutoff)
    logger.info(f"Rotation: deleted {deleted} snapshots captured before {cutoff.isoformat()}")
    return deleted
