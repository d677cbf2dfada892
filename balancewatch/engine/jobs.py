"""Periodic pipeline jobs.

These are the functions APScheduler (and the manual trigger endpoints) call:

- hourly: rollup of the previous completed UTC hour, then rotation;
- daily: the anchor export.

The two hourly phases are independent: a failed rollup never prevents the
rotation from running. Each phase outcome is written to the job log.
"""

import logging
from datetime import datetime, timedelta

from balancewatch.errors import PipelineError, StorageError
from balancewatch.models.job_log import JobLog
from balancewatch.services.anchor_export import export_anchor
from balancewatch.services.notifications import WebhookNotifier
from balancewatch.services.retention import rotate
from balancewatch.services.rollup import rollup
from balancewatch.store import SnapshotStore
from balancewatch.utils.constants import JOB_ANCHOR_EXPORT, JOB_ROLLUP, JOB_ROTATION
from balancewatch.utils.timeutils import ensure_utc, floor_to_hour, utcnow

logger = logging.getLogger(__name__)


def _phase_error(job: str, e: Exception) -> dict:
    if isinstance(e, PipelineError):
        logger.error(f"[{job}] {e.kind}: {e}")
        return {"status": "error", "kind": e.kind, "message": str(e)}
    logger.error(f"[{job}] Unexpected error: {e}", exc_info=True)
    return {"status": "error", "kind": "unexpected", "message": str(e)}


async def run_hourly_cycle(
    store: SnapshotStore,
    notifier: WebhookNotifier | None = None,
    now: datetime | None = None,
) -> dict:
    """Roll up the hour that just ended and rotate old snapshots.

    Returns ``{"ok", "hour_bucket", "rollup": {...}, "rotation": {...}}`` where
    each phase has its own status.
    """
    now = ensure_utc(now) if now is not None else utcnow()
    hour_end = floor_to_hour(now)
    hour_start = hour_end - timedelta(hours=1)

    try:
        count = await rollup(store, hour_start, hour_end, notifier)
        rollup_result = {"status": "success", "count": count}
    except Exception as e:
        rollup_result = _phase_error(JOB_ROLLUP, e)
    _log_job(store, JOB_ROLLUP, rollup_result, {"hour_bucket": hour_end.isoformat()})

    try:
        deleted = rotate(store, now)
        rotation_result = {"status": "success", "count": deleted}
    except Exception as e:
        rotation_result = _phase_error(JOB_ROTATION, e)
    _log_job(store, JOB_ROTATION, rotation_result)

    return {
        "ok": rollup_result["status"] == "success" and rotation_result["status"] == "success",
        "hour_bucket": hour_end.isoformat(),
        "rollup": rollup_result,
        "rotation": rotation_result,
    }


async def run_daily_export(
    store: SnapshotStore,
    notifier: WebhookNotifier | None = None,
    now: datetime | None = None,
    force: bool = False,
) -> dict:
    """Run the anchor export and report ``success``, ``skipped`` or ``error``."""
    try:
        result = await export_anchor(store, notifier, now=now, force=force)
    except Exception as e:
        outcome = _phase_error(JOB_ANCHOR_EXPORT, e)
        _log_job(store, JOB_ANCHOR_EXPORT, outcome, {"force": force})
        return {"ok": False, **outcome}

    if result.skipped:
        outcome = {"status": "skipped", "message": result.reason}
    else:
        outcome = {"status": "success", "count": result.count}
        _log_job(store, JOB_ANCHOR_EXPORT, outcome, {
            "anchor_date": result.anchor_date.isoformat(),
            "force": force,
        })
    return {"ok": True, **outcome, "result": result.model_dump(mode="json")}


def _log_job(store: SnapshotStore, job: str, outcome: dict, details: dict | None = None):
    """Write a JobLog entry. A failing job log never fails the job."""
    try:
        store.add_job_log(JobLog(
            job=job,
            status=outcome["status"],
            count=outcome.get("count"),
            kind=outcome.get("kind"),
            message=outcome.get("message"),
            details=details,
        ))
    except StorageError as e:
        logger.warning(f"[{job}] Could not write job log: {e}")
