"""System API: health check, scheduler status, job logs, manual triggers."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from balancewatch.api.deps import get_notifier, get_store, require_service_key
from balancewatch.engine.jobs import run_daily_export, run_hourly_cycle
from balancewatch.errors import NotificationError
from balancewatch.services.notifications import WebhookNotifier
from balancewatch.store import SnapshotStore

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.get("/scheduler", dependencies=[Depends(require_service_key)])
def scheduler_status():
    """Current scheduler state with job details."""
    from balancewatch.engine.scheduler import get_scheduler_status
    return get_scheduler_status()


@router.post("/rollup", dependencies=[Depends(require_service_key)])
async def trigger_rollup(
    store: SnapshotStore = Depends(get_store),
    notifier: WebhookNotifier | None = Depends(get_notifier),
):
    """Run the hourly rollup + rotation cycle now. Each phase reports its own status."""
    result = await run_hourly_cycle(store, notifier)
    return JSONResponse(result, status_code=200 if result["ok"] else 500)


@router.post("/export-anchor", dependencies=[Depends(require_service_key)])
async def trigger_anchor_export(
    force: bool = False,
    store: SnapshotStore = Depends(get_store),
    notifier: WebhookNotifier | None = Depends(get_notifier),
):
    """Run the daily anchor export. ``force`` bypasses the anchor-hour check."""
    result = await run_daily_export(store, notifier, force=force)
    if result["ok"]:
        return result
    status_code = NotificationError.status_code if result["kind"] == NotificationError.kind else 500
    return JSONResponse(
        {"ok": False, "kind": result["kind"], "message": result["message"]},
        status_code=status_code,
    )


@router.get("/logs", dependencies=[Depends(require_service_key)])
def job_logs(
    job: str | None = None,
    status: str | None = None,
    limit: int = 100,
    offset: int = 0,
    store: SnapshotStore = Depends(get_store),
):
    return store.job_logs(job=job, status=status, limit=limit, offset=offset)
