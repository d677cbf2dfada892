"""APScheduler integration for FastAPI.

Two cron jobs drive the pipeline: the hourly rollup + rotation cycle and the
daily anchor export at the anchor hour in the reference timezone.
"""

import logging
from datetime import timezone
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from balancewatch.config import settings
from balancewatch.engine.jobs import run_daily_export, run_hourly_cycle
from balancewatch.services.notifications import WebhookNotifier
from balancewatch.store import SnapshotStore

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

HOURLY_JOB_ID = "hourly_rollup"
DAILY_JOB_ID = "daily_anchor_export"


def add_pipeline_jobs(store: SnapshotStore, notifier: WebhookNotifier | None):
    """Add or replace both pipeline jobs."""
    scheduler.add_job(
        run_hourly_cycle,
        trigger=CronTrigger(minute=settings.rollup_minute, timezone=timezone.utc),
        args=[store, notifier],
        id=HOURLY_JOB_ID,
        name="Hourly rollup + rotation",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=300,
    )
    logger.info(f"Scheduled hourly rollup at minute {settings.rollup_minute} UTC")

    scheduler.add_job(
        run_daily_export,
        trigger=CronTrigger(
            hour=settings.anchor_hour,
            minute=settings.export_minute,
            timezone=ZoneInfo(settings.anchor_timezone),
        ),
        args=[store, notifier],
        id=DAILY_JOB_ID,
        name="Daily anchor export",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=600,
    )
    logger.info(
        f"Scheduled anchor export at {settings.anchor_hour:02d}:{settings.export_minute:02d} "
        f"{settings.anchor_timezone}"
    )


def start_scheduler(store: SnapshotStore, notifier: WebhookNotifier | None):
    """Register the pipeline jobs and start the scheduler."""
    add_pipeline_jobs(store, notifier)
    scheduler.start()
    logger.info(f"Scheduler started with {len(scheduler.get_jobs())} jobs")


def stop_scheduler():
    """Shut down the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


def get_scheduler_status() -> dict:
    """Return current scheduler state for the API."""
    jobs = scheduler.get_jobs()
    return {
        "running": scheduler.running,
        "job_count": len(jobs),
        "jobs": [
            {
                "id": j.id,
                "name": j.name,
                "next_run": str(j.next_run_time) if getattr(j, "next_run_time", None) else None,
                "trigger": str(j.trigger),
            }
            for j in jobs
        ],
    }
