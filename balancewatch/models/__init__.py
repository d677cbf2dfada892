"""Database models."""

from balancewatch.models.snapshot import Snapshot
from balancewatch.models.hourly_point import HourlyPoint
from balancewatch.models.job_log import JobLog

__all__ = [
    "Snapshot",
    "HourlyPoint",
    "JobLog",
]
