"""Logging setup."""

import logging

from balancewatch.config import settings


def setup_logging():
    """Configure root logging from settings. Safe to call more than once."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(settings.log_level.upper())
    # Scheduler ticks and webhook requests are noisy at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
