"""Outbound webhook sink for hourly batches and the daily anchor export.

The sink is a plain JSON POST endpoint (a spreadsheet Apps Script in the
usual deployment). ``WebhookNotifier.send`` always raises
``NotificationError`` on failure; whether that is swallowed or surfaced is
the caller's policy.
"""

import logging
from typing import Any

import httpx

from balancewatch.config import settings
from balancewatch.errors import NotificationError

logger = logging.getLogger(__name__)


class WebhookNotifier:
    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    async def send(self, payload: dict[str, Any]) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.url, json=payload)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotificationError(
                f"Webhook answered {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise NotificationError(f"Webhook unreachable: {e!r}") from e
        return resp


async def forward_best_effort(notifier: WebhookNotifier | None, payload: dict[str, Any]) -> bool:
    """Send ``payload`` and swallow any failure. Returns whether it was delivered."""
    if notifier is None:
        return False
    try:
        await notifier.send(payload)
        return True
    except NotificationError as e:
        logger.warning(f"Best-effort notification dropped: {e}")
        return False


def build_notifier() -> WebhookNotifier | None:
    """Notifier from settings, or None when no webhook is configured."""
    if not settings.webhook_url:
        return None
    return WebhookNotifier(settings.webhook_url, timeout=settings.webhook_timeout_seconds)
