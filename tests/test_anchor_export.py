"""Tests for the daily anchor export."""

from datetime import date, timedelta
from unittest.mock import AsyncMock

import pytest

from balancewatch.errors import NotificationError
from balancewatch.services.anchor_export import export_anchor
from balancewatch.services.notifications import WebhookNotifier

from conftest import utc

ANCHOR = utc(2024, 3, 9, 23, 0)   # 08:00 JST on 2024-03-10
AT_ANCHOR_HOUR = ANCHOR + timedelta(minutes=5)
OFF_HOUR = ANCHOR + timedelta(hours=3)


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock(spec=WebhookNotifier)


@pytest.mark.asyncio
async def test_skips_outside_anchor_hour(store, add_snapshot, notifier):
    add_snapshot("u1", 1, ANCHOR, 100.0)

    result = await export_anchor(store, notifier, now=OFF_HOUR)

    assert result.skipped is True
    assert result.count == 0
    notifier.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_exports_latest_value_at_anchor(store, add_snapshot, notifier):
    add_snapshot("u1", 1, ANCHOR - timedelta(hours=2), 90.0)
    add_snapshot("u1", 1, ANCHOR - timedelta(minutes=10), 100.0, broker="XM", currency="USD")
    add_snapshot("u1", 1, ANCHOR + timedelta(minutes=1), 999.0)  # after the anchor
    add_snapshot("u1", 2, ANCHOR - timedelta(hours=30), 50.0)
    add_snapshot("u2", 3, ANCHOR - timedelta(hours=37), 1.0)    # outside the 36h look-back

    result = await export_anchor(store, notifier, now=AT_ANCHOR_HOUR)

    assert result.skipped is False
    assert result.anchor_date == date(2024, 3, 10)
    assert result.anchor_at == ANCHOR
    assert [(r.owner_id, r.account_id, r.balance) for r in result.rows] == [
        ("u1", 1, 100.0),
        ("u1", 2, 50.0),
    ]

    notifier.send.assert_awaited_once()
    payload = notifier.send.await_args.args[0]
    assert payload["anchor_date"] == "2024-03-10"
    assert len(payload["rows"]) == 2
    first = payload["rows"][0]
    assert first["anchor_time"] == "08:00"
    assert first["broker"] == "XM"
    assert first["currency"] == "USD"
    assert first["balance"] == 100.0
    assert first["equity"] is None


@pytest.mark.asyncio
async def test_force_runs_outside_anchor_hour(store, add_snapshot, notifier):
    add_snapshot("u1", 1, ANCHOR - timedelta(minutes=10), 100.0)

    result = await export_anchor(store, notifier, now=OFF_HOUR, force=True)

    assert result.skipped is False
    assert result.count == 1
    notifier.send.assert_awaited_once()


@pytest.mark.asyncio
async def test_sink_failure_is_surfaced(store, add_snapshot, notifier):
    add_snapshot("u1", 1, ANCHOR, 100.0)
    notifier.send.side_effect = NotificationError("Webhook answered 500")

    with pytest.raises(NotificationError):
        await export_anchor(store, notifier, now=AT_ANCHOR_HOUR)


@pytest.mark.asyncio
async def test_missing_sink_is_an_error(store):
    with pytest.raises(NotificationError):
        await export_anchor(store, None, now=AT_ANCHOR_HOUR)


@pytest.mark.asyncio
async def test_empty_window_still_sends_an_empty_batch(store, notifier):
    result = await export_anchor(store, notifier, now=AT_ANCHOR_HOUR)

    assert result.count == 0
    payload = notifier.send.await_args.args[0]
    assert payload == {"anchor_date": "2024-03-10", "rows": []}
