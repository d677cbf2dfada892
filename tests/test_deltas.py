"""Tests for the delta/window resolver and the anchor calendar."""

from datetime import timedelta

from balancewatch.schemas.dashboard import DeltaRow
from balancewatch.services.deltas import resolve_deltas, summarize
from balancewatch.utils.timeutils import anchor_instant

from conftest import utc

# 10:00 JST on 2024-03-10; today's 08:00 JST anchor is 23:00 UTC the day before
NOW = utc(2024, 3, 10, 1, 0)
ANCHOR = utc(2024, 3, 9, 23, 0)
TARGET_24H = NOW - timedelta(hours=24)


# ---------------------------------------------------------------------------
# 1. Anchor calendar
# ---------------------------------------------------------------------------

def test_anchor_instant_is_todays_reference_time():
    assert anchor_instant(NOW, "Asia/Tokyo", 8) == ANCHOR


def test_anchor_instant_before_anchor_keeps_today():
    # 07:00 JST: the anchor is still today's 08:00, not yesterday's
    early = utc(2024, 3, 9, 22, 0)
    assert anchor_instant(early, "Asia/Tokyo", 8) == ANCHOR


def test_anchor_instant_in_utc():
    assert anchor_instant(utc(2024, 3, 10, 12, 0), "UTC", 8) == utc(2024, 3, 10, 8, 0)


# ---------------------------------------------------------------------------
# 2. Delta since anchor
# ---------------------------------------------------------------------------

def test_delta_since_anchor(store, add_snapshot):
    add_snapshot("u1", 555, utc(2024, 3, 9, 22, 0), 1000.0)  # 07:00 JST
    add_snapshot("u1", 555, utc(2024, 3, 10, 0, 0), 1200.0, equity=1190.0)  # 09:00 JST

    [row] = resolve_deltas(store, "u1", NOW)

    assert row.account_id == 555
    assert row.balance == 1200.0
    assert row.equity == 1190.0
    assert row.captured_at == utc(2024, 3, 10, 0, 0)
    assert row.anchor_at == ANCHOR
    assert row.anchor_value == 1000.0
    assert row.delta_anchor == 200.0


def test_snapshot_exactly_at_anchor_counts(store, add_snapshot):
    add_snapshot("u1", 1, ANCHOR - timedelta(minutes=5), 900.0)
    add_snapshot("u1", 1, ANCHOR, 950.0)
    add_snapshot("u1", 1, NOW, 1000.0)

    [row] = resolve_deltas(store, "u1", NOW)
    assert row.anchor_value == 950.0
    assert row.delta_anchor == 50.0


def test_anchor_lookback_bounds_the_search(store, add_snapshot):
    add_snapshot("u1", 1, ANCHOR - timedelta(hours=37), 500.0)
    add_snapshot("u1", 1, NOW, 1000.0)

    [row] = resolve_deltas(store, "u1", NOW)
    assert row.anchor_value is None
    assert row.delta_anchor is None

    [wider] = resolve_deltas(store, "u1", NOW, anchor_lookback=timedelta(hours=40))
    assert wider.anchor_value == 500.0
    assert wider.delta_anchor == 500.0


def test_explicit_anchor_override(store, add_snapshot):
    add_snapshot("u1", 1, ANCHOR - timedelta(hours=24), 700.0)
    add_snapshot("u1", 1, ANCHOR, 800.0)
    add_snapshot("u1", 1, NOW, 1000.0)

    [row] = resolve_deltas(store, "u1", NOW, anchor=ANCHOR - timedelta(hours=24))
    assert row.anchor_value == 700.0
    assert row.delta_anchor == 300.0


def test_null_current_balance_gives_null_delta(store, add_snapshot):
    add_snapshot("u1", 1, ANCHOR - timedelta(hours=1), 1000.0)
    add_snapshot("u1", 1, NOW, None)

    [row] = resolve_deltas(store, "u1", NOW)
    assert row.anchor_value == 1000.0
    assert row.balance is None
    assert row.delta_anchor is None


# ---------------------------------------------------------------------------
# 3. Delta since 24h ago
# ---------------------------------------------------------------------------

def test_reference_picks_closest_within_tolerance(store, add_snapshot):
    add_snapshot("u1", 1, TARGET_24H - timedelta(minutes=20), 900.0)
    add_snapshot("u1", 1, TARGET_24H + timedelta(minutes=10), 950.0)
    add_snapshot("u1", 1, NOW, 1000.0)

    [row] = resolve_deltas(store, "u1", NOW)
    assert row.reference_at == TARGET_24H
    assert row.reference_value == 950.0
    assert row.delta_24h == 50.0


def test_reference_tie_prefers_earlier(store, add_snapshot):
    add_snapshot("u1", 1, TARGET_24H + timedelta(minutes=15), 960.0)
    add_snapshot("u1", 1, TARGET_24H - timedelta(minutes=15), 940.0)
    add_snapshot("u1", 1, NOW, 1000.0)

    [row] = resolve_deltas(store, "u1", NOW)
    assert row.reference_value == 940.0


def test_reference_window_edges_are_inclusive(store, add_snapshot):
    add_snapshot("u1", 1, TARGET_24H + timedelta(minutes=30), 970.0)
    add_snapshot("u1", 1, NOW, 1000.0)

    [row] = resolve_deltas(store, "u1", NOW)
    assert row.reference_value == 970.0


def test_empty_reference_window_is_null_not_zero(store, add_snapshot):
    add_snapshot("u1", 1, TARGET_24H - timedelta(minutes=31), 900.0)
    add_snapshot("u1", 1, TARGET_24H + timedelta(minutes=31), 950.0)
    add_snapshot("u1", 1, NOW, 1000.0)

    [row] = resolve_deltas(store, "u1", NOW)
    assert row.reference_value is None
    assert row.delta_24h is None


def test_tolerance_is_configurable(store, add_snapshot):
    add_snapshot("u1", 1, TARGET_24H - timedelta(minutes=45), 900.0)
    add_snapshot("u1", 1, NOW, 1000.0)

    [row] = resolve_deltas(store, "u1", NOW, tolerance=timedelta(hours=1))
    assert row.reference_value == 900.0


# ---------------------------------------------------------------------------
# 4. Scoping, ordering, read-only
# ---------------------------------------------------------------------------

def test_rows_are_owner_scoped_and_ordered(store, add_snapshot):
    add_snapshot("u1", 30, NOW, 3.0)
    add_snapshot("u1", 10, NOW, 1.0)
    add_snapshot("u1", 20, NOW, 2.0)
    add_snapshot("u2", 15, NOW, 99.0)

    rows = resolve_deltas(store, "u1", NOW)
    assert [r.account_id for r in rows] == [10, 20, 30]
    assert {r.owner_id for r in rows} == {"u1"}
    assert resolve_deltas(store, "nobody", NOW) == []


def test_snapshots_after_now_are_not_current(store, add_snapshot):
    add_snapshot("u1", 1, NOW - timedelta(minutes=5), 100.0)
    add_snapshot("u1", 1, NOW + timedelta(minutes=5), 200.0)

    [row] = resolve_deltas(store, "u1", NOW)
    assert row.balance == 100.0


def test_resolver_does_not_write(store, add_snapshot):
    add_snapshot("u1", 1, NOW, 1.0)
    before = [(s.id, s.balance) for s in store.select_snapshots()]

    resolve_deltas(store, "u1", NOW)
    resolve_deltas(store, "u1", NOW)

    assert [(s.id, s.balance) for s in store.select_snapshots()] == before
    assert store.hourly_points("u1") == []


# ---------------------------------------------------------------------------
# 5. Per-owner totals
# ---------------------------------------------------------------------------

def _row(account_id: int, balance, delta_anchor=None, delta_24h=None) -> DeltaRow:
    return DeltaRow(
        owner_id="u1",
        account_id=account_id,
        balance=balance,
        captured_at=NOW,
        anchor_at=ANCHOR,
        delta_anchor=delta_anchor,
        reference_at=TARGET_24H,
        delta_24h=delta_24h,
    )


def test_summary_skips_nulls():
    summary = summarize([_row(1, 100.0, 10.0, None), _row(2, 50.0, None, None), _row(3, None, -5.0, None)])
    assert summary.accounts == 3
    assert summary.balance == 150.0
    assert summary.delta_anchor == 5.0
    assert summary.delta_24h is None
    assert summary.equity is None


def test_summary_of_nothing():
    summary = summarize([])
    assert summary.accounts == 0
    assert summary.balance is None
