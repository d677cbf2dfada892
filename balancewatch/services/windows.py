"""Windowed nearest-value selection over snapshot sequences.

Shared by the hourly rollup, the delta resolver and the anchor export. All
selections are deterministic: among snapshots with the same ``captured_at``
the one inserted first (lowest id) wins.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta

from balancewatch.models.snapshot import Snapshot
from balancewatch.utils.timeutils import ensure_utc

AccountKey = tuple[str, int]


def _insertion_order(snap: Snapshot) -> int:
    return snap.id if snap.id is not None else 0


def _is_newer(candidate: Snapshot, best: Snapshot) -> bool:
    c_ts, b_ts = ensure_utc(candidate.captured_at), ensure_utc(best.captured_at)
    if c_ts != b_ts:
        return c_ts > b_ts
    return _insertion_order(candidate) < _insertion_order(best)


def group_by_account(snapshots: Iterable[Snapshot]) -> dict[AccountKey, list[Snapshot]]:
    groups: dict[AccountKey, list[Snapshot]] = {}
    for snap in snapshots:
        groups.setdefault((snap.owner_id, snap.account_id), []).append(snap)
    return groups


def latest(snapshots: Iterable[Snapshot]) -> Snapshot | None:
    best = None
    for snap in snapshots:
        if best is None or _is_newer(snap, best):
            best = snap
    return best


def latest_per_account(snapshots: Iterable[Snapshot]) -> dict[AccountKey, Snapshot]:
    """Most recent snapshot for every (owner_id, account_id) present."""
    return {key: latest(group) for key, group in group_by_account(snapshots).items()}


def latest_at_or_before(
    snapshots: Iterable[Snapshot],
    target: datetime,
    lookback: timedelta | None = None,
) -> Snapshot | None:
    """Newest snapshot with ``target - lookback <= captured_at <= target``."""
    target = ensure_utc(target)
    floor = target - lookback if lookback is not None else None
    return latest(
        s for s in snapshots
        if ensure_utc(s.captured_at) <= target
        and (floor is None or ensure_utc(s.captured_at) >= floor)
    )


def closest_to(
    snapshots: Iterable[Snapshot],
    target: datetime,
    tolerance: timedelta,
) -> Snapshot | None:
    """Snapshot nearest to ``target`` within ``[target - tolerance, target + tolerance]``.

    Equal distances prefer the earlier timestamp, then the earlier insertion.
    """
    target = ensure_utc(target)
    candidates = [s for s in snapshots if abs(ensure_utc(s.captured_at) - target) <= tolerance]
    if not candidates:
        return None
    return min(
        candidates,
        key=lambda s: (
            abs(ensure_utc(s.captured_at) - target),
            ensure_utc(s.captured_at),
            _insertion_order(s),
        ),
    )


def subtract(current: float | None, reference: float | None) -> float | None:
    """``current - reference`` with nulls propagating."""
    if current is None or reference is None:
        return None
    return current - reference
