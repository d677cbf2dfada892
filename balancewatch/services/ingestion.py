"""Snapshot ingestion: validate one agent payload and store it.

Required fields are checked first; a bad required field rejects the payload
before anything else is looked at. Optional numeric fields are coerced one by
one and fall back to null, so a single malformed value never loses the rest
of the snapshot.

Timestamps follow a liveness-over-strictness policy: a missing or unparseable
``ts_utc`` is replaced by the ingestion time instead of rejecting the
snapshot. The fallback is logged so degraded agents can be found.
"""

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from balancewatch.errors import InvalidInput
from balancewatch.models.snapshot import Snapshot
from balancewatch.store import SnapshotStore
from balancewatch.utils.constants import (
    ACCOUNT_KEYS,
    EPOCH_MILLIS_THRESHOLD,
    MAX_ACCOUNT_ID,
    NUMERIC_FIELDS,
    TEXT_FIELDS,
)
from balancewatch.utils.timeutils import ensure_utc, utcnow

logger = logging.getLogger(__name__)


def coerce_number(value: Any) -> float | None:
    """Parse ``value`` as a finite float, or return None. Never returns 0 for missing data."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def normalize_timestamp(value: Any, now: datetime | None = None) -> datetime:
    """Resolve an agent-supplied ``ts_utc`` to an aware UTC datetime.

    Epoch numbers below 1e12 are seconds, anything larger is milliseconds.
    Strings are ISO-8601; text without an offset is read as UTC. Anything
    that cannot be resolved falls back to ``now``.
    """
    now = ensure_utc(now) if now is not None else utcnow()
    if value is None:
        return now

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            return _fallback(value, now)
        millis = value * 1000 if value < EPOCH_MILLIS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return _fallback(value, now)

    if isinstance(value, str):
        text = value.strip()
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return _fallback(value, now)
        return ensure_utc(parsed)

    return _fallback(value, now)


def _fallback(value: Any, now: datetime) -> datetime:
    logger.warning(f"Unusable ts_utc {value!r}; using ingestion time {now.isoformat()}")
    return now


def _require_owner(payload: Mapping) -> str:
    owner_id = payload.get("owner_id")
    if not isinstance(owner_id, str) or not owner_id.strip():
        raise InvalidInput("Missing owner_id")
    return owner_id.strip()


def _parse_account(raw: Any) -> int | None:
    # Integers and integer strings go through int() so large logins keep every digit
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            pass
    number = coerce_number(raw)
    if number is None:
        return None
    if not number.is_integer():
        raise InvalidInput(f"account_id must be a positive integer, got {raw!r}")
    return int(number)


def _require_account(payload: Mapping) -> int:
    raw = next((payload[k] for k in ACCOUNT_KEYS if payload.get(k) is not None), None)
    account_id = _parse_account(raw)
    if account_id is None:
        raise InvalidInput("Missing or non-numeric account_id")
    if not 0 < account_id <= MAX_ACCOUNT_ID:
        raise InvalidInput(f"account_id must be a positive integer up to {MAX_ACCOUNT_ID}, got {raw!r}")
    return account_id


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def build_snapshot(payload: Any, now: datetime | None = None) -> Snapshot:
    """Validate ``payload`` and return an unsaved Snapshot. Raises InvalidInput."""
    if not isinstance(payload, Mapping):
        raise InvalidInput("Payload must be a JSON object")

    owner_id = _require_owner(payload)
    account_id = _require_account(payload)

    received_at = ensure_utc(now) if now is not None else utcnow()
    values = {column: coerce_number(payload.get(key)) for key, column in NUMERIC_FIELDS.items()}
    texts = {key: _optional_text(payload.get(key)) for key in TEXT_FIELDS}

    return Snapshot(
        owner_id=owner_id,
        account_id=account_id,
        captured_at=normalize_timestamp(payload.get("ts_utc"), now=received_at),
        received_at=received_at,
        **texts,
        **values,
    )


def ingest(store: SnapshotStore, payload: Any, now: datetime | None = None) -> Snapshot:
    """Validate and insert exactly one snapshot.

    Raises:
        InvalidInput: owner_id or account_id missing or unusable.
        StorageError: the insert failed; nothing was written.
    """
    snapshot = build_snapshot(payload, now=now)
    stored = store.insert_snapshot(snapshot)
    logger.debug(
        f"Stored snapshot {stored.id} for {stored.owner_id}/{stored.account_id} "
        f"at {stored.captured_at.isoformat()}"
    )
    return stored
