"""Shared constants for snapshot ingestion and windowing."""

# Numeric timestamps below this are epoch seconds, at or above are epoch milliseconds
EPOCH_MILLIS_THRESHOLD = 1e12
MAX_ACCOUNT_ID = 2**63 - 1  # BigInteger column

# Payload key -> Snapshot column for the nullable numeric fields
NUMERIC_FIELDS: dict[str, str] = {
    "balance": "balance",
    "equity": "equity",
    "profit_float": "unrealized_profit",
    "margin": "margin",
}

TEXT_FIELDS = ("broker", "tag", "currency", "reason")

# Legacy agents send the login as account_login
ACCOUNT_KEYS = ("account_id", "account_login")

JOB_ROLLUP = "rollup"
JOB_ROTATION = "rotation"
JOB_ANCHOR_EXPORT = "anchor_export"
