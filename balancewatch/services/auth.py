"""Owner bearer tokens.

Tokens are issued by the identity provider with the owner id as ``sub``;
this service only needs to decode them. ``create_access_token`` is kept for
the CLI's development tokens and for tests.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from balancewatch.config import settings


def create_access_token(subject: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {"sub": subject, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str | None:
    """Decode JWT and return the subject (owner id). Returns None on failure."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return payload.get("sub")
    except JWTError:
        return None
