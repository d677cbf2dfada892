"""Shared API dependencies."""

import hmac

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from balancewatch.config import settings
from balancewatch.errors import Unauthorized
from balancewatch.services.auth import decode_access_token
from balancewatch.services.notifications import WebhookNotifier
from balancewatch.store import SnapshotStore

bearer_scheme = HTTPBearer()


def get_store(request: Request) -> SnapshotStore:
    """The process-wide store built in the app lifespan."""
    return request.app.state.store


def get_notifier(request: Request) -> WebhookNotifier | None:
    return getattr(request.app.state, "notifier", None)


def get_current_owner(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> str:
    """Validate the bearer token and return the owner id it was issued to."""
    owner_id = decode_access_token(credentials.credentials)
    if not owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return owner_id


def require_service_key(x_api_key: str | None = Header(default=None)):
    """Agents and cron triggers authenticate with the shared x-api-key."""
    expected = settings.service_api_key
    if not expected:
        raise Unauthorized("Service key is not configured (BW_SERVICE_API_KEY)")
    if not x_api_key or not hmac.compare_digest(x_api_key, expected):
        raise Unauthorized("Unauthorized (x-api-key)")
