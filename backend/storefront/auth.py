"""
Pass/fail gates for the sync trigger endpoints.
"""
import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, Query

from storefront.config import settings

logger = logging.getLogger(__name__)


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip()
    return None


def _matches(provided: Optional[str], expected: Optional[str]) -> bool:
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


async def require_sync_key(
    key: Optional[str] = Query(None, description="Sync API key"),
    authorization: Optional[str] = Header(None),
) -> None:
    """Allow the request when ``?key=`` or the bearer token equals SYNC_API_KEY."""
    expected = settings.SYNC_API_KEY
    if _matches(key, expected) or _matches(_bearer(authorization), expected):
        return
    raise HTTPException(status_code=401, detail="Unauthorized")


async def require_cron_token(authorization: Optional[str] = Header(None)) -> None:
    """
    Allow scheduled triggers carrying ``Bearer CRON_SECRET_TOKEN``.

    With no token configured the check is skipped (local development).
    """
    expected = settings.CRON_SECRET_TOKEN
    if not expected:
        return
    if _matches(_bearer(authorization), expected):
        return
    logger.error("[Auth] Unauthorized cron job request")
    raise HTTPException(status_code=401, detail="Unauthorized")
