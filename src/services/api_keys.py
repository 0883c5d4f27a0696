"""
Personal API keys for the /api/v1 report endpoints.

Keys look like ``rem_<43 url-safe chars>``. Only a SHA-256 digest is
stored; the raw key is shown once when it is created. Each key has its
own hourly request budget, counted in process with the ``limits``
fixed-window strategy.
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from fastapi import Request
from limits import RateLimitItemPerHour
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import ApiKey, User

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "rem_"
DISPLAY_PREFIX_LENGTH = 12
DEFAULT_RATE_LIMIT = 100

SCOPE_REPORTS_READ = "reports:read"
SCOPE_REPORTS_EXPORT = "reports:export"

AVAILABLE_SCOPES: Dict[str, str] = {
    SCOPE_REPORTS_READ: "Read revenue reports",
    SCOPE_REPORTS_EXPORT: "Export reports as CSV",
}


class ApiKeyAuthError(Exception):
    """The presented key cannot be used. The message is safe to return."""


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode()).hexdigest()


def generate_api_key() -> Tuple[str, str, str]:
    """
    Create a new random key.

    Returns:
        (raw key, SHA-256 hex digest, display prefix)
    """
    raw_key = API_KEY_PREFIX + secrets.token_urlsafe(32)
    return raw_key, hash_api_key(raw_key), raw_key[:DISPLAY_PREFIX_LENGTH] + "..."


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(api_key: ApiKey, now: Optional[datetime] = None) -> bool:
    if api_key.expires_at is None:
        return False
    return _as_utc(api_key.expires_at) < (now or datetime.now(timezone.utc))


async def create_api_key(
    db: AsyncSession,
    user_id: int,
    name: str,
    scopes: Optional[List[str]] = None,
    expires_in_days: Optional[int] = None,
    rate_limit: int = DEFAULT_RATE_LIMIT,
) -> Tuple[ApiKey, str]:
    """
    Store a new key for a user. The caller commits.

    Unknown scopes are dropped; no valid scope means read-only.

    Returns:
        (pending ApiKey row, raw key)
    """
    granted = [s for s in (scopes or []) if s in AVAILABLE_SCOPES] or [SCOPE_REPORTS_READ]
    raw_key, key_hash, key_prefix = generate_api_key()

    api_key = ApiKey(
        user_id=user_id,
        name=name,
        key_hash=key_hash,
        key_prefix=key_prefix,
        scopes=granted,
        rate_limit=rate_limit,
        is_active=True,
        expires_at=(
            datetime.now(timezone.utc) + timedelta(days=expires_in_days)
            if expires_in_days
            else None
        ),
        request_count=0,
    )
    db.add(api_key)
    await db.flush()
    logger.info(f"Created API key {api_key.id} ({key_prefix}) for user {user_id}")
    return api_key, raw_key


async def list_api_keys(db: AsyncSession, user_id: int) -> List[ApiKey]:
    result = await db.execute(
        select(ApiKey).where(ApiKey.user_id == user_id).order_by(ApiKey.created_at.desc(), ApiKey.id.desc())
    )
    return list(result.scalars().all())


async def get_user_api_key(db: AsyncSession, user_id: int, key_id: int) -> Optional[ApiKey]:
    """A key only if it belongs to the user."""
    api_key = await db.get(ApiKey, key_id)
    if api_key is None or api_key.user_id != user_id:
        return None
    return api_key


async def authenticate_api_key(db: AsyncSession, raw_key: str) -> ApiKey:
    """
    Resolve a raw key and record its use.

    Raises:
        ApiKeyAuthError: malformed, unknown, disabled or expired key, or
            a disabled owner
    """
    if not raw_key or not raw_key.startswith(API_KEY_PREFIX):
        raise ApiKeyAuthError("Invalid API key format")

    result = await db.execute(select(ApiKey).where(ApiKey.key_hash == hash_api_key(raw_key)))
    api_key = result.scalar_one_or_none()
    if api_key is None:
        raise ApiKeyAuthError("API key not found")
    if not api_key.is_active:
        raise ApiKeyAuthError("API key is disabled")
    if is_expired(api_key):
        raise ApiKeyAuthError("API key has expired")

    owner = await db.get(User, api_key.user_id)
    if owner is None or not owner.is_active:
        raise ApiKeyAuthError("User account is disabled")

    api_key.last_used_at = datetime.now(timezone.utc)
    api_key.request_count = (api_key.request_count or 0) + 1
    await db.commit()
    return api_key


@dataclass
class RateLimitStatus:
    allowed: bool
    limit: int
    remaining: int
    reset_at: datetime

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": self.reset_at.isoformat(),
        }


class ApiRateLimiter:
    """Hourly fixed-window request budget per API key."""

    namespace = "api-key"

    def __init__(self):
        self._limiter = FixedWindowRateLimiter(MemoryStorage())

    def hit(self, key_id: int, limit: int) -> RateLimitStatus:
        item = RateLimitItemPerHour(max(limit, 1))
        allowed = self._limiter.hit(item, self.namespace, str(key_id))
        reset_time, remaining = self._limiter.get_window_stats(item, self.namespace, str(key_id))
        if not allowed:
            logger.warning(f"API key {key_id} exceeded {limit} requests/hour")
        return RateLimitStatus(
            allowed=allowed,
            limit=limit,
            remaining=max(remaining, 0),
            reset_at=datetime.fromtimestamp(reset_time, tz=timezone.utc),
        )


def get_rate_limiter(request: Request) -> ApiRateLimiter:
    return request.app.state.api_rate_limiter
