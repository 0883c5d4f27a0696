"""
FastAPI dependencies for authentication.
"""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.jwt import get_token_from_request, verify_token
from src.db import get_db
from src.models import ApiKey, User, UserRole
from src.services.api_keys import (
    SCOPE_REPORTS_READ,
    ApiKeyAuthError,
    ApiRateLimiter,
    RateLimitStatus,
    authenticate_api_key,
    get_rate_limiter,
)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get current authenticated user.

    Raises 401 if not authenticated, 403 if the account is disabled.
    """
    token = get_token_from_request(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    payload = verify_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    user = await db.get(User, payload["user_id"])
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


async def require_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    """Raises 403 unless the current user is an admin."""
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


@dataclass
class ApiKeyAccess:
    """An authenticated API key and its rate limit window after this request."""

    api_key: ApiKey
    rate_limit: RateLimitStatus

    @property
    def user_id(self) -> int:
        return self.api_key.user_id

    def has_scope(self, scope: str) -> bool:
        return scope in (self.api_key.scopes or [])


async def require_api_key(
    request: Request,
    db: AsyncSession = Depends(get_db),
    limiter: ApiRateLimiter = Depends(get_rate_limiter),
) -> ApiKeyAccess:
    """
    Authenticate a ``Bearer rem_...`` API key with the reports:read scope.

    Raises 401 for a missing or unusable key, 403 without the scope and
    429 once the key's hourly budget is spent.
    """
    header = request.headers.get("Authorization") or ""
    if not header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header. Use: Bearer <api_key>",
        )

    try:
        api_key = await authenticate_api_key(db, header[len("Bearer "):].strip())
    except ApiKeyAuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    if SCOPE_REPORTS_READ not in (api_key.scopes or []):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"API key does not have '{SCOPE_REPORTS_READ}' permission",
        )

    window = limiter.hit(api_key.id, api_key.rate_limit)
    if not window.allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Try again later.",
            headers=window.headers(),
        )

    return ApiKeyAccess(api_key=api_key, rate_limit=window)
