"""
Authentication middleware for role-based route protection.
"""

import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.auth.jwt import get_token_from_request, verify_token

logger = logging.getLogger(__name__)

PROTECTED_PREFIXES = ("/api/admin", "/api/panel")


def _json_error(detail: str, status_code: int) -> Response:
    return Response(
        content=f'{{"detail": "{detail}"}}',
        status_code=status_code,
        media_type="application/json",
    )


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Coarse role check before routing.

    - /api/admin/* requires the admin role
    - /api/panel/* requires any signed-in user

    Everything else (health, login, cron, docs) passes through; cron
    endpoints check their own shared secret.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        path = request.url.path
        if not path.startswith(PROTECTED_PREFIXES):
            return await call_next(request)

        token = get_token_from_request(request)
        payload = verify_token(token) if token else None
        if not payload:
            return _json_error("Not authenticated", 401)

        if path.startswith("/api/admin") and payload.get("role") != "admin":
            logger.warning(f"User {payload['user_id']} denied access to {path}")
            return _json_error("Admin access required", 403)

        return await call_next(request)
