"""
Authentication middleware.

Request Flow:
1. Middleware extracts the bearer token from the Authorization header
2. Token verified with the configured secret (auth.jwt.decode_token)
3. Principal attached to request.state.principal (None if anonymous/invalid)
4. Authorization gates run as route dependencies and deny anonymous access

The middleware never rejects a request itself: the gates decide, so public
routes keep working without a token.

Usage:
    app.add_middleware(PrincipalMiddleware)
"""

import logging
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from church_admin.auth.jwt import TokenError, decode_token
from church_admin.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def extract_bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class PrincipalMiddleware(BaseHTTPMiddleware):
    """Attach the authenticated principal (or None) to every request."""

    def __init__(self, app, settings: Optional[Settings] = None):
        super().__init__(app)
        self._settings = settings

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.principal = None

        token = extract_bearer_token(request)
        if token:
            try:
                request.state.principal = decode_token(
                    token, self._settings or get_settings()
                )
            except TokenError as e:
                logger.info(
                    "Rejected bearer token",
                    extra={
                        "path": request.url.path,
                        "method": request.method,
                        "error": str(e),
                    },
                )

        return await call_next(request)
