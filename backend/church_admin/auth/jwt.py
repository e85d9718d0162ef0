"""
Access token handling.

This module provides:
- Pydantic model for access token claims
- HS256 token verification (decode_token)
- Token issuing for scripts and tests (issue_token)

Claims used:
- sub: user id (principal id)
- exp / iat: expiry and issue timestamps
- role: organizational role at issue time
- memberId: linked member, absent for users without membership
- branchId / churchId: tenant context at issue time
- permissions: snapshot of the member's permission types at issue time
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

import jwt
from jwt.exceptions import InvalidTokenError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from church_admin.config.settings import Settings, get_settings
from church_admin.platform.principal import Principal

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL = timedelta(hours=12)


class TokenError(Exception):
    """Raised when a token cannot be verified or its claims are unusable."""
    pass


class AccessTokenClaims(BaseModel):
    """Claims of an access token issued at login."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    sub: str = Field(..., min_length=1, description="User id")
    exp: int = Field(..., description="Expiration timestamp (Unix)")
    iat: Optional[int] = Field(None, description="Issued at timestamp (Unix)")
    role: Optional[str] = Field(None, description="Organizational role")
    member_id: Optional[str] = Field(None, alias="memberId")
    branch_id: Optional[str] = Field(None, alias="branchId")
    church_id: Optional[str] = Field(None, alias="churchId")
    # Validated by Principal.from_claims, not here: a malformed snapshot must
    # reach PermissionGate as "not well formed" instead of failing login.
    permissions: Optional[Any] = None


def _require_secret(settings: Settings) -> str:
    if not settings.jwt_secret:
        raise TokenError("JWT_SECRET is not configured")
    return settings.jwt_secret


def decode_token(token: str, settings: Optional[Settings] = None) -> Principal:
    """
    Verify a bearer token and build the request principal.

    Raises:
        TokenError: signature, expiry or claim validation failed
    """
    settings = settings or get_settings()
    secret = _require_secret(settings)

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}") from e

    try:
        claims = AccessTokenClaims.model_validate(payload)
    except ValidationError as e:
        raise TokenError(f"Invalid token claims: {e.error_count()} error(s)") from e

    return Principal.from_claims(claims.model_dump(by_alias=True))


def issue_token(
    user_id: str,
    role: Optional[str] = None,
    member_id: Optional[str] = None,
    permissions: Optional[Iterable[str]] = None,
    branch_id: Optional[str] = None,
    church_id: Optional[str] = None,
    ttl: timedelta = DEFAULT_TOKEN_TTL,
    settings: Optional[Settings] = None,
) -> str:
    """Sign an access token with the configured secret."""
    settings = settings or get_settings()
    secret = _require_secret(settings)
    now = datetime.now(timezone.utc)

    payload: Dict[str, Any] = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
        "role": role,
        "memberId": member_id,
        "branchId": branch_id,
        "churchId": church_id,
        "permissions": sorted(permissions) if permissions is not None else [],
    }
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)
