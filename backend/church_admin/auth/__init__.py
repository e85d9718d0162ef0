"""
Authentication module.

This module provides:
- Access token verification and issuing
- Middleware that attaches the request Principal

Authorization (roles, permissions, plan features) lives in
church_admin.platform and church_admin.entitlements.
"""

from church_admin.auth.jwt import AccessTokenClaims, TokenError, decode_token, issue_token
from church_admin.auth.middleware import PrincipalMiddleware, extract_bearer_token

__all__ = [
    "AccessTokenClaims",
    "TokenError",
    "decode_token",
    "issue_token",
    "PrincipalMiddleware",
    "extract_bearer_token",
]
