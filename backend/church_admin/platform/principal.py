"""
The authenticated principal of a request.

Produced once per request by the authentication middleware from verified
token claims and read-only afterwards. Gates receive it explicitly; route
code reaches it through get_principal(request).
"""

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Mapping, Optional

from fastapi import Request


def _permissions_from_claim(raw: Any) -> Optional[FrozenSet[str]]:
    """
    Token permissions snapshot.

    Only a list/tuple/set of strings is well formed. Anything else (missing
    claim, a bare string, mixed types) yields None so PermissionGate can tell
    a misconfigured token apart from an empty grant set.
    """
    if not isinstance(raw, (list, tuple, set, frozenset)):
        return None
    if not all(isinstance(p, str) for p in raw):
        return None
    return frozenset(raw)


@dataclass(frozen=True)
class Principal:
    principal_id: str
    role: Optional[str] = None
    member_id: Optional[str] = None
    token_permissions: Optional[FrozenSet[str]] = None
    token_claims: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "Principal":
        principal_id = claims.get("sub") or claims.get("userId")
        if not principal_id:
            raise ValueError("Token claims carry no subject")
        return cls(
            principal_id=str(principal_id),
            role=claims.get("role"),
            member_id=claims.get("memberId") or None,
            token_permissions=_permissions_from_claim(claims.get("permissions")),
            token_claims=dict(claims),
        )


def get_principal(request: Request) -> Optional[Principal]:
    """Principal attached by PrincipalMiddleware, or None if anonymous."""
    return getattr(request.state, "principal", None)
