"""
Structured gate outcomes.

Every gate returns a GateResult instead of raising for expected denials.
The transport layer turns a Denial into an HTTP response with
raise_for_denial(); the payload shape is the same for every gate:

    {"kind": "...", "message": "...", "detail": {...}}
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DenialKind(str, Enum):
    AUTHENTICATION_REQUIRED = "AuthenticationRequired"
    INSUFFICIENT_ROLE = "InsufficientRole"
    INSUFFICIENT_PERMISSION = "InsufficientPermission"
    FEATURE_UNAVAILABLE = "FeatureUnavailable"
    RESOLUTION_FAILED = "ResolutionFailed"


# detail["reason"] values
REASON_RESOLUTION_FAILED = "resolution_failed"
REASON_INVALID_PERMISSION_SET = "invalid_permission_set"

_STATUS_BY_KIND = {
    DenialKind.AUTHENTICATION_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    DenialKind.INSUFFICIENT_ROLE: status.HTTP_403_FORBIDDEN,
    DenialKind.INSUFFICIENT_PERMISSION: status.HTTP_403_FORBIDDEN,
    DenialKind.FEATURE_UNAVAILABLE: status.HTTP_403_FORBIDDEN,
    DenialKind.RESOLUTION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True)
class Denial:
    kind: DenialKind
    message: str
    detail: Dict[str, Any] = field(default_factory=dict)

    @property
    def caused_by_resolution_failure(self) -> bool:
        return self.detail.get("reason") == REASON_RESOLUTION_FAILED

    @property
    def http_status(self) -> int:
        if self.caused_by_resolution_failure:
            return status.HTTP_500_INTERNAL_SERVER_ERROR
        return _STATUS_BY_KIND[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class GateResult:
    """
    Outcome of one gate (or a chain of gates).

    entitlements is set by FeatureGate on success so handlers can reuse it.
    """
    allowed: bool
    denial: Optional[Denial] = None
    entitlements: Optional[Any] = None

    @classmethod
    def allow(cls, entitlements: Optional[Any] = None) -> "GateResult":
        return cls(allowed=True, entitlements=entitlements)

    @classmethod
    def deny(
        cls,
        kind: DenialKind,
        message: str,
        **detail: Any,
    ) -> "GateResult":
        return cls(allowed=False, denial=Denial(kind=kind, message=message, detail=detail))


def authentication_required() -> GateResult:
    return GateResult.deny(
        DenialKind.AUTHENTICATION_REQUIRED,
        "Authentication required",
    )


def raise_for_denial(denial: Denial) -> None:
    """Translate a Denial into the HTTP error the client receives."""
    headers = None
    if denial.kind == DenialKind.AUTHENTICATION_REQUIRED:
        headers = {"WWW-Authenticate": "Bearer"}
    raise HTTPException(
        status_code=denial.http_status,
        detail=denial.to_dict(),
        headers=headers,
    )
