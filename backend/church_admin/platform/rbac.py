"""
Role and permission gates.

CRITICAL SECURITY REQUIREMENTS:
- Enforcement MUST happen server-side for every protected endpoint
- UI permission gating is NOT security; treat it as UX only
- Gates return GateResult; they never raise for an ordinary denial

RoleGate:
    Synchronous membership check of the token role. No I/O, no fallback.

PermissionGate:
    1. Elevated roles (ADMINGERAL, ADMINFILIAL) are granted unconditionally
    2. Members: live grants from the store are authoritative, even when empty
    3. Live lookup failed or member missing: token snapshot (degraded mode)
    4. No member link: token snapshot
    5. Not a well-formed set: ResolutionFailed (configuration error)
    6. Every required permission must be held (AND)

Usage:
    result = check_permissions(principal, [PermissionType.FINANCES_MANAGE], store)
    if not result.allowed:
        raise_for_denial(result.denial)
"""

import logging
from typing import FrozenSet, Iterable, Optional, Sequence, Union

from church_admin.constants.permissions import Role, role_value
from church_admin.platform.denials import (
    REASON_INVALID_PERMISSION_SET,
    DenialKind,
    GateResult,
    authentication_required,
)
from church_admin.platform.policy import (
    PERMISSION_RESOLUTION_DEGRADES_TO_TOKEN,
    is_elevated,
)
from church_admin.platform.principal import Principal

logger = logging.getLogger(__name__)


def _as_role_values(roles: Iterable[Union[Role, str]]) -> Sequence[str]:
    return [role_value(r) for r in roles]


# ---------------------------------------------------------------------------
# RoleGate
# ---------------------------------------------------------------------------

def has_role(principal: Principal, roles: Iterable[Union[Role, str]]) -> bool:
    """True if the principal's role is one of roles (exact match)."""
    return role_value(principal.role) in _as_role_values(roles)


def check_role(
    principal: Optional[Principal],
    roles: Iterable[Union[Role, str]],
) -> GateResult:
    """Require the principal's role to be one of roles."""
    required = _as_role_values(roles)

    if principal is None:
        return authentication_required()

    if not has_role(principal, required):
        logger.warning(
            "Role check failed",
            extra={
                "principal_id": principal.principal_id,
                "required_roles": required,
                "role": principal.role,
            },
        )
        return GateResult.deny(
            DenialKind.INSUFFICIENT_ROLE,
            "Your role does not allow this action",
            required_roles=list(required),
            role=principal.role,
        )

    return GateResult.allow()


# ---------------------------------------------------------------------------
# PermissionGate
# ---------------------------------------------------------------------------

def resolve_permissions(principal: Principal, store) -> Optional[FrozenSet[str]]:
    """
    Effective permission set of a non-elevated principal.

    Returns None when no well-formed set could be produced.
    """
    if not principal.member_id:
        return principal.token_permissions

    try:
        grants = store.find_member_permissions(principal.member_id)
    except Exception:
        logger.warning(
            "Permission lookup failed",
            extra={
                "principal_id": principal.principal_id,
                "member_id": principal.member_id,
            },
            exc_info=True,
        )
        grants = None
    else:
        if grants is None:
            logger.warning(
                "Member not found for permission lookup",
                extra={
                    "principal_id": principal.principal_id,
                    "member_id": principal.member_id,
                },
            )

    if grants is not None:
        if not isinstance(grants, (list, tuple, set, frozenset)):
            return None
        return frozenset(grants)

    if not PERMISSION_RESOLUTION_DEGRADES_TO_TOKEN:
        return None

    logger.info(
        "Using token permission snapshot",
        extra={
            "principal_id": principal.principal_id,
            "member_id": principal.member_id,
        },
    )
    return principal.token_permissions


def has_all_permissions(held: FrozenSet[str], required: Iterable[str]) -> bool:
    return all(p in held for p in required)


def check_permissions(
    principal: Optional[Principal],
    required: Iterable[str],
    store,
) -> GateResult:
    """Require the principal to hold every permission in required."""
    required = list(required)

    if principal is None:
        return authentication_required()

    if is_elevated(principal.role):
        logger.debug(
            "Permission check bypassed for elevated role",
            extra={"principal_id": principal.principal_id, "role": principal.role},
        )
        return GateResult.allow()

    held = resolve_permissions(principal, store)

    if not isinstance(held, frozenset):
        logger.error(
            "No usable permission set for principal",
            extra={
                "principal_id": principal.principal_id,
                "member_id": principal.member_id,
            },
        )
        return GateResult.deny(
            DenialKind.RESOLUTION_FAILED,
            "Permissions could not be determined for this account",
            reason=REASON_INVALID_PERMISSION_SET,
            required=required,
        )

    if not has_all_permissions(held, required):
        missing = [p for p in required if p not in held]
        logger.warning(
            "Permission denied",
            extra={
                "principal_id": principal.principal_id,
                "member_id": principal.member_id,
                "required_permissions": required,
                "missing_permissions": missing,
                "role": principal.role,
            },
        )
        return GateResult.deny(
            DenialKind.INSUFFICIENT_PERMISSION,
            f"Missing required permission(s): {', '.join(missing)}",
            required=required,
            held=sorted(held),
            missing=missing,
        )

    return GateResult.allow()
