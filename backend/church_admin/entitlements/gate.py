"""
Feature gate: plan-based access control.

Requires that one feature (check_feature) or at least one of several
(check_any_feature) is present in the principal's resolved entitlements.

Important:
- Must run AFTER authentication; an anonymous principal is denied with
  AuthenticationRequired, never treated as "no plan"
- Fail-CLOSED: if entitlements cannot be resolved the feature is denied
- Elevated roles do NOT bypass this gate; the plan applies to everyone
- On success the resolved Entitlements ride along in the GateResult so the
  handler does not resolve them again
"""

import logging
from typing import Optional, Sequence

from church_admin.entitlements.errors import EntitlementError, UserNotFoundError
from church_admin.entitlements.models import Entitlements
from church_admin.platform.denials import (
    REASON_RESOLUTION_FAILED,
    DenialKind,
    GateResult,
    authentication_required,
)
from church_admin.platform.policy import FEATURE_RESOLUTION_FAILS_CLOSED
from church_admin.platform.principal import Principal

logger = logging.getLogger(__name__)


def _current_plan_name(entitlements: Entitlements) -> str:
    return entitlements.plan.name if entitlements.plan else "none"


def _evaluate(
    principal: Optional[Principal],
    feature_ids: Sequence[str],
    resolver,
    any_of: bool,
) -> GateResult:
    if principal is None or not principal.principal_id:
        return authentication_required()

    try:
        entitlements = resolver.get_entitlements(principal.principal_id)
    except Exception as exc:
        if not FEATURE_RESOLUTION_FAILS_CLOSED:
            raise
        logger.error(
            "Unable to verify feature access",
            extra={
                "principal_id": principal.principal_id,
                "required_features": list(feature_ids),
                "error_type": type(exc).__name__,
                "user_not_found": isinstance(exc, UserNotFoundError),
            },
            exc_info=not isinstance(exc, EntitlementError),
        )
        return GateResult.deny(
            DenialKind.FEATURE_UNAVAILABLE,
            "Unable to verify feature access",
            reason=REASON_RESOLUTION_FAILED,
            required_features=list(feature_ids),
        )

    if any_of:
        granted = entitlements.has_any_feature(feature_ids)
    else:
        granted = all(entitlements.has_feature(f) for f in feature_ids)

    if granted:
        return GateResult.allow(entitlements=entitlements)

    logger.warning(
        "Feature not available",
        extra={
            "principal_id": principal.principal_id,
            "required_features": list(feature_ids),
            "current_plan": _current_plan_name(entitlements),
            "resolved_from": entitlements.resolved_from.value if entitlements.resolved_from else None,
        },
    )

    if any_of:
        message = (
            f"None of the required features are available: {', '.join(feature_ids)}. "
            "Please upgrade your subscription."
        )
    else:
        message = (
            f"Feature '{feature_ids[0]}' is not available in your current plan. "
            "Please upgrade your subscription."
        )

    return GateResult.deny(
        DenialKind.FEATURE_UNAVAILABLE,
        message,
        code="FEATURE_NOT_AVAILABLE",
        required_features=list(feature_ids),
        current_plan=_current_plan_name(entitlements),
    )


def check_feature(
    principal: Optional[Principal],
    feature_id: str,
    resolver,
) -> GateResult:
    """Require feature_id in the principal's entitlements."""
    return _evaluate(principal, [feature_id], resolver, any_of=False)


def check_any_feature(
    principal: Optional[Principal],
    feature_ids: Sequence[str],
    resolver,
) -> GateResult:
    """Require at least one of feature_ids in the principal's entitlements."""
    feature_ids = list(feature_ids)
    if not feature_ids:
        raise ValueError("check_any_feature needs at least one feature id")
    return _evaluate(principal, feature_ids, resolver, any_of=True)
