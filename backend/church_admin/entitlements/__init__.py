"""
Plan-based entitlements.

This module provides:
- EntitlementsResolver: effective plan, features and limits for a user
- check_feature / check_any_feature: fail-closed feature gate
- PlanLimitChecker: max members / max branches enforcement

Resolution order: own subscription -> church ADMINGERAL -> empty
"""

from church_admin.entitlements.errors import (
    EntitlementError,
    EntitlementResolutionError,
    NoActivePlanError,
    PlanLimitExceededError,
    UserNotFoundError,
)
from church_admin.entitlements.models import (
    EntitlementLimits,
    Entitlements,
    PlanSummary,
    ResolvedFrom,
)
from church_admin.entitlements.resolver import (
    EntitlementsResolver,
    build_entitlements,
    church_id_for_member,
    resolve_fallback_subscription,
    select_active_subscription,
)
from church_admin.entitlements.gate import check_any_feature, check_feature
from church_admin.entitlements.limits import (
    PlanLimitChecker,
    check_branches_limit,
    check_members_limit,
)

__all__ = [
    "EntitlementError",
    "EntitlementResolutionError",
    "NoActivePlanError",
    "PlanLimitExceededError",
    "UserNotFoundError",
    "EntitlementLimits",
    "Entitlements",
    "PlanSummary",
    "ResolvedFrom",
    "EntitlementsResolver",
    "build_entitlements",
    "church_id_for_member",
    "resolve_fallback_subscription",
    "select_active_subscription",
    "check_any_feature",
    "check_feature",
    "PlanLimitChecker",
    "check_branches_limit",
    "check_members_limit",
]
