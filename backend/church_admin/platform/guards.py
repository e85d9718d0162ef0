"""
Ordered guard composition.

A guard is a callable (principal, store) -> GateResult. evaluate_guards runs
guards strictly in the given order and stops at the first denial; later
guards never execute. Entitlements resolved by a feature guard are carried
into the final result.

Recommended order: feature guards first (no point checking fine-grained
permissions for a feature the plan does not include), then role and
permission guards in any order.

Usage:
    guards = [
        feature_guard(FeatureId.FINANCES),
        permission_guard(PermissionType.FINANCES_MANAGE),
    ]
    result = evaluate_guards(principal, store, guards)
"""

import logging
from typing import Callable, Optional, Sequence, Union

from church_admin.constants.permissions import Role
from church_admin.entitlements.gate import check_any_feature, check_feature
from church_admin.entitlements.resolver import EntitlementsResolver
from church_admin.platform.denials import GateResult
from church_admin.platform.principal import Principal
from church_admin.platform.rbac import check_permissions, check_role

logger = logging.getLogger(__name__)

Guard = Callable[[Optional[Principal], object], GateResult]


def role_guard(*roles: Union[Role, str]) -> Guard:
    if not roles:
        raise ValueError("role_guard needs at least one role")

    def guard(principal, store) -> GateResult:
        return check_role(principal, roles)

    guard.__name__ = "role_guard"
    return guard


def permission_guard(*permissions: str) -> Guard:
    if not permissions:
        raise ValueError("permission_guard needs at least one permission")

    def guard(principal, store) -> GateResult:
        return check_permissions(principal, permissions, store)

    guard.__name__ = "permission_guard"
    return guard


def feature_guard(feature_id: str) -> Guard:
    def guard(principal, store) -> GateResult:
        return check_feature(principal, feature_id, EntitlementsResolver(store))

    guard.__name__ = "feature_guard"
    return guard


def any_feature_guard(*feature_ids: str) -> Guard:
    if not feature_ids:
        raise ValueError("any_feature_guard needs at least one feature id")

    def guard(principal, store) -> GateResult:
        return check_any_feature(principal, feature_ids, EntitlementsResolver(store))

    guard.__name__ = "any_feature_guard"
    return guard


def evaluate_guards(
    principal: Optional[Principal],
    store,
    guards: Sequence[Guard],
) -> GateResult:
    """Run guards in order; return the first denial or an allow."""
    entitlements = None

    for index, guard in enumerate(guards):
        result = guard(principal, store)
        if not result.allowed:
            logger.debug(
                "Guard chain stopped",
                extra={
                    "guard": getattr(guard, "__name__", repr(guard)),
                    "position": index,
                    "denial_kind": result.denial.kind.value if result.denial else None,
                },
            )
            return result
        if result.entitlements is not None:
            entitlements = result.entitlements

    return GateResult.allow(entitlements=entitlements)
