"""
Entitlements resolution.

Computes what a user can do based on the effective subscription plan.

Key principles:
- Subscriptions are billed per User, not per Church
- A user's own active subscription always wins; the church is not consulted
- A user without a subscription inherits the plan of the ADMINGERAL of
  their own church (never any other admin, never another church)
- Plan features are re-filtered against the feature registry on every read,
  so removing a feature from the catalog revokes it without a data migration
- Nothing is cached: every call reads the store again

Resolution order:
    1. own active subscription          -> resolved_from = self
    2. church ADMINGERAL's subscription -> resolved_from = admingeral
    3. empty entitlements               -> resolved_from = None

The tree walk (helpers below) is pure and works on already-loaded objects;
only EntitlementsResolver touches the store.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from church_admin.constants.permissions import Role, role_value
from church_admin.constants.plan_features import (
    PlanFeatureRegistry,
    get_plan_feature_registry,
)
from church_admin.entitlements.errors import (
    EntitlementError,
    EntitlementResolutionError,
    UserNotFoundError,
)
from church_admin.entitlements.models import (
    EntitlementLimits,
    Entitlements,
    PlanSummary,
    ResolvedFrom,
)
from church_admin.models.subscription import SubscriptionStatus

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def _started_at_key(subscription: Any):
    started_at: Optional[datetime] = getattr(subscription, "started_at", None)
    # Subscriptions without a start date sort before every dated one
    return (started_at is not None, started_at or 0)


def select_active_subscription(subscriptions: Optional[Iterable[Any]]) -> Optional[Any]:
    """Most recently started subscription whose status is active."""
    active = [
        s for s in (subscriptions or ())
        if getattr(s, "status", None) == SubscriptionStatus.ACTIVE
    ]
    if not active:
        return None
    return max(active, key=_started_at_key)


def church_id_for_member(member: Optional[Any]) -> Optional[str]:
    """Church id reached through member -> branch, or None."""
    if member is None:
        return None
    branch = getattr(member, "branch", None)
    if branch is None:
        return None
    return getattr(branch, "church_id", None) or None


def resolve_fallback_subscription(
    member: Optional[Any],
    church_admin: Optional[Any],
) -> Optional[Any]:
    """
    Pick the subscription a member inherits from their church's ADMINGERAL.

    Returns None unless church_admin is an ADMINGERAL whose branch belongs
    to the same church as member, and that admin's user has an active
    subscription.
    """
    church_id = church_id_for_member(member)
    if not church_id or church_admin is None:
        return None

    if role_value(getattr(church_admin, "role", None)) != Role.ADMINGERAL.value:
        return None

    if church_id_for_member(church_admin) != church_id:
        logger.warning(
            "Church admin belongs to a different church, ignoring",
            extra={
                "church_id": church_id,
                "admin_member_id": getattr(church_admin, "id", None),
            },
        )
        return None

    admin_user = getattr(church_admin, "user", None)
    if admin_user is None:
        return None

    return select_active_subscription(getattr(admin_user, "subscriptions", None))


def build_entitlements(
    plan: Any,
    resolved_from: ResolvedFrom,
    registry: PlanFeatureRegistry,
) -> Entitlements:
    """Entitlements for a resolved plan, with features re-validated."""
    stored = getattr(plan, "features", None) or []
    features = registry.filter_known(stored)

    dropped = [f for f in stored if f not in features]
    if dropped:
        logger.warning(
            "Plan carries features missing from the registry",
            extra={"plan_id": plan.id, "dropped_features": dropped},
        )

    return Entitlements(
        features=features,
        limits=EntitlementLimits(
            max_members=plan.max_members,
            max_branches=plan.max_branches,
        ),
        plan=PlanSummary(id=plan.id, name=plan.name, code=plan.code),
        has_active_subscription=True,
        resolved_from=resolved_from,
    )


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

class EntitlementsResolver:
    """
    Resolve effective entitlements for a user id.

    One instance per request. Stateless apart from injected collaborators.
    """

    def __init__(self, store, registry: Optional[PlanFeatureRegistry] = None):
        self._store = store
        self._registry = registry or get_plan_feature_registry()

    def get_entitlements(self, user_id: str) -> Entitlements:
        """
        Resolve the current entitlements for a user.

        Raises:
            UserNotFoundError: the user does not exist
            EntitlementResolutionError: any store failure
        """
        try:
            return self._resolve(user_id)
        except EntitlementError:
            raise
        except Exception as exc:
            logger.error(
                "Entitlement resolution failed",
                extra={
                    "user_id": user_id,
                    "error_type": type(exc).__name__,
                    "error_detail": str(exc),
                },
            )
            raise EntitlementResolutionError(
                user_id,
                "Unable to load subscription data",
                cause=exc,
            ) from exc

    def user_has_feature(self, user_id: str, feature_id: str) -> bool:
        return self.get_entitlements(user_id).has_feature(feature_id)

    def _resolve(self, user_id: str) -> Entitlements:
        user = self._store.find_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        # 1. Own subscription
        subscription = select_active_subscription(user.subscriptions)
        if subscription is not None:
            return self._from_subscription(user_id, subscription, ResolvedFrom.SELF)

        # 2. Church ADMINGERAL's subscription
        member = getattr(user, "member", None)
        church_id = church_id_for_member(member)
        if church_id:
            church_admin = self._store.find_admin_of_church(church_id)
            subscription = resolve_fallback_subscription(member, church_admin)
            if subscription is not None:
                return self._from_subscription(
                    user_id, subscription, ResolvedFrom.ADMINGERAL
                )

        # 3. No plan anywhere in the tenant chain
        logger.debug("No plan resolved", extra={"user_id": user_id, "church_id": church_id})
        return Entitlements.empty()

    def _from_subscription(
        self,
        user_id: str,
        subscription: Any,
        resolved_from: ResolvedFrom,
    ) -> Entitlements:
        plan = getattr(subscription, "plan", None)
        if plan is None:
            logger.warning(
                "Active subscription has no plan",
                extra={
                    "user_id": user_id,
                    "subscription_id": getattr(subscription, "id", None),
                    "resolved_from": resolved_from.value,
                },
            )
            return Entitlements.empty()

        return build_entitlements(plan, resolved_from, self._registry)
