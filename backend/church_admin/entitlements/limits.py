"""
Plan limit enforcement (max members, max branches).

Limits come from the effective plan, so members of a church whose
ADMINGERAL pays are bounded by the admin's plan. Counts are church-wide.
A None limit means unlimited.

Usage:
    checker = PlanLimitChecker(store, EntitlementsResolver(store))
    checker.ensure_can_add_member(user_id, church_id)  # raises on limit
"""

import logging
from typing import Optional

from church_admin.entitlements.errors import NoActivePlanError, PlanLimitExceededError
from church_admin.entitlements.models import Entitlements

logger = logging.getLogger(__name__)

MAX_MEMBERS = "max_members"
MAX_BRANCHES = "max_branches"


def _check_limit(
    entitlements: Entitlements,
    limit_key: str,
    limit: Optional[int],
    current: int,
) -> None:
    if not entitlements.has_active_subscription:
        raise NoActivePlanError()
    if limit is None:
        return
    if current >= limit:
        raise PlanLimitExceededError(limit_key, limit, current)


def check_members_limit(entitlements: Entitlements, current_members: int) -> None:
    """Raise if one more member would exceed the plan's max_members."""
    _check_limit(entitlements, MAX_MEMBERS, entitlements.limits.max_members, current_members)


def check_branches_limit(entitlements: Entitlements, current_branches: int) -> None:
    """Raise if one more branch would exceed the plan's max_branches."""
    _check_limit(entitlements, MAX_BRANCHES, entitlements.limits.max_branches, current_branches)


class PlanLimitChecker:
    """Combines resolved entitlements with church-wide counts."""

    def __init__(self, store, resolver):
        self._store = store
        self._resolver = resolver

    def ensure_can_add_member(self, user_id: str, church_id: str) -> Entitlements:
        entitlements = self._resolver.get_entitlements(user_id)
        current = self._store.count_members_in_church(church_id)
        try:
            check_members_limit(entitlements, current)
        except PlanLimitExceededError:
            logger.info(
                "Member limit reached",
                extra={"user_id": user_id, "church_id": church_id, "current": current},
            )
            raise
        return entitlements

    def ensure_can_add_branch(self, user_id: str, church_id: str) -> Entitlements:
        entitlements = self._resolver.get_entitlements(user_id)
        current = self._store.count_branches_in_church(church_id)
        try:
            check_branches_limit(entitlements, current)
        except PlanLimitExceededError:
            logger.info(
                "Branch limit reached",
                extra={"user_id": user_id, "church_id": church_id, "current": current},
            )
            raise
        return entitlements
