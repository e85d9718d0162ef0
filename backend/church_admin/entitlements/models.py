"""
Entitlement value objects.

Provides:
- ResolvedFrom: where the effective plan came from
- EntitlementLimits: numeric plan limits (None = unlimited)
- PlanSummary: id/name/code of the effective plan
- Entitlements: resolved, read-only view for one user at one point in time

Entitlements are derived, never persisted, and recomputed on every
resolution call.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ResolvedFrom(str, Enum):
    """Source of the effective plan."""
    SELF = "self"              # The user's own active subscription
    ADMINGERAL = "admingeral"  # Inherited from the church's general administrator


@dataclass(frozen=True)
class EntitlementLimits:
    max_members: Optional[int] = None
    max_branches: Optional[int] = None

    def to_dict(self) -> Dict[str, Optional[int]]:
        return {
            "maxMembers": self.max_members,
            "maxBranches": self.max_branches,
        }


@dataclass(frozen=True)
class PlanSummary:
    id: str
    name: str
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"id": self.id, "name": self.name, "code": self.code}


@dataclass(frozen=True)
class Entitlements:
    """
    Resolved entitlements for a user.

    Immutable. features is already filtered against the plan feature
    registry and kept in catalog order.
    """
    features: Tuple[str, ...] = ()
    limits: EntitlementLimits = field(default_factory=EntitlementLimits)
    plan: Optional[PlanSummary] = None
    has_active_subscription: bool = False
    resolved_from: Optional[ResolvedFrom] = None

    @classmethod
    def empty(cls) -> "Entitlements":
        """No plan anywhere in the tenant chain."""
        return cls()

    def has_feature(self, feature_id: str) -> bool:
        return feature_id in self.features

    def has_any_feature(self, feature_ids) -> bool:
        return any(f in self.features for f in feature_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "features": list(self.features),
            "limits": self.limits.to_dict(),
            "plan": self.plan.to_dict() if self.plan else None,
            "hasActiveSubscription": self.has_active_subscription,
            "resolvedFrom": self.resolved_from.value if self.resolved_from else None,
        }
