"""
Canonical plan features catalog.

This is the SINGLE SOURCE OF TRUTH for plan features.

Rules:
1. Feature ids are lowercase strings
2. Feature ids are STABLE - treat them as an API contract, never rename
3. Every feature stored on a plan must exist in this catalog
4. Premium features marked requires_enforcement are guarded on endpoints

Registry membership is the only filter between "declared on a plan" and
"grantable to a user": plans are validated against it at authoring time and
entitlements are re-filtered against it at read time.

Usage:
    from church_admin.constants.plan_features import FeatureId, get_plan_feature_registry

    registry = get_plan_feature_registry()
    result = registry.validate_and_normalize(["Finances", "events", "bogus"])
    result.valid    # ("events", "finances")
    result.invalid  # ["bogus"]
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple


class PlanFeatureCategory(str, Enum):
    BASIC = "basic"      # Available to every plan, tracked but not gated
    PREMIUM = "premium"  # Paid features


class FeatureId:
    """Standard feature ids for entitlement checking."""
    EVENTS = "events"
    MEMBERS = "members"
    CONTRIBUTIONS = "contributions"
    DEVOTIONALS = "devotionals"
    FINANCES = "finances"
    ADVANCED_REPORTS = "advanced_reports"
    WHITE_LABEL_APP = "white_label_app"
    EXPORT = "export"
    MULTI_BRANCH = "multi_branch"
    API_ACCESS = "api_access"


@dataclass(frozen=True)
class PlanFeatureDefinition:
    """One catalog entry."""
    id: str
    label: str
    description: str
    category: PlanFeatureCategory
    requires_enforcement: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "description": self.description,
            "category": self.category.value,
            "requires_enforcement": self.requires_enforcement,
        }


AVAILABLE_PLAN_FEATURES: Tuple[PlanFeatureDefinition, ...] = (
    # Basic features (available to all plans, including free)
    PlanFeatureDefinition(
        id=FeatureId.EVENTS,
        label="Eventos",
        description="Gerencie cultos e eventos",
        category=PlanFeatureCategory.BASIC,
    ),
    PlanFeatureDefinition(
        id=FeatureId.MEMBERS,
        label="Membros",
        description="Gerencie membros da igreja",
        category=PlanFeatureCategory.BASIC,
    ),
    PlanFeatureDefinition(
        id=FeatureId.CONTRIBUTIONS,
        label="Contribuições",
        description="Gerencie ofertas e dízimos",
        category=PlanFeatureCategory.BASIC,
    ),
    PlanFeatureDefinition(
        id=FeatureId.DEVOTIONALS,
        label="Devocionais",
        description="Compartilhe devocionais",
        category=PlanFeatureCategory.BASIC,
    ),
    # Premium features
    PlanFeatureDefinition(
        id=FeatureId.FINANCES,
        label="Finanças",
        description="Controle financeiro completo",
        category=PlanFeatureCategory.PREMIUM,
        requires_enforcement=True,
    ),
    PlanFeatureDefinition(
        id=FeatureId.ADVANCED_REPORTS,
        label="Relatórios Avançados",
        description="Relatórios detalhados e analytics",
        category=PlanFeatureCategory.PREMIUM,
        requires_enforcement=True,
    ),
    PlanFeatureDefinition(
        id=FeatureId.WHITE_LABEL_APP,
        label="App White-label",
        description="App personalizado para a igreja",
        category=PlanFeatureCategory.PREMIUM,
        requires_enforcement=True,
    ),
    PlanFeatureDefinition(
        id=FeatureId.EXPORT,
        label="Exportação de Dados",
        description="Exportar dados em CSV/Excel",
        category=PlanFeatureCategory.PREMIUM,
        requires_enforcement=True,
    ),
    PlanFeatureDefinition(
        id=FeatureId.MULTI_BRANCH,
        label="Múltiplas Filiais",
        description="Gerenciar múltiplas filiais",
        category=PlanFeatureCategory.PREMIUM,
        # Enforced via the max_branches limit instead of a feature gate
        requires_enforcement=False,
    ),
    PlanFeatureDefinition(
        id=FeatureId.API_ACCESS,
        label="Acesso à API",
        description="Acesso programático à API",
        category=PlanFeatureCategory.PREMIUM,
        requires_enforcement=True,
    ),
)


@dataclass(frozen=True)
class FeatureValidationResult:
    """
    Partition of candidate feature strings.

    valid follows catalog order and holds normalized ids without duplicates.
    invalid holds the offending inputs verbatim, in input order.
    """
    valid: Tuple[str, ...]
    invalid: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.invalid


def _normalize(candidate: Any) -> Optional[str]:
    if not isinstance(candidate, str):
        return None
    return candidate.strip().lower()


class PlanFeatureRegistry:
    """Lookup and validation over a feature catalog."""

    def __init__(self, features: Iterable[PlanFeatureDefinition] = AVAILABLE_PLAN_FEATURES):
        self._features: Tuple[PlanFeatureDefinition, ...] = tuple(features)
        self._by_id: Dict[str, PlanFeatureDefinition] = {f.id: f for f in self._features}
        if len(self._by_id) != len(self._features):
            raise ValueError("Duplicate feature ids in plan feature catalog")

    def list_feature_ids(self) -> Tuple[str, ...]:
        """All recognized feature ids, in catalog order."""
        return tuple(f.id for f in self._features)

    def get_feature(self, feature_id: str) -> Optional[PlanFeatureDefinition]:
        return self._by_id.get(feature_id)

    def is_valid_feature_id(self, feature_id: Any) -> bool:
        return isinstance(feature_id, str) and feature_id in self._by_id

    def features_requiring_enforcement(self) -> Tuple[str, ...]:
        return tuple(
            f.id for f in self._features
            if f.category == PlanFeatureCategory.PREMIUM and f.requires_enforcement
        )

    def catalog(self) -> List[Dict[str, Any]]:
        return [f.to_dict() for f in self._features]

    def validate_and_normalize(self, candidates: Sequence[Any]) -> FeatureValidationResult:
        """
        Partition candidates into recognized and unrecognized feature ids.

        Candidates are lower-cased and stripped before lookup. Non-string
        candidates are always invalid.
        """
        recognized = set()
        invalid: List[str] = []

        for candidate in candidates:
            normalized = _normalize(candidate)
            if normalized is not None and normalized in self._by_id:
                recognized.add(normalized)
            else:
                invalid.append(candidate if isinstance(candidate, str) else repr(candidate))

        valid = tuple(f.id for f in self._features if f.id in recognized)
        return FeatureValidationResult(valid=valid, invalid=invalid)

    def filter_known(self, stored_features: Optional[Iterable[Any]]) -> Tuple[str, ...]:
        """
        Keep only stored ids that are still in the catalog, in catalog order.

        Unlike validate_and_normalize this does not normalize: stored data is
        expected to already be canonical, anything else is dropped.
        """
        stored = {f for f in (stored_features or ()) if isinstance(f, str)}
        return tuple(f.id for f in self._features if f.id in stored)


_default_registry = PlanFeatureRegistry()


def get_plan_feature_registry() -> PlanFeatureRegistry:
    """Get the registry built from AVAILABLE_PLAN_FEATURES."""
    return _default_registry
