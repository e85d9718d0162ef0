"""
Plan Service for plan administration.

Handles:
- Creating and updating plans
- Validating plan features against the feature catalog

A plan's feature list must never contain an id the catalog does not know.
Invalid input is rejected before anything is persisted, and the error
names the offending ids together with the currently valid ones.

SECURITY: Plan administration requires the SUPERADMIN role (verified at
route level).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from church_admin.constants.plan_features import (
    PlanFeatureRegistry,
    get_plan_feature_registry,
)
from church_admin.models.plan import Plan
from church_admin.repositories.plans_repo import (
    PlanAlreadyExistsError as RepoPlanAlreadyExistsError,
    PlanNotFoundError,
    PlansRepository,
)

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset([
    "name", "code", "price_cents", "features", "max_members", "max_branches", "is_active",
])

# NOT NULL columns; PATCH may omit them but never null them
_REQUIRED_FIELDS = frozenset(["name", "price_cents", "features", "is_active"])


@dataclass
class PlanInfo:
    """Plan information returned to callers."""
    id: str
    name: str
    code: Optional[str]
    price_cents: int
    features: List[str] = field(default_factory=list)
    max_members: Optional[int] = None
    max_branches: Optional[int] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, plan: Plan) -> "PlanInfo":
        return cls(
            id=plan.id,
            name=plan.name,
            code=plan.code,
            price_cents=plan.price_cents or 0,
            features=list(plan.features or []),
            max_members=plan.max_members,
            max_branches=plan.max_branches,
            is_active=bool(plan.is_active),
            created_at=plan.created_at,
            updated_at=plan.updated_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "price_cents": self.price_cents,
            "features": list(self.features),
            "max_members": self.max_members,
            "max_branches": self.max_branches,
            "is_active": self.is_active,
        }


class PlanServiceError(Exception):
    """Base exception for plan service errors."""
    pass


class PlanNotFoundServiceError(PlanServiceError):
    """Plan not found."""
    pass


class PlanAlreadyExistsError(PlanServiceError):
    """Plan with same name already exists."""
    pass


class PlanValidationError(PlanServiceError):
    """
    Plan validation failed.

    invalid_features is the rejected input, verbatim.
    """

    def __init__(
        self,
        message: str,
        invalid_features: Optional[List[str]] = None,
        valid_features: Optional[Sequence[str]] = None,
    ):
        self.invalid_features = list(invalid_features or [])
        self.valid_features = list(valid_features or [])
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "invalid_plan_features",
            "message": str(self),
            "invalid": self.invalid_features,
            "valid_features": self.valid_features,
        }


def _validate_limit(name: str, value: Optional[int]) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise PlanValidationError(f"{name} must be a non-negative integer or null")


class PlanService:
    """
    Service for plan administration operations.

    Plans are global entities - not church-scoped.
    """

    def __init__(
        self,
        db_session: Session,
        registry: Optional[PlanFeatureRegistry] = None,
    ):
        self.db = db_session
        self.repo = PlansRepository(db_session)
        self.registry = registry or get_plan_feature_registry()

    def validate_features(self, features: Sequence[Any]) -> List[str]:
        """
        Validate and normalize a plan's feature list.

        Raises:
            PlanValidationError: If any feature id is not in the catalog
        """
        if isinstance(features, (str, bytes)) or features is None:
            raise PlanValidationError(
                "features must be a list of feature ids",
                valid_features=self.registry.list_feature_ids(),
            )

        result = self.registry.validate_and_normalize(features)
        if result.invalid:
            valid_ids = self.registry.list_feature_ids()
            logger.warning(
                "Rejected plan features",
                extra={"invalid_features": result.invalid},
            )
            raise PlanValidationError(
                f"Invalid plan features: {', '.join(result.invalid)}. "
                f"Valid features: {', '.join(valid_ids)}",
                invalid_features=result.invalid,
                valid_features=valid_ids,
            )
        return list(result.valid)

    def get_plan(self, plan_id: str) -> PlanInfo:
        """
        Raises:
            PlanNotFoundServiceError: If plan doesn't exist
        """
        plan = self.repo.get_by_id(plan_id)
        if not plan:
            raise PlanNotFoundServiceError(f"Plan not found: {plan_id}")
        return PlanInfo.from_model(plan)

    def list_plans(self, include_inactive: bool = False) -> List[PlanInfo]:
        return [PlanInfo.from_model(p) for p in self.repo.get_all(include_inactive)]

    def create_plan(
        self,
        name: str,
        features: Sequence[Any],
        code: Optional[str] = None,
        price_cents: int = 0,
        max_members: Optional[int] = None,
        max_branches: Optional[int] = None,
    ) -> PlanInfo:
        """
        Create a plan after validating its features and limits.

        Raises:
            PlanValidationError: invalid features or limits (nothing persisted)
            PlanAlreadyExistsError: name already taken
        """
        if not name or not name.strip():
            raise PlanValidationError("Plan name is required")
        _validate_limit("max_members", max_members)
        _validate_limit("max_branches", max_branches)
        normalized = self.validate_features(features)

        try:
            plan = self.repo.create(
                name=name.strip(),
                features=normalized,
                code=code,
                price_cents=price_cents,
                max_members=max_members,
                max_branches=max_branches,
            )
        except RepoPlanAlreadyExistsError as e:
            raise PlanAlreadyExistsError(str(e)) from e

        self.db.commit()
        return PlanInfo.from_model(plan)

    def update_plan(self, plan_id: str, **changes: Any) -> PlanInfo:
        """
        Update plan fields. Features are re-validated when present.

        Raises:
            PlanValidationError: unknown field, null required field,
                invalid features or limits
            PlanNotFoundServiceError: If plan doesn't exist
            PlanAlreadyExistsError: new name already taken
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise PlanValidationError(f"Unknown plan fields: {', '.join(sorted(unknown))}")

        nulled = sorted(k for k in _REQUIRED_FIELDS if k in changes and changes[k] is None)
        if nulled:
            raise PlanValidationError(f"Fields cannot be null: {', '.join(nulled)}")

        if "name" in changes:
            if not changes["name"].strip():
                raise PlanValidationError("Plan name is required")
            changes["name"] = changes["name"].strip()
        if "features" in changes:
            changes["features"] = self.validate_features(changes["features"])
        for key in ("max_members", "max_branches"):
            if key in changes:
                _validate_limit(key, changes[key])

        try:
            plan = self.repo.update(plan_id, changes)
        except PlanNotFoundError as e:
            raise PlanNotFoundServiceError(str(e)) from e
        except RepoPlanAlreadyExistsError as e:
            raise PlanAlreadyExistsError(str(e)) from e

        self.db.commit()
        return PlanInfo.from_model(plan)
