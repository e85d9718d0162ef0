"""
Plans Repository for plan administration.

Plans are global (not church-scoped) - they define available subscription tiers.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from church_admin.models.plan import Plan

logger = logging.getLogger(__name__)


class PlanRepositoryError(Exception):
    """Base exception for plan repository errors."""
    pass


class PlanNotFoundError(PlanRepositoryError):
    """Plan not found."""
    pass


class PlanAlreadyExistsError(PlanRepositoryError):
    """Plan with same name already exists."""
    pass


class PlansRepository:
    """Repository for Plan persistence."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_by_id(self, plan_id: str) -> Optional[Plan]:
        return self.db.query(Plan).filter(Plan.id == plan_id).first()

    def get_by_name(self, name: str) -> Optional[Plan]:
        return self.db.query(Plan).filter(Plan.name == name).first()

    def get_all(self, include_inactive: bool = False) -> List[Plan]:
        query = self.db.query(Plan)
        if not include_inactive:
            query = query.filter(Plan.is_active.is_(True))
        return query.order_by(Plan.price_cents.asc(), Plan.name.asc()).all()

    def create(
        self,
        name: str,
        features: List[str],
        code: Optional[str] = None,
        price_cents: int = 0,
        max_members: Optional[int] = None,
        max_branches: Optional[int] = None,
        is_active: bool = True,
    ) -> Plan:
        """
        Create a new plan.

        Raises:
            PlanAlreadyExistsError: If a plan with the same name exists
        """
        if self.get_by_name(name):
            raise PlanAlreadyExistsError(f"Plan with name '{name}' already exists")

        plan = Plan(
            name=name,
            code=code,
            price_cents=price_cents,
            features=list(features),
            max_members=max_members,
            max_branches=max_branches,
            is_active=is_active,
        )

        try:
            self.db.add(plan)
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            logger.error("Failed to create plan", extra={"plan_name": name, "error": str(e)})
            raise PlanAlreadyExistsError(f"Plan with name '{name}' already exists") from e

        logger.info("Plan created", extra={"plan_id": plan.id, "plan_name": name})
        return plan

    def update(self, plan_id: str, changes: Dict[str, Any]) -> Plan:
        """
        Apply column changes to a plan.

        Raises:
            PlanNotFoundError: If plan doesn't exist
            PlanAlreadyExistsError: If the new name belongs to another plan
        """
        plan = self.get_by_id(plan_id)
        if not plan:
            raise PlanNotFoundError(f"Plan not found: {plan_id}")

        new_name = changes.get("name")
        if new_name is not None:
            existing = self.get_by_name(new_name)
            if existing is not None and existing.id != plan_id:
                raise PlanAlreadyExistsError(f"Plan with name '{new_name}' already exists")

        for key, value in changes.items():
            setattr(plan, key, value)

        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            logger.error("Failed to update plan", extra={"plan_id": plan_id, "error": str(e)})
            raise PlanAlreadyExistsError(f"Plan with name '{new_name}' already exists") from e

        logger.info("Plan updated", extra={"plan_id": plan_id, "fields": sorted(changes)})
        return plan
