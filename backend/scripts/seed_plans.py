"""
Plans Seed Script
Creates the default plans: free (basic features, small church limits)
and premium (every feature, unlimited).

Plans are created through PlanService so their feature lists go through
the same catalog validation as the admin API.

Usage:
    python -m scripts.seed_plans
    python -m scripts.seed_plans --dry-run (to preview without saving)

Environment variables:
    DATABASE_URL: PostgreSQL connection string (required)
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List

# Add backend directory to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from church_admin.constants.plan_features import FeatureId
from church_admin.database.session import get_db_session_sync
from church_admin.services.plan_service import PlanService, PlanServiceError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


DEFAULT_PLANS = [
    {
        "name": "free",
        "code": "FREE",
        "price_cents": 0,
        "features": [
            FeatureId.EVENTS,
            FeatureId.MEMBERS,
            FeatureId.CONTRIBUTIONS,
            FeatureId.DEVOTIONALS,
        ],
        "max_members": 10,
        "max_branches": 1,
    },
    {
        "name": "premium",
        "code": "PREMIUM",
        "price_cents": 4990,
        "features": [
            FeatureId.EVENTS,
            FeatureId.MEMBERS,
            FeatureId.CONTRIBUTIONS,
            FeatureId.DEVOTIONALS,
            FeatureId.FINANCES,
            FeatureId.ADVANCED_REPORTS,
            FeatureId.WHITE_LABEL_APP,
            FeatureId.EXPORT,
            FeatureId.MULTI_BRANCH,
            FeatureId.API_ACCESS,
        ],
        "max_members": None,
        "max_branches": None,
    },
]


def format_price(cents: int) -> str:
    """Format price in cents to display string."""
    if not cents:
        return "FREE"
    return f"${cents / 100:.2f}/month"


def seed_plans(session: Session, dry_run: bool = False) -> List[str]:
    """
    Seed the default plans. Existing plans (matched by name) are left alone.

    Returns:
        Names of the plans created (or that would be created on a dry run)
    """
    service = PlanService(session)
    existing_names = {p.name for p in service.list_plans(include_inactive=True)}

    plans_to_create = [p for p in DEFAULT_PLANS if p["name"] not in existing_names]

    if existing_names & {p["name"] for p in DEFAULT_PLANS}:
        logger.info(f"Plans already exist: {sorted(existing_names)}")

    logger.info(f"Plans to create ({len(plans_to_create)}):")
    for plan_data in plans_to_create:
        logger.info(
            f"   - {plan_data['name']}: {format_price(plan_data['price_cents'])} "
            f"({len(plan_data['features'])} features)"
        )

    if dry_run:
        logger.info("DRY RUN - No changes will be made")
        return [p["name"] for p in plans_to_create]

    created = []
    for plan_data in plans_to_create:
        plan = service.create_plan(**plan_data)
        created.append(plan.name)
        logger.info(f"Created: {plan.name} (ID: {plan.id})")

    return created


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed the default plans")
    parser.add_argument("--dry-run", action="store_true", help="Preview without saving")
    args = parser.parse_args(argv)

    try:
        for session in get_db_session_sync():
            created = seed_plans(session, dry_run=args.dry_run)
            logger.info(f"Plans created: {len(created)}")
    except (SQLAlchemyError, PlanServiceError, RuntimeError) as e:
        logger.error(f"Seeding failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
