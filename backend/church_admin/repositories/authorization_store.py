"""
Read-only data access for authorization decisions.

Every method is a key-based read with the eager loading the gates need.
Nothing here writes; sessions are owned by the caller (one per request).

Used by:
- EntitlementsResolver (find_user, find_admin_of_church)
- PermissionGate (find_member_permissions)
- PlanLimitChecker (count_members_in_church, count_branches_in_church)
"""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from church_admin.constants.permissions import Role
from church_admin.models import Branch, Member, PermissionGrant, Subscription, User

logger = logging.getLogger(__name__)


class AuthorizationStore:
    """SQLAlchemy-backed reads for the authorization subsystem."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def find_user(self, user_id: str) -> Optional[User]:
        """
        Get a user with subscriptions (and their plans) and member (and branch).

        Returns:
            User if found, None otherwise
        """
        return (
            self.db.query(User)
            .options(
                selectinload(User.subscriptions).joinedload(Subscription.plan),
                selectinload(User.member).joinedload(Member.branch),
            )
            .filter(User.id == user_id)
            .first()
        )

    def find_member_permissions(self, member_id: str) -> Optional[List[str]]:
        """
        Get the permission types currently granted to a member.

        Returns:
            List of permission-type strings (possibly empty) if the member
            exists, None if it does not.
        """
        exists = self.db.query(Member.id).filter(Member.id == member_id).first()
        if exists is None:
            return None

        rows = (
            self.db.query(PermissionGrant.type)
            .filter(PermissionGrant.member_id == member_id)
            .order_by(PermissionGrant.type.asc())
            .all()
        )
        return [row[0] for row in rows]

    def find_admin_of_church(self, church_id: str) -> Optional[Member]:
        """
        Get the general administrator of a church.

        Searches every branch of the church. If several ADMINGERAL members
        exist, the oldest one wins so the result is deterministic.

        Returns:
            Member with branch, user, subscriptions and plans loaded, or None
        """
        return (
            self.db.query(Member)
            .join(Branch, Member.branch_id == Branch.id)
            .options(
                selectinload(Member.branch),
                selectinload(Member.user)
                .selectinload(User.subscriptions)
                .joinedload(Subscription.plan),
            )
            .filter(
                Branch.church_id == church_id,
                Member.role == Role.ADMINGERAL.value,
            )
            .order_by(Member.created_at.asc(), Member.id.asc())
            .first()
        )

    def count_members_in_church(self, church_id: str) -> int:
        return (
            self.db.query(func.count(Member.id))
            .join(Branch, Member.branch_id == Branch.id)
            .filter(Branch.church_id == church_id)
            .scalar()
        ) or 0

    def count_branches_in_church(self, church_id: str) -> int:
        return (
            self.db.query(func.count(Branch.id))
            .filter(Branch.church_id == church_id)
            .scalar()
        ) or 0
