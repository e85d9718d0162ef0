"""
Database models.

Importing this package registers every table on church_admin.db_base.Base.
"""

from church_admin.models.user import User
from church_admin.models.church import Church, Branch, Member, PermissionGrant
from church_admin.models.plan import Plan
from church_admin.models.subscription import Subscription, SubscriptionStatus

__all__ = [
    "User",
    "Church",
    "Branch",
    "Member",
    "PermissionGrant",
    "Plan",
    "Subscription",
    "SubscriptionStatus",
]
