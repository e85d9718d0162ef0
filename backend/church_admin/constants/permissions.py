"""
Canonical roles and permission types for the church administration API.

IMPORTANT: All role and permission checks MUST reference these constants.
UI permission gating is UX only - server-side enforcement is security.

Roles are a closed set carried in the access token.

Role Hierarchy (per church):
- ADMINGERAL > ADMINFILIAL > COORDINATOR > MEMBER
- SUPERADMIN is a platform role (plan administration), not a church role

Permission types are an OPEN set of strings stored per member. New types can
be granted without touching this module, but call sites should reference
PermissionType so a typo fails at import time instead of silently denying.
"""

from enum import Enum


class Role(str, Enum):
    """
    Organizational roles from the access token.

    Keep in sync with the role column of the members table.
    """
    # Church roles
    ADMINGERAL = "ADMINGERAL"      # General administrator of the whole church
    ADMINFILIAL = "ADMINFILIAL"    # Administrator of a single branch
    COORDINATOR = "COORDINATOR"
    MEMBER = "MEMBER"

    # Platform role
    SUPERADMIN = "SUPERADMIN"


class PermissionType:
    """
    Known permission-type strings.

    Naming convention: resource_action
    """
    MEMBERS_VIEW = "members_view"
    MEMBERS_MANAGE = "members_manage"
    EVENTS_MANAGE = "events_manage"
    DEVOTIONAL_MANAGE = "devotional_manage"
    CONTRIBUTIONS_MANAGE = "contributions_manage"
    FINANCES_VIEW = "finances_view"
    FINANCES_MANAGE = "finances_manage"
    CHURCH_MANAGE = "church_manage"
    PERMISSION_MANAGE = "permission_manage"


def role_value(role) -> str:
    """Return the string value of a Role or raw role string."""
    if isinstance(role, Role):
        return role.value
    return str(role) if role is not None else ""
