"""
API Dependencies module.

Provides shared FastAPI dependencies for route handlers.
"""

from church_admin.api.dependencies.authorization import (
    authorize,
    require_principal,
    require_any_feature,
    require_feature,
    require_permissions,
    require_role,
)

__all__ = [
    "authorize",
    "require_principal",
    "require_any_feature",
    "require_feature",
    "require_permissions",
    "require_role",
]
