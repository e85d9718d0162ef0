"""
Authorization policy switches.

Changing any value here changes who gets access. Treat edits as security
changes and cover them with tests.

- Elevated roles have superuser scope inside their church and bypass
  explicit permission checks. They do NOT bypass feature (plan) checks.
- Feature resolution fails closed: if entitlements cannot be resolved the
  feature is denied.
- Permission resolution degrades to the token snapshot when the live
  grant lookup fails.
"""

from typing import FrozenSet, Union

from church_admin.constants.permissions import Role, role_value

ELEVATED_ROLES: FrozenSet[Role] = frozenset([
    Role.ADMINGERAL,
    Role.ADMINFILIAL,
])

FEATURE_RESOLUTION_FAILS_CLOSED = True
PERMISSION_RESOLUTION_DEGRADES_TO_TOKEN = True


def is_elevated(role: Union[Role, str, None]) -> bool:
    """True if the role bypasses explicit permission checks."""
    value = role_value(role)
    return any(value == r.value for r in ELEVATED_ROLES)
