"""
Structured error classes for entitlement resolution and plan limits.
"""

from typing import Optional


class EntitlementError(Exception):
    """Base exception for entitlement errors."""
    pass


class UserNotFoundError(EntitlementError):
    """
    Raised when the principal's user record does not exist.

    Signals a mismatch between authentication and the data store, not a
    legitimate "no plan" state.
    """

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class EntitlementResolutionError(EntitlementError):
    """
    Raised when entitlements could not be computed (store error, timeout).

    Carries a machine-readable error_code for API responses.
    """

    def __init__(
        self,
        user_id: str,
        detail: str,
        cause: Optional[Exception] = None,
    ):
        self.user_id = user_id
        self.detail = detail
        self.cause = cause
        self.error_code = "ENTITLEMENT_RESOLUTION_FAILED"
        super().__init__(f"Entitlement resolution failed for {user_id}: {detail}")

    def to_dict(self) -> dict:
        return {
            "error": self.error_code,
            "message": self.detail,
        }


class NoActivePlanError(EntitlementError):
    """Raised by limit checks when no plan applies anywhere in the tenant chain."""

    def __init__(self, message: str = "No active plan found for this account"):
        super().__init__(message)


class PlanLimitExceededError(EntitlementError):
    """Raised when creating a resource would exceed a plan limit."""

    def __init__(self, limit_key: str, limit: int, current: int):
        self.limit_key = limit_key
        self.limit = limit
        self.current = current
        super().__init__(
            f"Plan limit reached: {limit_key} allows at most {limit}, "
            f"currently {current}"
        )

    def to_dict(self) -> dict:
        return {
            "error": "plan_limit_exceeded",
            "limit_key": self.limit_key,
            "limit": self.limit,
            "current": self.current,
        }
