"""
Authorization dependencies.

Reusable FastAPI dependencies that run the role, permission and feature
gates for a route. Dependencies listed in a route run in order, and the
first denial aborts the request with the structured denial payload.

Usage:
    @router.get(
        "/finances",
        dependencies=[
            Depends(require_feature(FeatureId.FINANCES)),
            Depends(require_permissions(PermissionType.FINANCES_VIEW)),
        ],
    )
    async def list_finances(request: Request):
        entitlements = request.state.entitlements
        ...
"""

import logging
from typing import Callable, Union

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from church_admin.constants.permissions import Role
from church_admin.database.session import get_db_session
from church_admin.platform.denials import GateResult, authentication_required, raise_for_denial
from church_admin.platform.guards import (
    Guard,
    any_feature_guard,
    evaluate_guards,
    feature_guard,
    permission_guard,
    role_guard,
)
from church_admin.platform.principal import Principal, get_principal
from church_admin.repositories.authorization_store import AuthorizationStore

logger = logging.getLogger(__name__)


def require_principal(request: Request) -> Principal:
    """Authenticated principal, or 401 before any database work happens."""
    principal = get_principal(request)
    if principal is None:
        raise_for_denial(authentication_required().denial)
    return principal


def authorize(*guards: Guard) -> Callable:
    """
    Dependency factory running guards as one ordered chain.

    Returns the GateResult; resolved entitlements (if any guard produced
    them) are attached to request.state.entitlements.
    """
    if not guards:
        raise ValueError("authorize needs at least one guard")

    def dependency(
        request: Request,
        principal: Principal = Depends(require_principal),
        db_session: Session = Depends(get_db_session),
    ) -> GateResult:
        result = evaluate_guards(principal, AuthorizationStore(db_session), guards)

        if not result.allowed:
            logger.info(
                "Request denied",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "principal_id": principal.principal_id,
                    "denial_kind": result.denial.kind.value,
                },
            )
            raise_for_denial(result.denial)

        if result.entitlements is not None:
            request.state.entitlements = result.entitlements
        return result

    return dependency


def require_role(*roles: Union[Role, str]) -> Callable:
    return authorize(role_guard(*roles))


def require_permissions(*permissions: str) -> Callable:
    return authorize(permission_guard(*permissions))


def require_feature(feature_id: str) -> Callable:
    return authorize(feature_guard(feature_id))


def require_any_feature(*feature_ids: str) -> Callable:
    return authorize(any_feature_guard(*feature_ids))
