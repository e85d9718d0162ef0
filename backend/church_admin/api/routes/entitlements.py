"""
Entitlements API route.

GET /subscriptions/entitlements returns the caller's effective plan,
features and limits, including plans inherited from the church's
general administrator.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from church_admin.api.dependencies.authorization import require_principal
from church_admin.database.session import get_db_session
from church_admin.entitlements.errors import EntitlementResolutionError, UserNotFoundError
from church_admin.entitlements.resolver import EntitlementsResolver
from church_admin.platform.principal import Principal
from church_admin.repositories.authorization_store import AuthorizationStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.get("/entitlements")
async def get_my_entitlements(
    principal: Principal = Depends(require_principal),
    db_session: Session = Depends(get_db_session),
):
    resolver = EntitlementsResolver(AuthorizationStore(db_session))
    try:
        entitlements = resolver.get_entitlements(principal.principal_id)
    except UserNotFoundError:
        logger.warning("Entitlements requested for unknown user", extra={
            "principal_id": principal.principal_id,
        })
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    except EntitlementResolutionError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.to_dict(),
        )

    return entitlements.to_dict()
