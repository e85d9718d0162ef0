"""
Admin Plans API routes for plan management.

SECURITY: All routes require the platform SUPERADMIN role.
Invalid feature ids are rejected with 400 and the verbatim invalid list.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from church_admin.api.dependencies.authorization import require_role
from church_admin.constants.permissions import Role
from church_admin.database.session import get_db_session
from church_admin.platform.principal import get_principal
from church_admin.services.plan_service import (
    PlanAlreadyExistsError,
    PlanInfo,
    PlanNotFoundServiceError,
    PlanService,
    PlanValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/plans",
    tags=["admin-plans"],
    dependencies=[Depends(require_role(Role.SUPERADMIN))],
)


# Request/Response models

class CreatePlanRequest(BaseModel):
    """Request to create a new plan."""
    name: str = Field(..., description="Unique plan name (e.g., 'premium')", min_length=1, max_length=100)
    code: Optional[str] = Field(None, description="Short code (e.g., 'PREMIUM')", max_length=50)
    price_cents: int = Field(0, description="Monthly price in cents", ge=0)
    features: List[str] = Field(default_factory=list, description="Feature ids from the catalog")
    max_members: Optional[int] = Field(None, description="Member limit (null = unlimited)", ge=0)
    max_branches: Optional[int] = Field(None, description="Branch limit (null = unlimited)", ge=0)


class UpdatePlanRequest(BaseModel):
    """Request to update a plan. Omitted fields are left unchanged."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    code: Optional[str] = Field(None, max_length=50)
    price_cents: Optional[int] = Field(None, ge=0)
    features: Optional[List[str]] = None
    max_members: Optional[int] = Field(None, ge=0)
    max_branches: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class PlanResponse(BaseModel):
    id: str
    name: str
    code: Optional[str]
    price_cents: int
    features: List[str]
    max_members: Optional[int]
    max_branches: Optional[int]
    is_active: bool


class FeatureCatalogEntry(BaseModel):
    id: str
    label: str
    description: str
    category: str
    requires_enforcement: bool


def get_plan_service(db_session=Depends(get_db_session)) -> PlanService:
    """Get plan service instance."""
    return PlanService(db_session)


def _to_response(plan: PlanInfo) -> PlanResponse:
    return PlanResponse(**plan.to_dict())


def _validation_error(e: PlanValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=e.to_dict(),
    )


# Routes

@router.get("/features", response_model=List[FeatureCatalogEntry])
async def list_plan_features(
    plan_service: PlanService = Depends(get_plan_service),
):
    """Catalog of feature ids a plan may carry."""
    return plan_service.registry.catalog()


@router.get("", response_model=List[PlanResponse])
async def list_plans(
    include_inactive: bool = Query(False, description="Include inactive plans"),
    plan_service: PlanService = Depends(get_plan_service),
):
    return [_to_response(p) for p in plan_service.list_plans(include_inactive)]


@router.get("/{plan_id}", response_model=PlanResponse)
async def get_plan(
    plan_id: str,
    plan_service: PlanService = Depends(get_plan_service),
):
    try:
        return _to_response(plan_service.get_plan(plan_id))
    except PlanNotFoundServiceError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Plan not found: {plan_id}",
        )


@router.post("", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(
    request: Request,
    body: CreatePlanRequest,
    plan_service: PlanService = Depends(get_plan_service),
):
    """
    Create a new plan.

    Every feature must exist in the catalog; otherwise nothing is saved.
    """
    principal = get_principal(request)
    logger.info("Admin creating plan", extra={
        "principal_id": principal.principal_id if principal else None,
        "plan_name": body.name,
    })

    try:
        plan = plan_service.create_plan(
            name=body.name,
            features=body.features,
            code=body.code,
            price_cents=body.price_cents,
            max_members=body.max_members,
            max_branches=body.max_branches,
        )
    except PlanValidationError as e:
        raise _validation_error(e)
    except PlanAlreadyExistsError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )

    return _to_response(plan)


@router.patch("/{plan_id}", response_model=PlanResponse)
async def update_plan(
    request: Request,
    plan_id: str,
    body: UpdatePlanRequest,
    plan_service: PlanService = Depends(get_plan_service),
):
    changes = body.model_dump(exclude_unset=True)
    principal = get_principal(request)
    logger.info("Admin updating plan", extra={
        "principal_id": principal.principal_id if principal else None,
        "plan_id": plan_id,
        "fields": sorted(changes),
    })

    try:
        plan = plan_service.update_plan(plan_id, **changes)
    except PlanValidationError as e:
        raise _validation_error(e)
    except PlanNotFoundServiceError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Plan not found: {plan_id}",
        )
    except PlanAlreadyExistsError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )

    return _to_response(plan)
