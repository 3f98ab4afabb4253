"""
Budget API endpoints.

Endpoints:
- GET /organizations/{organization_id}/budgets - List budgets with health figures
- POST /organizations/{organization_id}/budgets - Create a budget
- GET /organizations/{organization_id}/budgets/{budget_id} - Get one budget
- PATCH /organizations/{organization_id}/budgets/{budget_id} - Update a budget
- DELETE /organizations/{organization_id}/budgets/{budget_id} - Delete a budget
"""

import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from ledgerbook.auth.permissions import OrganizationContext, Permission, require_permission
from ledgerbook.db.client import get_supabase_client
from ledgerbook.schemas.budgets import (
    BudgetCreateRequest,
    BudgetCreateResponse,
    BudgetDeleteResponse,
    BudgetListResponse,
    BudgetPeriod,
    BudgetResponse,
    BudgetUpdateRequest,
    BudgetUpdateResponse,
)
from ledgerbook.services.budget_service import (
    create_budget,
    delete_budget,
    get_all_budgets,
    get_budget_by_id,
    update_budget,
    with_health,
)
from ledgerbook.utils.constants import DEFAULT_BUDGET_ALERT_THRESHOLD, DEFAULT_CATEGORY_COLOR

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{organization_id}/budgets", tags=["budgets"])


def _build_budget_response(budget: Dict[str, Any]) -> BudgetResponse:
    if "status" not in budget:
        budget = with_health(budget)

    threshold = budget.get("alert_threshold")

    return BudgetResponse(
        id=str(budget.get("id")),
        organization_id=str(budget.get("organization_id")),
        category=budget.get("category") or "",
        spent=float(budget.get("spent") or 0.0),
        limit_amount=float(budget.get("limit_amount") or 0.0),
        period=budget.get("period", "monthly"),
        alert_threshold=int(threshold if threshold is not None else DEFAULT_BUDGET_ALERT_THRESHOLD),
        color=budget.get("color") or DEFAULT_CATEGORY_COLOR,
        percent_used=budget["percent_used"],
        remaining=budget["remaining"],
        status=budget["status"],
        created_at=str(budget["created_at"]) if budget.get("created_at") else None,
        updated_at=str(budget["updated_at"]) if budget.get("updated_at") else None,
    )


def _budget_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "not_found", "details": "Budget not found"}
    )


@router.get(
    "",
    response_model=BudgetListResponse,
    status_code=status.HTTP_200_OK,
    summary="List budgets",
)
async def list_budgets(
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))],
    period: Optional[BudgetPeriod] = Query(None, description="monthly|yearly"),
) -> BudgetListResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        budgets = await get_all_budgets(supabase_client, ctx.organization_id, period=period)
    except Exception as e:
        logger.error(f"Failed to fetch budgets: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to retrieve budgets"}
        )

    responses = [_build_budget_response(b) for b in budgets]
    return BudgetListResponse(budgets=responses, count=len(responses))


@router.post(
    "",
    response_model=BudgetCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a budget",
)
async def create_new_budget(
    request: BudgetCreateRequest,
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> BudgetCreateResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        budget = await create_budget(
            supabase_client=supabase_client,
            organization_id=ctx.organization_id,
            category=request.category,
            limit_amount=request.limit_amount,
            period=request.period,
            alert_threshold=request.alert_threshold,
            color=request.color,
            spent=request.spent,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "details": str(e)}
        )
    except Exception as e:
        logger.error(f"Failed to create budget: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "create_error", "details": "Failed to create budget"}
        )

    return BudgetCreateResponse(
        status="CREATED",
        budget=_build_budget_response(budget),
        message=f"Budget for {request.category} created successfully"
    )


@router.get(
    "/{budget_id}",
    response_model=BudgetResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a budget",
)
async def get_budget(
    budget_id: Annotated[str, Path(description="Budget UUID")],
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))]
) -> BudgetResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        budget = await get_budget_by_id(supabase_client, ctx.organization_id, budget_id)
    except Exception as e:
        logger.error(f"Failed to fetch budget {budget_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to retrieve budget"}
        )

    if not budget:
        raise _budget_not_found()

    return _build_budget_response(budget)


@router.patch(
    "/{budget_id}",
    response_model=BudgetUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Update a budget",
)
async def update_existing_budget(
    budget_id: Annotated[str, Path(description="Budget UUID")],
    request: BudgetUpdateRequest,
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> BudgetUpdateResponse:
    updates = request.model_dump(exclude_none=True)

    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_request", "details": "At least one field must be provided for update"}
        )

    supabase_client = get_supabase_client(ctx.access_token)

    try:
        budget = await update_budget(supabase_client, ctx.organization_id, budget_id, **updates)
    except Exception as e:
        logger.error(f"Failed to update budget {budget_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "update_error", "details": "Failed to update budget"}
        )

    if not budget:
        raise _budget_not_found()

    return BudgetUpdateResponse(
        status="UPDATED",
        budget=_build_budget_response(budget),
        message="Budget updated successfully"
    )


@router.delete(
    "/{budget_id}",
    response_model=BudgetDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete a budget",
)
async def delete_existing_budget(
    budget_id: Annotated[str, Path(description="Budget UUID")],
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> BudgetDeleteResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        deleted = await delete_budget(supabase_client, ctx.organization_id, budget_id)
    except Exception as e:
        logger.error(f"Failed to delete budget {budget_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "delete_error", "details": "Failed to delete budget"}
        )

    if not deleted:
        raise _budget_not_found()

    return BudgetDeleteResponse(
        status="DELETED",
        budget_id=budget_id,
        message="Budget deleted successfully"
    )
