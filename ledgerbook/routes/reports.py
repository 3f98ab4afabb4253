"""
Report API endpoints.

Endpoints:
- GET /organizations/{organization_id}/reports/dashboard - Current month summary
- GET /organizations/{organization_id}/reports/expenses-by-category - Expense breakdown
- GET /organizations/{organization_id}/reports/cash-flow - Monthly cash flow of a fiscal year

All report endpoints are read-only and open to every role.
"""

import logging
from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ledgerbook.auth.permissions import OrganizationContext, Permission, require_permission
from ledgerbook.db.client import get_supabase_client
from ledgerbook.schemas.reports import (
    CashFlowMonth,
    CashFlowResponse,
    CategoryExpense,
    DashboardSummaryResponse,
    ExpensesByCategoryResponse,
)
from ledgerbook.services.organization_service import get_organization
from ledgerbook.services.report_service import (
    get_cash_flow,
    get_dashboard_summary,
    get_expenses_by_category,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{organization_id}/reports", tags=["reports"])


@router.get(
    "/dashboard",
    response_model=DashboardSummaryResponse,
    status_code=status.HTTP_200_OK,
    summary="Dashboard summary",
    description="""
    Total balance, this month's completed income and expenses, open and
    overdue invoices, and budgets at risk.
    """
)
async def dashboard(
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))]
) -> DashboardSummaryResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        summary = await get_dashboard_summary(supabase_client, ctx.organization_id)
    except Exception as e:
        logger.error(f"Failed to build dashboard for {ctx.organization_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "report_error", "details": "Failed to build dashboard summary"}
        )

    return DashboardSummaryResponse(**summary)


@router.get(
    "/expenses-by-category",
    response_model=ExpensesByCategoryResponse,
    status_code=status.HTTP_200_OK,
    summary="Expenses by category",
)
async def expenses_by_category(
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))],
    from_date: Optional[str] = Query(None, description="Inclusive start date (YYYY-MM-DD)"),
    to_date: Optional[str] = Query(None, description="Inclusive end date (YYYY-MM-DD)"),
) -> ExpensesByCategoryResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        rows = await get_expenses_by_category(
            supabase_client,
            ctx.organization_id,
            from_date=from_date,
            to_date=to_date,
        )
    except Exception as e:
        logger.error(f"Failed to build expense breakdown for {ctx.organization_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "report_error", "details": "Failed to build expense breakdown"}
        )

    categories = [CategoryExpense(**row) for row in rows]

    return ExpensesByCategoryResponse(
        categories=categories,
        total=round(sum(c.total for c in categories), 2),
    )


@router.get(
    "/cash-flow",
    response_model=CashFlowResponse,
    status_code=status.HTTP_200_OK,
    summary="Cash flow by month",
    description="""
    Completed income, expenses and net for each month of a fiscal year.

    The fiscal year follows the organization's fiscal_year_start month and
    is named after the calendar year it starts in. Defaults to the fiscal
    year containing today.
    """
)
async def cash_flow(
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))],
    fiscal_year: Optional[int] = Query(None, ge=1900, le=9998, description="Fiscal year (its last month must fall before year 10000)"),
) -> CashFlowResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        organization = await get_organization(supabase_client, ctx.organization_id)
        fiscal_year_start = int((organization or {}).get("fiscal_year_start") or 1)

        if fiscal_year is None:
            today = date.today()
            fiscal_year = today.year if today.month >= fiscal_year_start else today.year - 1

        months = await get_cash_flow(supabase_client, ctx.organization_id, fiscal_year, fiscal_year_start)
    except Exception as e:
        logger.error(f"Failed to build cash flow for {ctx.organization_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "report_error", "details": "Failed to build cash flow"}
        )

    rows = [CashFlowMonth(**m) for m in months]
    total_income = round(sum(r.income for r in rows), 2)
    total_expenses = round(sum(r.expenses for r in rows), 2)

    return CashFlowResponse(
        fiscal_year=fiscal_year,
        fiscal_year_start=fiscal_year_start,
        months=rows,
        total_income=total_income,
        total_expenses=total_expenses,
        net=round(total_income - total_expenses, 2),
    )
