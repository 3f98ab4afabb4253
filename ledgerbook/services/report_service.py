"""
Reporting service: dashboard figures, expense breakdowns and cash flow.

The aggregation functions are pure and take already-fetched rows; the async
wrappers at the bottom fetch those rows for one organization.

RULES:
1. Income/expense totals and cash flow count completed transactions only
2. The expense breakdown counts pending expenses too (they are committed spend)
3. Cash flow follows the organization's fiscal year (fiscal_year_start month)
4. Money figures are rounded to 2 decimals
"""

import calendar
import logging
from collections import defaultdict
from datetime import date
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from supabase import Client

from ledgerbook.services.account_service import get_organization_accounts
from ledgerbook.services.budget_service import get_all_budgets
from ledgerbook.services.invoice_service import get_organization_invoices
from ledgerbook.services.transaction_service import get_organization_transactions
from ledgerbook.utils.constants import OPEN_INVOICE_STATUSES

logger = logging.getLogger(__name__)

# Page size for report fetches; must not exceed the PostgREST max-rows setting (1000 on Supabase)
REPORT_PAGE_SIZE = 1000


async def _fetch_all_pages(
    fetch_page: Callable[..., Awaitable[List[Dict[str, Any]]]],
    supabase_client: Client,
    organization_id: str,
    **filters: Any,
) -> List[Dict[str, Any]]:
    """
    Collect every row of a paginated listing.

    PostgREST silently caps each response at max-rows, so reports read page
    after page until a short page comes back.
    """
    rows: List[Dict[str, Any]] = []
    offset = 0

    while True:
        page = await fetch_page(
            supabase_client,
            organization_id,
            limit=REPORT_PAGE_SIZE,
            offset=offset,
            **filters,
        )
        rows.extend(page)
        if len(page) < REPORT_PAGE_SIZE:
            return rows
        offset += REPORT_PAGE_SIZE


def _month_key(value: Any) -> str:
    """'2024-03-10' or '2024-03-10T12:00:00Z' -> '2024-03'."""
    return str(value)[:7]


def fiscal_year_months(fiscal_year: int, fiscal_year_start: int) -> List[tuple[int, int]]:
    """
    The 12 (year, month) pairs of a fiscal year.

    A fiscal year is named after the calendar year it starts in.

    >>> fiscal_year_months(2024, 4)[0], fiscal_year_months(2024, 4)[-1]
    ((2024, 4), (2025, 3))
    """
    months = []
    for offset in range(12):
        index = fiscal_year_start - 1 + offset
        months.append((fiscal_year + index // 12, index % 12 + 1))
    return months


def fiscal_year_bounds(fiscal_year: int, fiscal_year_start: int) -> tuple[date, date]:
    """First and last day of a fiscal year."""
    months = fiscal_year_months(fiscal_year, fiscal_year_start)
    first_year, first_month = months[0]
    last_year, last_month = months[-1]
    return (
        date(first_year, first_month, 1),
        date(last_year, last_month, calendar.monthrange(last_year, last_month)[1]),
    )


def summarize_dashboard(
    accounts: Iterable[Dict[str, Any]],
    transactions: Iterable[Dict[str, Any]],
    invoices: Iterable[Dict[str, Any]],
    budgets: Iterable[Dict[str, Any]],
    month: str,
    today: date,
) -> Dict[str, Any]:
    """
    Headline figures for the dashboard.

    Args:
        accounts: Account rows (balance)
        transactions: Transaction rows; only those in `month` and completed count
        invoices: Invoice rows
        budgets: Budget rows with health figures (see budget_service.with_health)
        month: 'YYYY-MM'
        today: Reference date for overdue invoices
    """
    total_balance = sum(float(a.get("balance") or 0.0) for a in accounts)

    income = 0.0
    expenses = 0.0
    for t in transactions:
        if t.get("status") != "completed" or _month_key(t.get("date")) != month:
            continue
        if t.get("type") == "income":
            income += float(t.get("amount") or 0.0)
        elif t.get("type") == "expense":
            expenses += float(t.get("amount") or 0.0)

    open_invoices = [i for i in invoices if i.get("status") in OPEN_INVOICE_STATUSES]
    overdue = [
        i for i in open_invoices
        if i.get("due_date") and date.fromisoformat(str(i["due_date"])[:10]) < today
    ]

    budgets = list(budgets)

    return {
        "month": month,
        "total_balance": round(total_balance, 2),
        "monthly_income": round(income, 2),
        "monthly_expenses": round(expenses, 2),
        "net_income": round(income - expenses, 2),
        "open_invoices": len(open_invoices),
        "open_invoices_amount": round(sum(float(i.get("amount") or 0.0) for i in open_invoices), 2),
        "overdue_invoices": len(overdue),
        "budgets_warning": sum(1 for b in budgets if b.get("status") == "warning"),
        "budgets_exceeded": sum(1 for b in budgets if b.get("status") == "exceeded"),
    }


def expenses_by_category(transactions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Total expense amount per category, largest first, with each category's share.
    """
    totals: Dict[str, float] = defaultdict(float)
    for t in transactions:
        if t.get("type") == "expense":
            totals[t.get("category") or "Uncategorized"] += float(t.get("amount") or 0.0)

    grand_total = sum(totals.values())

    breakdown = [
        {
            "category": category,
            "total": round(total, 2),
            "share": round(total / grand_total * 100, 2) if grand_total else 0.0,
        }
        for category, total in totals.items()
    ]
    breakdown.sort(key=lambda row: (-row["total"], row["category"]))
    return breakdown


def monthly_cash_flow(
    transactions: Iterable[Dict[str, Any]],
    fiscal_year: int,
    fiscal_year_start: int = 1,
) -> List[Dict[str, Any]]:
    """
    Income, expenses and net per month of a fiscal year (completed transactions only).

    Always returns 12 rows, in fiscal order, including empty months.
    """
    months = fiscal_year_months(fiscal_year, fiscal_year_start)
    buckets: Dict[str, Dict[str, float]] = {
        f"{y:04d}-{m:02d}": {"income": 0.0, "expenses": 0.0} for y, m in months
    }

    for t in transactions:
        if t.get("status") != "completed":
            continue
        bucket = buckets.get(_month_key(t.get("date")))
        if bucket is None:
            continue
        if t.get("type") == "income":
            bucket["income"] += float(t.get("amount") or 0.0)
        elif t.get("type") == "expense":
            bucket["expenses"] += float(t.get("amount") or 0.0)

    rows = []
    for (y, m), (key, bucket) in zip(months, buckets.items()):
        rows.append({
            "month": key,
            "label": f"{calendar.month_abbr[m]} {y}",
            "income": round(bucket["income"], 2),
            "expenses": round(bucket["expenses"], 2),
            "net": round(bucket["income"] - bucket["expenses"], 2),
        })
    return rows


async def get_dashboard_summary(
    supabase_client: Client,
    organization_id: str,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Dashboard figures for the current month of an organization."""
    today = today or date.today()
    month = today.strftime("%Y-%m")
    month_start = today.replace(day=1)
    month_end = today.replace(day=calendar.monthrange(today.year, today.month)[1])

    accounts = await get_organization_accounts(supabase_client, organization_id)
    transactions = await _fetch_all_pages(
        get_organization_transactions,
        supabase_client,
        organization_id,
        status="completed",
        from_date=month_start.isoformat(),
        to_date=month_end.isoformat(),
    )
    invoices = await _fetch_all_pages(get_organization_invoices, supabase_client, organization_id)
    budgets = await get_all_budgets(supabase_client, organization_id)

    logger.info(f"Building dashboard summary for organization {organization_id} ({month})")

    return summarize_dashboard(accounts, transactions, invoices, budgets, month, today)


async def get_expenses_by_category(
    supabase_client: Client,
    organization_id: str,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Expense breakdown for an organization over an optional date range."""
    transactions = await _fetch_all_pages(
        get_organization_transactions,
        supabase_client,
        organization_id,
        transaction_type="expense",
        from_date=from_date,
        to_date=to_date,
    )
    return expenses_by_category(transactions)


async def get_cash_flow(
    supabase_client: Client,
    organization_id: str,
    fiscal_year: int,
    fiscal_year_start: int,
) -> List[Dict[str, Any]]:
    """Monthly cash flow of one fiscal year of an organization."""
    start, end = fiscal_year_bounds(fiscal_year, fiscal_year_start)

    transactions = await _fetch_all_pages(
        get_organization_transactions,
        supabase_client,
        organization_id,
        status="completed",
        from_date=start.isoformat(),
        to_date=end.isoformat(),
    )

    logger.info(
        f"Building cash flow for organization {organization_id}: "
        f"fiscal year {fiscal_year} ({start} to {end})"
    )

    return monthly_cash_flow(transactions, fiscal_year, fiscal_year_start)
