"""
Budget persistence service.

CRITICAL RULES:
1. A budget caps spending on one category of an organization over a period
   (monthly or yearly)
2. `spent` is stored on the budget and moves with expense transactions of the
   same category (added on create, subtracted on delete)
3. Health figures (percent_used, remaining, status) are derived on read and
   never stored
4. Deleting a budget never touches transactions
"""

import logging
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from ledgerbook.services.ledger_rules import budget_health
from ledgerbook.utils.constants import DEFAULT_BUDGET_ALERT_THRESHOLD

logger = logging.getLogger(__name__)


def with_health(budget: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of `budget` with percent_used, remaining and status filled in."""
    threshold = budget.get("alert_threshold")
    if threshold is None:
        threshold = DEFAULT_BUDGET_ALERT_THRESHOLD

    return {
        **budget,
        **budget_health(
            spent=budget.get("spent") or 0.0,
            limit_amount=budget.get("limit_amount") or 0.0,
            alert_threshold=threshold,
        ),
    }


async def get_all_budgets(
    supabase_client: Client,
    organization_id: str,
    period: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch the organization's budgets with derived health figures.

    Args:
        supabase_client: Authenticated Supabase client
        organization_id: Organization UUID
        period: Optional filter (monthly|yearly)
    """
    logger.debug(f"Fetching budgets for organization {organization_id} (period={period})")

    query = (
        supabase_client.table("budgets")
        .select("*")
        .eq("organization_id", organization_id)
    )
    if period:
        query = query.eq("period", period)

    result = query.order("category").execute()

    budgets = [with_health(b) for b in cast(List[Dict[str, Any]], result.data or [])]

    logger.info(f"Fetched {len(budgets)} budgets for organization {organization_id}")

    return budgets


async def get_budget_by_id(
    supabase_client: Client,
    organization_id: str,
    budget_id: str,
) -> Optional[Dict[str, Any]]:
    """Fetch a single budget with health figures, or None if not found."""
    result = (
        supabase_client.table("budgets")
        .select("*")
        .eq("id", budget_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    if not result.data:
        logger.warning(f"Budget {budget_id} not found in organization {organization_id}")
        return None

    return with_health(cast(Dict[str, Any], result.data[0]))


async def create_budget(
    supabase_client: Client,
    organization_id: str,
    category: str,
    limit_amount: float,
    period: str,
    alert_threshold: int,
    color: str,
    spent: float = 0.0,
) -> Dict[str, Any]:
    """
    Create a budget.

    Raises:
        Exception: If the insert returns no row
    """
    budget_data = {
        "organization_id": organization_id,
        "category": category,
        "limit_amount": limit_amount,
        "period": period,
        "alert_threshold": alert_threshold,
        "color": color,
        "spent": spent,
    }

    logger.info(f"Creating {period} budget for category '{category}' in organization {organization_id}")

    result = supabase_client.table("budgets").insert(budget_data).execute()

    if not result.data:
        raise Exception("Failed to create budget: no data returned")

    created = cast(Dict[str, Any], result.data[0])
    logger.info(f"Budget created successfully: {created.get('id')}")

    return with_health(created)


async def update_budget(
    supabase_client: Client,
    organization_id: str,
    budget_id: str,
    **updates: Any,
) -> Optional[Dict[str, Any]]:
    """
    Update a budget.

    Returns:
        Updated budget with health figures, or None if not found
    """
    logger.info(f"Updating budget {budget_id}: {list(updates.keys())}")

    result = (
        supabase_client.table("budgets")
        .update(updates)
        .eq("id", budget_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    if not result.data:
        logger.warning(f"Budget {budget_id} not found for update")
        return None

    return with_health(cast(Dict[str, Any], result.data[0]))


async def delete_budget(
    supabase_client: Client,
    organization_id: str,
    budget_id: str,
) -> bool:
    """
    Delete a budget.

    Returns:
        True if deleted, False if not found
    """
    logger.info(f"Deleting budget {budget_id} from organization {organization_id}")

    result = (
        supabase_client.table("budgets")
        .delete()
        .eq("id", budget_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    return bool(result.data)


async def adjust_budgets_for_expense(
    supabase_client: Client,
    organization_id: str,
    category: str,
    amount: float,
) -> int:
    """
    Add `amount` (negative to reverse) to `spent` of every budget tracking `category`.

    The `adjust_budgets_for_expense` RPC matches budgets on the exact category
    name and applies spent = GREATEST(spent + amount, 0) in one UPDATE, so
    concurrent expense writes are all counted.

    This is a non-blocking follow-up of transaction writes: failures are
    logged, never raised, so the transaction write itself still succeeds.

    Returns:
        Number of budgets updated
    """
    try:
        result = supabase_client.rpc(
            "adjust_budgets_for_expense",
            {
                "p_organization_id": organization_id,
                "p_category": category,
                "p_amount": round(amount, 2),
            }
        ).execute()

        # RPC returns one (budget_id, spent) row per updated budget
        rows = result.data if isinstance(result.data, list) else []
        for row in rows:
            if isinstance(row, dict):
                logger.debug(f"Budget {row.get('budget_id')} spent updated to {row.get('spent')}")

        return len(rows)

    except Exception as e:
        logger.warning(f"Failed to update budgets for category '{category}': {e}")
        return 0
