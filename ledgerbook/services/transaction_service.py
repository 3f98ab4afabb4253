"""
Transaction persistence service.

CRITICAL RULES:
1. All operations are scoped to one organization; RLS enforces membership
2. Expense transactions raise `spent` on budgets of the same category when
   created and lower it again when deleted
3. Completed transactions with an account move that account's balance;
   status changes apply or reverse the effect
4. Completing a transaction linked to an invoice marks the invoice paid
5. Budget and balance follow-ups are non-blocking: failures are logged and
   the transaction write still succeeds
"""

import logging
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from ledgerbook.services.account_service import adjust_account_balance
from ledgerbook.services.budget_service import adjust_budgets_for_expense
from ledgerbook.services.ledger_rules import (
    TRANSACTION_STATUSES,
    TRANSACTION_TYPES,
    InvalidTransitionError,
    settled_balance_effect,
    toggled_status,
)

logger = logging.getLogger(__name__)


async def _apply_balance_effect(
    supabase_client: Client,
    organization_id: str,
    account_id: Optional[str],
    delta: float,
) -> None:
    """Move an account balance; logs instead of raising."""
    if not account_id or delta == 0:
        return
    try:
        await adjust_account_balance(supabase_client, organization_id, account_id, delta)
    except Exception as e:
        logger.warning(f"Failed to adjust balance of account {account_id}: {e}")


async def _settle_linked_invoice(
    supabase_client: Client,
    organization_id: str,
    invoice_id: str,
) -> None:
    """Mark the invoice behind a completed transaction as paid."""
    result = (
        supabase_client.table("invoices")
        .update({"status": "paid"})
        .eq("id", invoice_id)
        .eq("organization_id", organization_id)
        .eq("status", "approved")
        .execute()
    )
    if result.data:
        logger.info(f"Invoice {invoice_id} marked paid after its transaction completed")
    else:
        logger.debug(f"Invoice {invoice_id} was not awaiting payment; status left unchanged")


async def get_organization_transactions(
    supabase_client: Client,
    organization_id: str,
    limit: int = 50,
    offset: int = 0,
    transaction_type: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    account_id: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch transactions of an organization, newest first.

    Args:
        supabase_client: Authenticated Supabase client
        organization_id: Organization UUID
        limit: Maximum number of transactions to return
        offset: Number of transactions to skip (for pagination)
        transaction_type: Optional filter (income|expense)
        status: Optional filter (completed|pending)
        category: Optional filter by category name
        account_id: Optional filter by account
        from_date: Optional inclusive start date (ISO-8601)
        to_date: Optional inclusive end date (ISO-8601)
    """
    logger.debug(
        f"Fetching transactions for organization {organization_id} "
        f"(limit={limit}, offset={offset}, type={transaction_type}, status={status})"
    )

    query = (
        supabase_client.table("transactions")
        .select("*")
        .eq("organization_id", organization_id)
    )

    if transaction_type:
        query = query.eq("type", transaction_type)
    if status:
        query = query.eq("status", status)
    if category:
        query = query.eq("category", category)
    if account_id:
        query = query.eq("account_id", account_id)
    if from_date:
        query = query.gte("date", from_date)
    if to_date:
        query = query.lte("date", to_date)

    result = (
        query.order("date", desc=True)
        .order("created_at", desc=True)
        .range(offset, offset + limit - 1)
        .execute()
    )

    transactions = cast(List[Dict[str, Any]], result.data or [])

    logger.info(f"Fetched {len(transactions)} transactions for organization {organization_id}")

    return transactions


async def get_transaction_by_id(
    supabase_client: Client,
    organization_id: str,
    transaction_id: str,
) -> Optional[Dict[str, Any]]:
    """Fetch a single transaction, or None if not found."""
    result = (
        supabase_client.table("transactions")
        .select("*")
        .eq("id", transaction_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    if not result.data:
        logger.warning(f"Transaction {transaction_id} not found in organization {organization_id}")
        return None

    return cast(Dict[str, Any], result.data[0])


async def get_transaction_for_invoice(
    supabase_client: Client,
    organization_id: str,
    invoice_id: str,
) -> Optional[Dict[str, Any]]:
    """Fetch the transaction created when the invoice was approved, if any."""
    result = (
        supabase_client.table("transactions")
        .select("*")
        .eq("organization_id", organization_id)
        .eq("invoice_id", invoice_id)
        .limit(1)
        .execute()
    )

    if not result.data:
        return None

    return cast(Dict[str, Any], result.data[0])


async def add_transaction(
    supabase_client: Client,
    organization_id: str,
    payee: str,
    date: str,
    amount: float,
    transaction_type: str,
    category: str,
    status: str = "completed",
    account_id: Optional[str] = None,
    invoice_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Record a transaction and apply its ledger effects.

    This function:
    1. Inserts the transaction
    2. Adds the amount to matching budgets if it is an expense
    3. Moves the account balance if it is completed and has an account

    Raises:
        ValueError: If type or status is invalid, or amount is not positive
        Exception: If the insert returns no row
    """
    if transaction_type not in TRANSACTION_TYPES:
        raise ValueError(f"Invalid type: {transaction_type}. Must be 'income' or 'expense'")
    if status not in TRANSACTION_STATUSES:
        raise ValueError(f"Invalid status: {status}. Must be 'completed' or 'pending'")
    if amount <= 0:
        raise ValueError("Transaction amount must be greater than zero")

    transaction_data = {
        "organization_id": organization_id,
        "payee": payee,
        "date": date,
        "amount": amount,
        "type": transaction_type,
        "category": category,
        "status": status,
        "account_id": account_id,
        "invoice_id": invoice_id,
        "notes": notes,
    }

    logger.info(
        f"Creating {status} {transaction_type} transaction in organization {organization_id}: "
        f"amount={amount}, category='{category}'"
    )

    result = supabase_client.table("transactions").insert(transaction_data).execute()

    if not result.data:
        raise Exception("Failed to create transaction: no data returned")

    created = cast(Dict[str, Any], result.data[0])

    logger.info(f"Transaction created successfully: id={created.get('id')}")

    if transaction_type == "expense":
        await adjust_budgets_for_expense(supabase_client, organization_id, category, amount)

    await _apply_balance_effect(
        supabase_client,
        organization_id,
        account_id,
        settled_balance_effect(transaction_data),
    )

    return created


async def delete_transaction(
    supabase_client: Client,
    organization_id: str,
    transaction_id: str,
) -> bool:
    """
    Delete a transaction and reverse its ledger effects.

    Returns:
        True if deleted, False if not found
    """
    existing = await get_transaction_by_id(supabase_client, organization_id, transaction_id)
    if not existing:
        return False

    logger.info(f"Deleting transaction {transaction_id} from organization {organization_id}")

    result = (
        supabase_client.table("transactions")
        .delete()
        .eq("id", transaction_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    if not result.data:
        return False

    if existing.get("type") == "expense":
        await adjust_budgets_for_expense(
            supabase_client,
            organization_id,
            existing.get("category", ""),
            -float(existing.get("amount") or 0.0),
        )

    await _apply_balance_effect(
        supabase_client,
        organization_id,
        existing.get("account_id"),
        -settled_balance_effect(existing),
    )

    return True


async def set_transaction_status(
    supabase_client: Client,
    organization_id: str,
    transaction: Dict[str, Any],
    new_status: str,
) -> Dict[str, Any]:
    """
    Move an already-fetched transaction to `new_status`.

    Applies the balance difference and, when the transaction completes and
    is linked to an invoice, marks that invoice paid.

    Raises:
        InvalidTransitionError: If the transaction already has `new_status`
    """
    current = transaction.get("status", "pending")
    if new_status not in TRANSACTION_STATUSES or new_status == current:
        raise InvalidTransitionError("transaction", current, new_status)

    transaction_id = transaction["id"]

    result = (
        supabase_client.table("transactions")
        .update({"status": new_status})
        .eq("id", transaction_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    if not result.data:
        raise Exception(f"Failed to update status of transaction {transaction_id}")

    updated = cast(Dict[str, Any], result.data[0])

    logger.info(f"Transaction {transaction_id} status changed: {current} -> {new_status}")

    delta = settled_balance_effect({**transaction, "status": new_status}) - settled_balance_effect(transaction)
    await _apply_balance_effect(supabase_client, organization_id, transaction.get("account_id"), delta)

    invoice_id = transaction.get("invoice_id")
    if invoice_id and new_status == "completed":
        await _settle_linked_invoice(supabase_client, organization_id, invoice_id)

    return updated


async def toggle_transaction_status(
    supabase_client: Client,
    organization_id: str,
    transaction_id: str,
) -> Optional[Dict[str, Any]]:
    """
    Flip a transaction between pending and completed.

    Returns:
        Updated transaction, or None if not found
    """
    existing = await get_transaction_by_id(supabase_client, organization_id, transaction_id)
    if not existing:
        return None

    return await set_transaction_status(
        supabase_client,
        organization_id,
        existing,
        toggled_status(existing.get("status", "pending")),
    )
