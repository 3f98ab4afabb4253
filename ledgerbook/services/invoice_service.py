"""
Invoice persistence service.

CRITICAL RULES:
1. New invoices always start as 'draft' with the next INV-NNN number of the organization
   (unique per organization; a number taken concurrently is re-allocated)
2. Status changes follow ledger_rules.INVOICE_TRANSITIONS:
   draft -> pending_approval -> approved -> paid, and any open status -> cancelled
3. Approving creates a pending income transaction linked by invoice_id
4. Marking paid completes that transaction (which settles the invoice);
   invoices without a linked transaction are marked paid directly
5. Cancelling removes a linked transaction that is still pending
6. Only drafts may be edited
"""

import logging
from datetime import date as date_type
from typing import Any, Dict, List, Optional, cast

from postgrest.exceptions import APIError
from supabase import Client

from ledgerbook.services.ledger_rules import (
    InvalidTransitionError,
    build_invoice_income_transaction,
    ensure_invoice_transition,
    next_invoice_number,
)
from ledgerbook.services.transaction_service import (
    add_transaction,
    delete_transaction,
    get_transaction_for_invoice,
    set_transaction_status,
)
from ledgerbook.utils.constants import INVOICE_NUMBER_ATTEMPTS

logger = logging.getLogger(__name__)


async def get_organization_invoices(
    supabase_client: Client,
    organization_id: str,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    """Fetch invoices of an organization, newest first, optionally by status."""
    logger.debug(f"Fetching invoices for organization {organization_id} (status={status})")

    query = (
        supabase_client.table("invoices")
        .select("*")
        .eq("organization_id", organization_id)
    )
    if status:
        query = query.eq("status", status)

    result = (
        query.order("date", desc=True)
        .order("invoice_number", desc=True)
        .range(offset, offset + limit - 1)
        .execute()
    )

    invoices = cast(List[Dict[str, Any]], result.data or [])

    logger.info(f"Fetched {len(invoices)} invoices for organization {organization_id}")

    return invoices


async def get_invoice_by_id(
    supabase_client: Client,
    organization_id: str,
    invoice_id: str,
) -> Optional[Dict[str, Any]]:
    """Fetch a single invoice, or None if not found."""
    result = (
        supabase_client.table("invoices")
        .select("*")
        .eq("id", invoice_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    if not result.data:
        logger.warning(f"Invoice {invoice_id} not found in organization {organization_id}")
        return None

    return cast(Dict[str, Any], result.data[0])


async def _allocate_invoice_number(supabase_client: Client, organization_id: str) -> str:
    result = (
        supabase_client.table("invoices")
        .select("invoice_number")
        .eq("organization_id", organization_id)
        .execute()
    )
    numbers = [row.get("invoice_number") for row in cast(List[Dict[str, Any]], result.data or [])]
    return next_invoice_number(numbers)


async def add_invoice(
    supabase_client: Client,
    organization_id: str,
    client: str,
    amount: float,
    date: str,
    due_date: str,
    account_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a draft invoice.

    Raises:
        ValueError: If due_date is before date or amount is not positive
        Exception: If the insert returns no row
        APIError: If the insert fails, including a duplicate number (23505)
            still colliding after INVOICE_NUMBER_ATTEMPTS tries
    """
    if amount <= 0:
        raise ValueError("Invoice amount must be greater than zero")
    if date_type.fromisoformat(due_date[:10]) < date_type.fromisoformat(date[:10]):
        raise ValueError("due_date cannot be earlier than the invoice date")

    logger.info(f"Creating invoice for {client} in organization {organization_id}")

    for attempt in range(1, INVOICE_NUMBER_ATTEMPTS + 1):
        invoice_number = await _allocate_invoice_number(supabase_client, organization_id)

        invoice_data = {
            "organization_id": organization_id,
            "invoice_number": invoice_number,
            "client": client,
            "amount": amount,
            "date": date,
            "due_date": due_date,
            "status": "draft",
            "account_id": account_id,
            "notes": notes,
        }

        try:
            result = supabase_client.table("invoices").insert(invoice_data).execute()
            break
        except APIError as e:
            # 23505: unique (organization_id, invoice_number) violated
            if e.code != "23505" or attempt == INVOICE_NUMBER_ATTEMPTS:
                raise
            logger.warning(f"Invoice number {invoice_number} already taken, retrying ({attempt})")

    if not result.data:
        raise Exception("Failed to create invoice: no data returned")

    created = cast(Dict[str, Any], result.data[0])
    logger.info(f"Invoice created successfully: id={created.get('id')}, number={invoice_number}")

    return created


async def update_invoice(
    supabase_client: Client,
    organization_id: str,
    invoice_id: str,
    **updates: Any,
) -> Optional[Dict[str, Any]]:
    """
    Edit a draft invoice.

    Returns:
        Updated invoice, or None if not found

    Raises:
        InvalidTransitionError: If the invoice is no longer a draft
        ValueError: If the resulting due_date is before the date
    """
    invoice = await get_invoice_by_id(supabase_client, organization_id, invoice_id)
    if not invoice:
        return None

    if invoice.get("status") != "draft":
        raise InvalidTransitionError("invoice", invoice.get("status", ""), "draft")

    merged = {**invoice, **updates}
    if date_type.fromisoformat(str(merged["due_date"])[:10]) < date_type.fromisoformat(str(merged["date"])[:10]):
        raise ValueError("due_date cannot be earlier than the invoice date")

    logger.info(f"Updating invoice {invoice_id}: {list(updates.keys())}")

    result = (
        supabase_client.table("invoices")
        .update(updates)
        .eq("id", invoice_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    if not result.data:
        return None

    return cast(Dict[str, Any], result.data[0])


async def _set_invoice_status(
    supabase_client: Client,
    organization_id: str,
    invoice: Dict[str, Any],
    target: str,
) -> Dict[str, Any]:
    ensure_invoice_transition(invoice.get("status", ""), target)

    result = (
        supabase_client.table("invoices")
        .update({"status": target})
        .eq("id", invoice["id"])
        .eq("organization_id", organization_id)
        .execute()
    )

    if not result.data:
        raise Exception(f"Failed to update status of invoice {invoice['id']}")

    logger.info(f"Invoice {invoice['id']} status changed: {invoice.get('status')} -> {target}")

    return cast(Dict[str, Any], result.data[0])


async def submit_invoice(
    supabase_client: Client,
    organization_id: str,
    invoice_id: str,
) -> Optional[Dict[str, Any]]:
    """Send a draft for approval. Returns None if the invoice doesn't exist."""
    invoice = await get_invoice_by_id(supabase_client, organization_id, invoice_id)
    if not invoice:
        return None

    return await _set_invoice_status(supabase_client, organization_id, invoice, "pending_approval")


async def approve_invoice(
    supabase_client: Client,
    organization_id: str,
    invoice_id: str,
    on_date: Optional[date_type] = None,
) -> Optional[tuple[Dict[str, Any], Dict[str, Any]]]:
    """
    Approve an invoice and record the income it is expected to bring in.

    Returns:
        Tuple of (approved invoice, created pending transaction), or None if
        the invoice doesn't exist

    Raises:
        InvalidTransitionError: If the invoice can't be approved from its current status
    """
    invoice = await get_invoice_by_id(supabase_client, organization_id, invoice_id)
    if not invoice:
        return None

    approved = await _set_invoice_status(supabase_client, organization_id, invoice, "approved")

    pending = build_invoice_income_transaction(invoice, on_date)
    try:
        transaction = await add_transaction(
            supabase_client=supabase_client,
            organization_id=organization_id,
            payee=pending["payee"],
            date=pending["date"],
            amount=pending["amount"],
            transaction_type=pending["type"],
            category=pending["category"],
            status=pending["status"],
            account_id=pending["account_id"],
            invoice_id=pending["invoice_id"],
        )
    except Exception as e:
        # An approved invoice must always have its income transaction
        logger.error(f"Income transaction for invoice {invoice_id} failed, reverting approval: {e}")
        (
            supabase_client.table("invoices")
            .update({"status": invoice.get("status")})
            .eq("id", invoice_id)
            .eq("organization_id", organization_id)
            .execute()
        )
        raise

    logger.info(f"Invoice {invoice_id} approved; pending transaction {transaction.get('id')} created")

    return approved, transaction


async def mark_invoice_paid(
    supabase_client: Client,
    organization_id: str,
    invoice_id: str,
) -> Optional[tuple[Dict[str, Any], Optional[Dict[str, Any]]]]:
    """
    Record payment of an approved invoice.

    Returns:
        Tuple of (paid invoice, completed transaction or None), or None if the
        invoice doesn't exist

    Raises:
        InvalidTransitionError: If the invoice isn't approved
    """
    invoice = await get_invoice_by_id(supabase_client, organization_id, invoice_id)
    if not invoice:
        return None

    ensure_invoice_transition(invoice.get("status", ""), "paid")

    transaction = await get_transaction_for_invoice(supabase_client, organization_id, invoice_id)

    if transaction and transaction.get("status") == "pending":
        # Completing the transaction settles the invoice as well
        completed = await set_transaction_status(
            supabase_client, organization_id, transaction, "completed"
        )
        paid = await get_invoice_by_id(supabase_client, organization_id, invoice_id)
        return paid or {**invoice, "status": "paid"}, completed

    paid = await _set_invoice_status(supabase_client, organization_id, invoice, "paid")
    return paid, transaction


async def cancel_invoice(
    supabase_client: Client,
    organization_id: str,
    invoice_id: str,
) -> Optional[Dict[str, Any]]:
    """
    Cancel an open invoice, dropping its pending transaction if one exists.

    Returns:
        Cancelled invoice, or None if not found
    """
    invoice = await get_invoice_by_id(supabase_client, organization_id, invoice_id)
    if not invoice:
        return None

    cancelled = await _set_invoice_status(supabase_client, organization_id, invoice, "cancelled")

    transaction = await get_transaction_for_invoice(supabase_client, organization_id, invoice_id)
    if transaction and transaction.get("status") == "pending":
        await delete_transaction(supabase_client, organization_id, transaction["id"])
        logger.info(f"Removed pending transaction {transaction['id']} of cancelled invoice {invoice_id}")

    return cancelled
