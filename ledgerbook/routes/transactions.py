"""
Transaction API endpoints.

Endpoints:
- GET /organizations/{organization_id}/transactions - List transactions with filters
- POST /organizations/{organization_id}/transactions - Record a transaction
- DELETE /organizations/{organization_id}/transactions/{transaction_id} - Delete a transaction
- POST /organizations/{organization_id}/transactions/{transaction_id}/toggle-status
  - Flip between pending and completed
"""

import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from ledgerbook.auth.permissions import OrganizationContext, Permission, require_permission
from ledgerbook.db.client import get_supabase_client
from ledgerbook.schemas.transactions import (
    TransactionCreateRequest,
    TransactionCreateResponse,
    TransactionDeleteResponse,
    TransactionListResponse,
    TransactionResponse,
    TransactionStatus,
    TransactionStatusResponse,
    TransactionType,
)
from ledgerbook.services.ledger_rules import InvalidTransitionError
from ledgerbook.services.transaction_service import (
    add_transaction,
    delete_transaction,
    get_organization_transactions,
    toggle_transaction_status,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{organization_id}/transactions", tags=["transactions"])


def _build_transaction_response(txn: Dict[str, Any]) -> TransactionResponse:
    return TransactionResponse(
        id=str(txn.get("id")),
        organization_id=str(txn.get("organization_id")),
        account_id=str(txn["account_id"]) if txn.get("account_id") else None,
        payee=txn.get("payee") or "",
        date=str(txn.get("date")),
        amount=float(txn.get("amount") or 0.0),
        type=txn.get("type", "expense"),
        category=txn.get("category") or "",
        status=txn.get("status", "completed"),
        invoice_id=str(txn["invoice_id"]) if txn.get("invoice_id") else None,
        notes=txn.get("notes"),
        created_at=str(txn["created_at"]) if txn.get("created_at") else None,
    )


@router.get(
    "",
    response_model=TransactionListResponse,
    status_code=status.HTTP_200_OK,
    summary="List transactions",
    description="""
    Retrieve the organization's transactions, newest first.

    Supports filtering by type, status, category, account and date range,
    with limit/offset pagination.
    """
)
async def list_transactions(
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))],
    limit: int = Query(50, ge=1, le=500, description="Maximum number of transactions"),
    offset: int = Query(0, ge=0, description="Number of transactions to skip"),
    type: Optional[TransactionType] = Query(None, description="income|expense"),
    status_filter: Optional[TransactionStatus] = Query(None, alias="status", description="completed|pending"),
    category: Optional[str] = Query(None, description="Category name"),
    account_id: Optional[str] = Query(None, description="Account UUID"),
    from_date: Optional[str] = Query(None, description="Inclusive start date (YYYY-MM-DD)"),
    to_date: Optional[str] = Query(None, description="Inclusive end date (YYYY-MM-DD)"),
) -> TransactionListResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        transactions = await get_organization_transactions(
            supabase_client=supabase_client,
            organization_id=ctx.organization_id,
            limit=limit,
            offset=offset,
            transaction_type=type,
            status=status_filter,
            category=category,
            account_id=account_id,
            from_date=from_date,
            to_date=to_date,
        )
    except Exception as e:
        logger.error(f"Failed to fetch transactions: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to retrieve transactions"}
        )

    responses = [_build_transaction_response(t) for t in transactions]

    return TransactionListResponse(
        transactions=responses,
        count=len(responses),
        limit=limit,
        offset=offset,
    )


@router.post(
    "",
    response_model=TransactionCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a transaction",
    description="""
    Record an income or expense.

    Expenses count toward budgets of the same category. Completed
    transactions with an account move that account's balance.
    """
)
async def create_new_transaction(
    request: TransactionCreateRequest,
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> TransactionCreateResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        transaction = await add_transaction(
            supabase_client=supabase_client,
            organization_id=ctx.organization_id,
            payee=request.payee,
            date=request.date,
            amount=request.amount,
            transaction_type=request.type,
            category=request.category,
            status=request.status,
            account_id=request.account_id,
            notes=request.notes,
        )
    except ValueError as e:
        logger.warning(f"Validation error creating transaction: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "details": str(e)}
        )
    except Exception as e:
        logger.error(f"Failed to create transaction: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "create_error", "details": "Failed to create transaction"}
        )

    return TransactionCreateResponse(
        status="CREATED",
        transaction=_build_transaction_response(transaction),
        message="Transaction recorded successfully"
    )


@router.delete(
    "/{transaction_id}",
    response_model=TransactionDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete a transaction",
    description="""
    Delete a transaction and reverse its budget and balance effects.
    """
)
async def delete_existing_transaction(
    transaction_id: Annotated[str, Path(description="Transaction UUID")],
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> TransactionDeleteResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        deleted = await delete_transaction(supabase_client, ctx.organization_id, transaction_id)
    except Exception as e:
        logger.error(f"Failed to delete transaction {transaction_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "delete_error", "details": "Failed to delete transaction"}
        )

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "details": "Transaction not found"}
        )

    return TransactionDeleteResponse(
        status="DELETED",
        transaction_id=transaction_id,
        message="Transaction deleted successfully"
    )


@router.post(
    "/{transaction_id}/toggle-status",
    response_model=TransactionStatusResponse,
    status_code=status.HTTP_200_OK,
    summary="Toggle transaction status",
    description="""
    Flip a transaction between pending and completed.

    Completing a transaction generated from an approved invoice marks that
    invoice as paid.
    """
)
async def toggle_status(
    transaction_id: Annotated[str, Path(description="Transaction UUID")],
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> TransactionStatusResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        transaction = await toggle_transaction_status(supabase_client, ctx.organization_id, transaction_id)
    except InvalidTransitionError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "invalid_transition", "details": str(e)}
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "details": str(e)}
        )
    except Exception as e:
        logger.error(f"Failed to toggle transaction {transaction_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "update_error", "details": "Failed to update transaction status"}
        )

    if not transaction:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "details": "Transaction not found"}
        )

    return TransactionStatusResponse(
        status="UPDATED",
        transaction=_build_transaction_response(transaction),
        message=f"Transaction marked {transaction.get('status')}"
    )
