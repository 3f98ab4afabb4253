"""
Invoice API endpoints.

Endpoints:
- GET /organizations/{organization_id}/invoices - List invoices
- POST /organizations/{organization_id}/invoices - Create a draft invoice
- GET /organizations/{organization_id}/invoices/{invoice_id} - Get invoice
- PATCH /organizations/{organization_id}/invoices/{invoice_id} - Edit a draft
- POST /organizations/{organization_id}/invoices/{invoice_id}/submit - Send for approval
- POST /organizations/{organization_id}/invoices/{invoice_id}/approve - Approve (owner/admin)
- POST /organizations/{organization_id}/invoices/{invoice_id}/mark-paid - Record payment
- POST /organizations/{organization_id}/invoices/{invoice_id}/cancel - Cancel

Status changes that the current status doesn't allow return 409.
"""

import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from postgrest.exceptions import APIError

from ledgerbook.auth.permissions import OrganizationContext, Permission, require_permission
from ledgerbook.db.client import get_supabase_client
from ledgerbook.routes.transactions import _build_transaction_response
from ledgerbook.schemas.invoices import (
    InvoiceCreateRequest,
    InvoiceListResponse,
    InvoiceMutationResponse,
    InvoiceResponse,
    InvoiceStatus,
    InvoiceUpdateRequest,
)
from ledgerbook.services.invoice_service import (
    add_invoice,
    approve_invoice,
    cancel_invoice,
    get_invoice_by_id,
    get_organization_invoices,
    mark_invoice_paid,
    submit_invoice,
    update_invoice,
)
from ledgerbook.services.ledger_rules import InvalidTransitionError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{organization_id}/invoices", tags=["invoices"])


def _build_invoice_response(invoice: Dict[str, Any]) -> InvoiceResponse:
    return InvoiceResponse(
        id=str(invoice.get("id")),
        organization_id=str(invoice.get("organization_id")),
        invoice_number=invoice.get("invoice_number") or "",
        client=invoice.get("client") or "",
        amount=float(invoice.get("amount") or 0.0),
        date=str(invoice.get("date")),
        due_date=str(invoice.get("due_date")),
        status=invoice.get("status", "draft"),
        account_id=str(invoice["account_id"]) if invoice.get("account_id") else None,
        notes=invoice.get("notes"),
        created_at=str(invoice["created_at"]) if invoice.get("created_at") else None,
    )


def _invoice_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "not_found", "details": "Invoice not found"}
    )


def _invalid_transition(e: InvalidTransitionError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"error": "invalid_transition", "details": str(e)}
    )


@router.get(
    "",
    response_model=InvoiceListResponse,
    status_code=status.HTTP_200_OK,
    summary="List invoices",
)
async def list_invoices(
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))],
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status", description="Filter by lifecycle status"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> InvoiceListResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        invoices = await get_organization_invoices(
            supabase_client,
            ctx.organization_id,
            status=status_filter,
            limit=limit,
            offset=offset,
        )
    except Exception as e:
        logger.error(f"Failed to fetch invoices: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to retrieve invoices"}
        )

    responses = [_build_invoice_response(i) for i in invoices]
    return InvoiceListResponse(invoices=responses, count=len(responses))


@router.post(
    "",
    response_model=InvoiceMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an invoice",
    description="""
    Create a draft invoice with the organization's next invoice number.
    """
)
async def create_new_invoice(
    request: InvoiceCreateRequest,
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> InvoiceMutationResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        invoice = await add_invoice(
            supabase_client=supabase_client,
            organization_id=ctx.organization_id,
            client=request.client,
            amount=request.amount,
            date=request.date,
            due_date=request.due_date,
            account_id=request.account_id,
            notes=request.notes,
        )
    except ValueError as e:
        logger.warning(f"Validation error creating invoice: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "details": str(e)}
        )
    except APIError as e:
        if e.code == "23505":  # unique_violation
            logger.warning(f"Invoice number collision in organization {ctx.organization_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"error": "duplicate_invoice_number", "details": "Invoice number already in use, please retry"}
            )
        logger.error(f"Database error creating invoice: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "create_error", "details": "Failed to create invoice"}
        )
    except Exception as e:
        logger.error(f"Failed to create invoice: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "create_error", "details": "Failed to create invoice"}
        )

    return InvoiceMutationResponse(
        status="CREATED",
        invoice=_build_invoice_response(invoice),
        message=f"Invoice {invoice.get('invoice_number')} created"
    )


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    status_code=status.HTTP_200_OK,
    summary="Get invoice details",
)
async def get_invoice(
    invoice_id: Annotated[str, Path(description="Invoice UUID")],
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))]
) -> InvoiceResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        invoice = await get_invoice_by_id(supabase_client, ctx.organization_id, invoice_id)
    except Exception as e:
        logger.error(f"Failed to fetch invoice {invoice_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to retrieve invoice"}
        )

    if not invoice:
        raise _invoice_not_found()

    return _build_invoice_response(invoice)


@router.patch(
    "/{invoice_id}",
    response_model=InvoiceMutationResponse,
    status_code=status.HTTP_200_OK,
    summary="Edit a draft invoice",
)
async def update_existing_invoice(
    invoice_id: Annotated[str, Path(description="Invoice UUID")],
    request: InvoiceUpdateRequest,
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> InvoiceMutationResponse:
    updates = request.model_dump(exclude_none=True)

    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_request", "details": "At least one field must be provided for update"}
        )

    supabase_client = get_supabase_client(ctx.access_token)

    try:
        invoice = await update_invoice(supabase_client, ctx.organization_id, invoice_id, **updates)
    except InvalidTransitionError as e:
        raise _invalid_transition(e)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "details": str(e)}
        )
    except Exception as e:
        logger.error(f"Failed to update invoice {invoice_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "update_error", "details": "Failed to update invoice"}
        )

    if not invoice:
        raise _invoice_not_found()

    return InvoiceMutationResponse(
        status="UPDATED",
        invoice=_build_invoice_response(invoice),
        message="Invoice updated successfully"
    )


@router.post(
    "/{invoice_id}/submit",
    response_model=InvoiceMutationResponse,
    status_code=status.HTTP_200_OK,
    summary="Submit a draft for approval",
)
async def submit_for_approval(
    invoice_id: Annotated[str, Path(description="Invoice UUID")],
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> InvoiceMutationResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        invoice = await submit_invoice(supabase_client, ctx.organization_id, invoice_id)
    except InvalidTransitionError as e:
        raise _invalid_transition(e)
    except Exception as e:
        logger.error(f"Failed to submit invoice {invoice_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "update_error", "details": "Failed to submit invoice"}
        )

    if not invoice:
        raise _invoice_not_found()

    return InvoiceMutationResponse(
        status="UPDATED",
        invoice=_build_invoice_response(invoice),
        message="Invoice sent for approval"
    )


@router.post(
    "/{invoice_id}/approve",
    response_model=InvoiceMutationResponse,
    status_code=status.HTTP_200_OK,
    summary="Approve an invoice",
    description="""
    Approve an invoice awaiting approval. Requires the owner or admin role.

    A pending income transaction in the Sales category is created for the
    invoice amount and linked to the invoice.
    """
)
async def approve(
    invoice_id: Annotated[str, Path(description="Invoice UUID")],
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.APPROVE_INVOICES))]
) -> InvoiceMutationResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        result = await approve_invoice(supabase_client, ctx.organization_id, invoice_id)
    except InvalidTransitionError as e:
        raise _invalid_transition(e)
    except Exception as e:
        logger.error(f"Failed to approve invoice {invoice_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "update_error", "details": "Failed to approve invoice"}
        )

    if not result:
        raise _invoice_not_found()

    invoice, transaction = result

    return InvoiceMutationResponse(
        status="UPDATED",
        invoice=_build_invoice_response(invoice),
        transaction=_build_transaction_response(transaction),
        message="Invoice approved; pending income recorded"
    )


@router.post(
    "/{invoice_id}/mark-paid",
    response_model=InvoiceMutationResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark an invoice paid",
    description="""
    Record payment of an approved invoice. Its pending income transaction
    is completed, which moves the linked account's balance.
    """
)
async def mark_paid(
    invoice_id: Annotated[str, Path(description="Invoice UUID")],
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> InvoiceMutationResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        result = await mark_invoice_paid(supabase_client, ctx.organization_id, invoice_id)
    except InvalidTransitionError as e:
        raise _invalid_transition(e)
    except Exception as e:
        logger.error(f"Failed to mark invoice {invoice_id} paid: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "update_error", "details": "Failed to mark invoice paid"}
        )

    if not result:
        raise _invoice_not_found()

    invoice, transaction = result

    return InvoiceMutationResponse(
        status="UPDATED",
        invoice=_build_invoice_response(invoice),
        transaction=_build_transaction_response(transaction) if transaction else None,
        message="Invoice marked as paid"
    )


@router.post(
    "/{invoice_id}/cancel",
    response_model=InvoiceMutationResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel an invoice",
)
async def cancel(
    invoice_id: Annotated[str, Path(description="Invoice UUID")],
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> InvoiceMutationResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        invoice = await cancel_invoice(supabase_client, ctx.organization_id, invoice_id)
    except InvalidTransitionError as e:
        raise _invalid_transition(e)
    except Exception as e:
        logger.error(f"Failed to cancel invoice {invoice_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "update_error", "details": "Failed to cancel invoice"}
        )

    if not invoice:
        raise _invoice_not_found()

    return InvoiceMutationResponse(
        status="UPDATED",
        invoice=_build_invoice_response(invoice),
        message="Invoice cancelled"
    )
