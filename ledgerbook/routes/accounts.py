"""
Account API endpoints.

Endpoints:
- GET /organizations/{organization_id}/accounts - List accounts with total balance
- POST /organizations/{organization_id}/accounts - Create an account
- GET /organizations/{organization_id}/accounts/{account_id} - Get account
- PATCH /organizations/{organization_id}/accounts/{account_id} - Update account details
- DELETE /organizations/{organization_id}/accounts/{account_id} - Delete account
"""

import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Path, status

from ledgerbook.auth.permissions import OrganizationContext, Permission, require_permission
from ledgerbook.db.client import get_supabase_client
from ledgerbook.schemas.accounts import (
    AccountCreateRequest,
    AccountCreateResponse,
    AccountDeleteResponse,
    AccountListResponse,
    AccountResponse,
    AccountUpdateRequest,
    AccountUpdateResponse,
)
from ledgerbook.services.account_service import (
    create_account,
    delete_account,
    get_account_by_id,
    get_organization_accounts,
    update_account,
)
from ledgerbook.utils.constants import DEFAULT_ACCOUNT_COLOR, DEFAULT_ACCOUNT_ICON

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{organization_id}/accounts", tags=["accounts"])


def _build_account_response(account: Dict[str, Any]) -> AccountResponse:
    return AccountResponse(
        id=str(account.get("id")),
        organization_id=str(account.get("organization_id")),
        name=account.get("name") or "",
        type=account.get("type", "checking"),
        balance=float(account.get("balance") or 0.0),
        last_four=account.get("last_four"),
        icon_name=account.get("icon_name") or DEFAULT_ACCOUNT_ICON,
        color=account.get("color") or DEFAULT_ACCOUNT_COLOR,
        created_at=str(account["created_at"]) if account.get("created_at") else None,
        updated_at=str(account["updated_at"]) if account.get("updated_at") else None,
    )


def _account_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "not_found", "details": "Account not found"}
    )


@router.get(
    "",
    response_model=AccountListResponse,
    status_code=status.HTTP_200_OK,
    summary="List accounts",
)
async def list_accounts(
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))]
) -> AccountListResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        accounts = await get_organization_accounts(supabase_client, ctx.organization_id)
    except Exception as e:
        logger.error(f"Failed to fetch accounts: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to retrieve accounts"}
        )

    responses = [_build_account_response(a) for a in accounts]

    return AccountListResponse(
        accounts=responses,
        count=len(responses),
        total_balance=round(sum(a.balance for a in responses), 2),
    )


@router.post(
    "",
    response_model=AccountCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def create_new_account(
    request: AccountCreateRequest,
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> AccountCreateResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        account = await create_account(
            supabase_client=supabase_client,
            organization_id=ctx.organization_id,
            name=request.name,
            account_type=request.type,
            balance=request.balance,
            last_four=request.last_four,
            icon_name=request.icon_name,
            color=request.color,
        )
    except Exception as e:
        logger.error(f"Failed to create account: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "create_error", "details": "Failed to create account"}
        )

    return AccountCreateResponse(
        status="CREATED",
        account=_build_account_response(account),
        message="Account created successfully"
    )


@router.get(
    "/{account_id}",
    response_model=AccountResponse,
    status_code=status.HTTP_200_OK,
    summary="Get account details",
)
async def get_account(
    account_id: Annotated[str, Path(description="Account UUID")],
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))]
) -> AccountResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        account = await get_account_by_id(supabase_client, ctx.organization_id, account_id)
    except Exception as e:
        logger.error(f"Failed to fetch account {account_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to retrieve account"}
        )

    if not account:
        raise _account_not_found()

    return _build_account_response(account)


@router.patch(
    "/{account_id}",
    response_model=AccountUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Update account details",
    description="""
    Update name, type, last four digits, icon or color.

    The balance cannot be edited directly; it follows completed transactions.
    """
)
async def update_existing_account(
    account_id: Annotated[str, Path(description="Account UUID")],
    request: AccountUpdateRequest,
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> AccountUpdateResponse:
    updates = request.model_dump(exclude_none=True)

    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_request", "details": "At least one field must be provided for update"}
        )

    supabase_client = get_supabase_client(ctx.access_token)

    try:
        account = await update_account(supabase_client, ctx.organization_id, account_id, **updates)
    except Exception as e:
        logger.error(f"Failed to update account {account_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "update_error", "details": "Failed to update account"}
        )

    if not account:
        raise _account_not_found()

    return AccountUpdateResponse(
        status="UPDATED",
        account=_build_account_response(account),
        message="Account updated successfully"
    )


@router.delete(
    "/{account_id}",
    response_model=AccountDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete an account",
    description="""
    Delete an account. Its transactions are kept with the account reference cleared.
    """
)
async def delete_existing_account(
    account_id: Annotated[str, Path(description="Account UUID")],
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]
) -> AccountDeleteResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        deleted = await delete_account(supabase_client, ctx.organization_id, account_id)
    except Exception as e:
        logger.error(f"Failed to delete account {account_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "delete_error", "details": "Failed to delete account"}
        )

    if not deleted:
        raise _account_not_found()

    return AccountDeleteResponse(
        status="DELETED",
        account_id=account_id,
        message="Account deleted successfully"
    )
