"""
Organization API endpoints.

Endpoints:
- GET /organizations - List organizations the caller belongs to
- POST /organizations - Create an organization (caller becomes owner)
- GET /organizations/{organization_id} - Get organization details
- PATCH /organizations/{organization_id} - Update organization settings
"""

import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status

from ledgerbook.auth.dependencies import AuthenticatedUser, get_authenticated_user
from ledgerbook.auth.permissions import OrganizationContext, Permission, require_permission
from ledgerbook.config import settings
from ledgerbook.db.client import get_supabase_client
from ledgerbook.schemas.organizations import (
    OrganizationCreateRequest,
    OrganizationCreateResponse,
    OrganizationListResponse,
    OrganizationResponse,
    OrganizationUpdateRequest,
    OrganizationUpdateResponse,
)
from ledgerbook.services.organization_service import (
    create_organization,
    get_organization,
    list_user_organizations,
    update_organization,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["organizations"])


def _build_organization_response(org: Dict[str, Any], role: str | None = None) -> OrganizationResponse:
    return OrganizationResponse(
        id=str(org.get("id")),
        name=org.get("name") or "",
        slug=org.get("slug"),
        currency=org.get("currency") or settings.DEFAULT_CURRENCY,
        timezone=org.get("timezone") or settings.DEFAULT_TIMEZONE,
        fiscal_year_start=int(org.get("fiscal_year_start") or 1),
        role=role or org.get("role"),
        created_at=str(org["created_at"]) if org.get("created_at") else None,
        updated_at=str(org["updated_at"]) if org.get("updated_at") else None,
    )


@router.get(
    "",
    response_model=OrganizationListResponse,
    status_code=status.HTTP_200_OK,
    summary="List my organizations",
    description="""
    Retrieve every organization the authenticated user is a member of,
    with the user's role in each.
    """
)
async def list_organizations(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> OrganizationListResponse:
    logger.info(f"Listing organizations for user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        organizations = await list_user_organizations(supabase_client, auth_user.user_id)
    except Exception as e:
        logger.error(f"Failed to fetch organizations: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to retrieve organizations"}
        )

    responses = [_build_organization_response(o) for o in organizations]
    return OrganizationListResponse(organizations=responses, count=len(responses))


@router.post(
    "",
    response_model=OrganizationCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an organization",
    description="""
    Create a new organization through the create_organization RPC.

    The authenticated user becomes the organization's owner.
    """
)
async def create_new_organization(
    request: OrganizationCreateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> OrganizationCreateResponse:
    logger.info(f"Creating organization for user {auth_user.user_id}")

    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        organization = await create_organization(
            supabase_client=supabase_client,
            user_id=auth_user.user_id,
            name=request.name,
            currency=(request.currency or settings.DEFAULT_CURRENCY).upper(),
            timezone=request.timezone or settings.DEFAULT_TIMEZONE,
            fiscal_year_start=request.fiscal_year_start,
        )
    except ValueError as e:
        logger.warning(f"Validation error creating organization: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "details": str(e)}
        )
    except Exception as e:
        logger.error(f"Failed to create organization: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "create_error", "details": "Failed to create organization"}
        )

    return OrganizationCreateResponse(
        status="CREATED",
        organization=_build_organization_response(organization, role="owner"),
        message="Organization created successfully"
    )


@router.get(
    "/{organization_id}",
    response_model=OrganizationResponse,
    status_code=status.HTTP_200_OK,
    summary="Get organization details",
)
async def get_organization_details(
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))]
) -> OrganizationResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        organization = await get_organization(supabase_client, ctx.organization_id)
    except Exception as e:
        logger.error(f"Failed to fetch organization {ctx.organization_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to retrieve organization"}
        )

    if not organization:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "details": "Organization not found"}
        )

    return _build_organization_response(organization, role=ctx.role)


@router.patch(
    "/{organization_id}",
    response_model=OrganizationUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Update organization settings",
    description="""
    Update name, currency, timezone or fiscal year start.

    Requires the owner or admin role.
    """
)
async def update_organization_settings(
    request: OrganizationUpdateRequest,
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.MANAGE_ORGANIZATION))]
) -> OrganizationUpdateResponse:
    updates = request.model_dump(exclude_none=True)

    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_request", "details": "At least one field must be provided for update"}
        )

    if "currency" in updates:
        updates["currency"] = updates["currency"].upper()

    supabase_client = get_supabase_client(ctx.access_token)

    try:
        organization = await update_organization(supabase_client, ctx.organization_id, **updates)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "details": str(e)}
        )
    except Exception as e:
        logger.error(f"Failed to update organization {ctx.organization_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "update_error", "details": "Failed to update organization"}
        )

    if not organization:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "details": "Organization not found"}
        )

    return OrganizationUpdateResponse(
        status="UPDATED",
        organization=_build_organization_response(organization, role=ctx.role),
        message="Organization updated successfully"
    )
