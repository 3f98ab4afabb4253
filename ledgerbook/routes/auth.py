"""
Auth API endpoints.

- GET /auth/me - Get authenticated user identity and organization memberships

All endpoints require valid Bearer token authentication.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from ledgerbook.auth.dependencies import AuthenticatedUser, get_authenticated_user
from ledgerbook.db.client import get_supabase_client
from ledgerbook.schemas.auth import AuthMeResponse, MembershipSummary
from ledgerbook.services.organization_service import list_user_organizations

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get(
    "/me",
    response_model=AuthMeResponse,
    status_code=status.HTTP_200_OK,
    summary="Get authenticated user identity",
    description="""
    Get the authenticated user's identity for session hydration.

    This endpoint:
    - Validates the bearer token
    - Returns user_id and email from JWT claims
    - Lists the organizations the user belongs to, with their role

    A new user has no memberships until they create or join an organization.
    """
)
async def get_auth_me(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> AuthMeResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        organizations = await list_user_organizations(supabase_client, auth_user.user_id)
    except Exception as e:
        logger.error(f"Error in get_auth_me for user_id={auth_user.user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "auth_me_failed", "details": "Failed to load memberships"}
        )

    memberships = [
        MembershipSummary(
            organization_id=str(org.get("id")),
            name=org.get("name") or "",
            slug=org.get("slug"),
            role=org.get("role", "viewer"),
        )
        for org in organizations
    ]

    return AuthMeResponse(
        user_id=auth_user.user_id,
        email=auth_user.email,
        organizations=memberships,
    )
