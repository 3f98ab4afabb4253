"""
Organization member API endpoints.

Endpoints:
- GET /organizations/{organization_id}/members - List members
- POST /organizations/{organization_id}/members - Invite a registered user
- PATCH /organizations/{organization_id}/members/{member_id} - Change a member's role
- DELETE /organizations/{organization_id}/members/{member_id} - Remove a member (or leave)

Role rules:
- Owners and admins manage members
- Only owners grant, change or remove the owner role
- Any member may remove themselves
- The last owner can be neither demoted nor removed
"""

import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Path, status
from postgrest.exceptions import APIError

from ledgerbook.auth.permissions import (
    OrganizationContext,
    Permission,
    can_assign_role,
    require_permission,
)
from ledgerbook.db.client import get_supabase_client
from ledgerbook.schemas.members import (
    MemberInviteRequest,
    MemberInviteResponse,
    MemberListResponse,
    MemberRemoveResponse,
    MemberResponse,
    MemberRoleUpdateRequest,
    MemberRoleUpdateResponse,
)
from ledgerbook.services.member_service import (
    LastOwnerError,
    get_member_by_id,
    get_organization_members,
    invite_member,
    remove_member,
    update_member_role,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{organization_id}/members", tags=["members"])


def _build_member_response(member: Dict[str, Any]) -> MemberResponse:
    return MemberResponse(
        member_id=str(member.get("member_id")),
        user_id=str(member.get("user_id")),
        role=member.get("role", "viewer"),
        joined_at=str(member["joined_at"]) if member.get("joined_at") else None,
        full_name=member.get("full_name"),
        email=member.get("email"),
        avatar_url=member.get("avatar_url"),
        invited_by_name=member.get("invited_by_name"),
    )


def _forbidden(details: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"error": "forbidden", "details": details}
    )


def _member_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "not_found", "details": "Member not found"}
    )


@router.get(
    "",
    response_model=MemberListResponse,
    status_code=status.HTTP_200_OK,
    summary="List organization members",
)
async def list_members(
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))]
) -> MemberListResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        members = await get_organization_members(supabase_client, ctx.organization_id)
    except Exception as e:
        logger.error(f"Failed to fetch members: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to retrieve members"}
        )

    responses = [_build_member_response(m) for m in members]
    return MemberListResponse(members=responses, count=len(responses))


@router.post(
    "",
    response_model=MemberInviteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a member",
    description="""
    Add a registered user to the organization by email.

    Requires the owner or admin role; only owners can invite new owners.
    """
)
async def invite_organization_member(
    request: MemberInviteRequest,
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.MANAGE_MEMBERS))]
) -> MemberInviteResponse:
    if not can_assign_role(ctx.role, request.role):
        raise _forbidden(f"Role '{ctx.role}' cannot grant the '{request.role}' role")

    supabase_client = get_supabase_client(ctx.access_token)

    try:
        member_id = await invite_member(
            supabase_client=supabase_client,
            organization_id=ctx.organization_id,
            email=request.email,
            role=request.role,
        )
    except APIError as e:
        if e.code == "23505":  # unique_violation
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"error": "already_member", "details": "User is already a member of this organization"}
            )
        logger.warning(f"Invitation rejected for organization {ctx.organization_id}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invite_error", "details": e.message or "Invitation rejected"}
        )
    except Exception as e:
        logger.error(f"Failed to invite member: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "invite_error", "details": "Failed to invite member"}
        )

    return MemberInviteResponse(
        status="INVITED",
        member_id=member_id,
        message="Team member has been added"
    )


@router.patch(
    "/{member_id}",
    response_model=MemberRoleUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Change a member's role",
)
async def change_member_role(
    member_id: Annotated[str, Path(description="Member UUID")],
    request: MemberRoleUpdateRequest,
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.MANAGE_MEMBERS))]
) -> MemberRoleUpdateResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    member = await get_member_by_id(supabase_client, ctx.organization_id, member_id)
    if not member:
        raise _member_not_found()

    current_role = member.get("role", "viewer")
    if not (can_assign_role(ctx.role, current_role) and can_assign_role(ctx.role, request.role)):
        raise _forbidden(f"Role '{ctx.role}' cannot change a '{current_role}' into '{request.role}'")

    try:
        updated = await update_member_role(
            supabase_client=supabase_client,
            organization_id=ctx.organization_id,
            member_id=member_id,
            role=request.role,
        )
    except LastOwnerError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "last_owner", "details": str(e)}
        )
    except Exception as e:
        logger.error(f"Failed to update role of member {member_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "update_error", "details": "Failed to update role"}
        )

    if not updated:
        raise _member_not_found()

    return MemberRoleUpdateResponse(
        status="UPDATED",
        member_id=member_id,
        role=request.role,
        message="Member role has been changed"
    )


@router.delete(
    "/{member_id}",
    response_model=MemberRemoveResponse,
    status_code=status.HTTP_200_OK,
    summary="Remove a member",
    description="""
    Remove a member from the organization.

    Members can always remove themselves (leave). Removing someone else
    requires the owner or admin role, and only owners remove owners.
    """
)
async def remove_organization_member(
    member_id: Annotated[str, Path(description="Member UUID")],
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))]
) -> MemberRemoveResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    member = await get_member_by_id(supabase_client, ctx.organization_id, member_id)
    if not member:
        raise _member_not_found()

    is_self = str(member.get("user_id")) == ctx.user_id
    if not is_self and not can_assign_role(ctx.role, member.get("role", "viewer")):
        raise _forbidden(f"Role '{ctx.role}' cannot remove a '{member.get('role')}'")

    try:
        removed = await remove_member(supabase_client, ctx.organization_id, member_id)
    except LastOwnerError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "last_owner", "details": str(e)}
        )
    except Exception as e:
        logger.error(f"Failed to remove member {member_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "delete_error", "details": "Failed to remove member"}
        )

    if not removed:
        raise _member_not_found()

    return MemberRemoveResponse(
        status="REMOVED",
        member_id=member_id,
        message="Team member has been removed"
    )
