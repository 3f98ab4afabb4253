"""
Organization membership service.

RULES:
1. Every organization keeps at least one owner
2. Only owners grant or revoke the owner role (checked in the route layer
   via permissions.can_assign_role)
3. Invitations go through the invite_organization_member RPC, which resolves
   the email to a user and records who invited them
4. RLS restricts organization_members to rows of organizations the caller belongs to
"""

import logging
from typing import Any, Dict, List, Optional, cast

from supabase import Client

logger = logging.getLogger(__name__)


class LastOwnerError(ValueError):
    """Raised when a change would leave an organization without an owner."""


async def get_member_role(
    supabase_client: Client,
    organization_id: str,
    user_id: str,
) -> Optional[str]:
    """
    Return the user's role in the organization, or None if they are not a member.
    """
    result = (
        supabase_client.table("organization_members")
        .select("role")
        .eq("organization_id", organization_id)
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    )

    if not result.data:
        return None

    row = cast(Dict[str, Any], result.data[0])
    return row.get("role")


async def get_organization_members(
    supabase_client: Client,
    organization_id: str,
) -> List[Dict[str, Any]]:
    """
    Fetch members with profile details via the get_organization_members RPC.

    Each row carries member_id, user_id, role, joined_at, full_name, email,
    avatar_url and invited_by_name.
    """
    logger.debug(f"Fetching members for organization {organization_id}")

    result = supabase_client.rpc(
        "get_organization_members",
        {"p_organization_id": organization_id}
    ).execute()

    members = cast(List[Dict[str, Any]], result.data or [])

    logger.info(f"Fetched {len(members)} members for organization {organization_id}")

    return members


async def get_member_by_id(
    supabase_client: Client,
    organization_id: str,
    member_id: str,
) -> Optional[Dict[str, Any]]:
    """Fetch a raw organization_members row."""
    result = (
        supabase_client.table("organization_members")
        .select("*")
        .eq("id", member_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    if not result.data:
        return None

    return cast(Dict[str, Any], result.data[0])


async def invite_member(
    supabase_client: Client,
    organization_id: str,
    email: str,
    role: str,
) -> Optional[str]:
    """
    Add a registered user to the organization by email.

    Returns:
        The new member id when the RPC returns one

    Raises:
        postgrest.exceptions.APIError: If the RPC rejects the invitation
            (unknown email, already a member)
    """
    logger.info(f"Inviting member to organization {organization_id} with role '{role}'")

    result = supabase_client.rpc(
        "invite_organization_member",
        {
            "p_organization_id": organization_id,
            "p_email": email,
            "p_role": role,
        }
    ).execute()

    member_id = result.data if isinstance(result.data, str) else None
    logger.info(f"Member invited to organization {organization_id}")
    return member_id


async def _count_owners(supabase_client: Client, organization_id: str) -> int:
    result = (
        supabase_client.table("organization_members")
        .select("id")
        .eq("organization_id", organization_id)
        .eq("role", "owner")
        .execute()
    )
    return len(result.data or [])


async def update_member_role(
    supabase_client: Client,
    organization_id: str,
    member_id: str,
    role: str,
) -> Optional[Dict[str, Any]]:
    """
    Change a member's role.

    Returns:
        Updated member row, or None if the member does not exist

    Raises:
        LastOwnerError: If this would demote the organization's only owner
    """
    member = await get_member_by_id(supabase_client, organization_id, member_id)
    if not member:
        return None

    if member.get("role") == "owner" and role != "owner":
        if await _count_owners(supabase_client, organization_id) <= 1:
            raise LastOwnerError("Cannot demote the last owner. Please transfer ownership first.")

    logger.info(f"Changing role of member {member_id} in organization {organization_id} to '{role}'")

    result = (
        supabase_client.table("organization_members")
        .update({"role": role})
        .eq("id", member_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    if not result.data:
        return None

    return cast(Dict[str, Any], result.data[0])


async def remove_member(
    supabase_client: Client,
    organization_id: str,
    member_id: str,
) -> bool:
    """
    Remove a member from the organization.

    Returns:
        True if removed, False if the member does not exist

    Raises:
        LastOwnerError: If the member is the organization's only owner
    """
    member = await get_member_by_id(supabase_client, organization_id, member_id)
    if not member:
        return False

    if member.get("role") == "owner":
        if await _count_owners(supabase_client, organization_id) <= 1:
            raise LastOwnerError("Cannot remove the last owner. Please transfer ownership first.")

    logger.info(f"Removing member {member_id} from organization {organization_id}")

    result = (
        supabase_client.table("organization_members")
        .delete()
        .eq("id", member_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    return bool(result.data)
