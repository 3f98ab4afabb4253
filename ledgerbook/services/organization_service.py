"""
Organization (tenant) service.

RULES:
1. Organizations are created only through the create_organization RPC, which
   inserts the organization, derives its slug and makes the caller its owner
   in one database transaction
2. fiscal_year_start is a month number (1-12)
3. RLS hides organizations the caller is not a member of
"""

import logging
from typing import Any, Dict, List, Optional, cast

from supabase import Client

logger = logging.getLogger(__name__)


async def create_organization(
    supabase_client: Client,
    user_id: str,
    name: str,
    currency: str,
    timezone: str,
    fiscal_year_start: int,
) -> Dict[str, Any]:
    """
    Create an organization owned by the calling user.

    Returns:
        The created organization row

    Raises:
        ValueError: If fiscal_year_start is not a month number
        Exception: If the RPC returns no organization id
    """
    if not 1 <= fiscal_year_start <= 12:
        raise ValueError("fiscal_year_start must be between 1 and 12")

    logger.info(f"Creating organization for user {user_id}: currency={currency}, timezone={timezone}")

    rpc_res = supabase_client.rpc(
        "create_organization",
        {
            "p_name": name,
            "p_currency": currency,
            "p_timezone": timezone,
            "p_fiscal_year_start": fiscal_year_start,
        }
    ).execute()

    organization_id = rpc_res.data
    if not organization_id:
        raise Exception("Failed to create organization: no id returned")

    organization_id = str(organization_id)
    logger.info(f"Organization created successfully: {organization_id}")

    organization = await get_organization(supabase_client, organization_id)
    if organization is None:
        # Fallback: the RPC succeeded but the row is not readable yet
        logger.warning(f"Could not re-fetch organization {organization_id}")
        return {
            "id": organization_id,
            "name": name,
            "slug": None,
            "currency": currency,
            "timezone": timezone,
            "fiscal_year_start": fiscal_year_start,
        }

    return organization


async def list_user_organizations(
    supabase_client: Client,
    user_id: str,
) -> List[Dict[str, Any]]:
    """
    Fetch every organization the user belongs to, with their role in it.

    Uses the organization_members -> organizations foreign key join.
    """
    logger.debug(f"Fetching organizations for user {user_id}")

    result = (
        supabase_client.table("organization_members")
        .select("role, organization:organization_id(*)")
        .eq("user_id", user_id)
        .execute()
    )

    organizations = []
    for row in cast(List[Dict[str, Any]], result.data or []):
        org = row.get("organization")
        if not org:
            continue
        organizations.append({**org, "role": row.get("role")})

    organizations.sort(key=lambda o: (o.get("name") or "").lower())

    logger.info(f"Fetched {len(organizations)} organizations for user {user_id}")

    return organizations


async def get_organization(
    supabase_client: Client,
    organization_id: str,
) -> Optional[Dict[str, Any]]:
    """Fetch a single organization, or None if it doesn't exist or isn't visible."""
    result = (
        supabase_client.table("organizations")
        .select("*")
        .eq("id", organization_id)
        .execute()
    )

    if not result.data:
        logger.warning(f"Organization {organization_id} not found or not accessible")
        return None

    return cast(Dict[str, Any], result.data[0])


async def update_organization(
    supabase_client: Client,
    organization_id: str,
    **updates: Any,
) -> Optional[Dict[str, Any]]:
    """
    Update organization settings.

    Returns:
        Updated organization row, or None if not found

    Raises:
        ValueError: If fiscal_year_start is not a month number
    """
    fiscal_year_start = updates.get("fiscal_year_start")
    if fiscal_year_start is not None and not 1 <= fiscal_year_start <= 12:
        raise ValueError("fiscal_year_start must be between 1 and 12")

    logger.info(f"Updating organization {organization_id}: {list(updates.keys())}")

    result = (
        supabase_client.table("organizations")
        .update(updates)
        .eq("id", organization_id)
        .execute()
    )

    if not result.data:
        logger.warning(f"Organization {organization_id} not found for update")
        return None

    return cast(Dict[str, Any], result.data[0])
