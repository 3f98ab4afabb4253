"""
Category service.

CRITICAL RULES:
1. Categories belong to an organization and have a type: income, expense or transfer
2. System categories (is_system = true) are seeded by the database and CANNOT be deleted
3. Subcategories are one level deep; parent and child share the same type
4. Reads go through get_organization_categories_detailed, which adds
   parent_name and transaction_count to each row
5. Writes go through the create_category / delete_category RPCs
"""

import logging
from typing import Any, Dict, List, Optional, cast

from supabase import Client

from ledgerbook.utils.constants import DEFAULT_CATEGORY_COLOR

logger = logging.getLogger(__name__)


def nest_categories(categories: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Group subcategories under their parents.

    Children whose parent isn't in the list are kept as top-level entries.
    """
    by_id = {str(cat.get("id")): {**cat, "subcategories": []} for cat in categories}
    top_level: List[Dict[str, Any]] = []

    for cat in by_id.values():
        parent_id = cat.get("parent_id")
        parent = by_id.get(str(parent_id)) if parent_id else None
        if parent is None:
            top_level.append(cat)
        else:
            parent["subcategories"].append(cat)

    return top_level


async def get_all_categories(
    supabase_client: Client,
    organization_id: str,
    category_type: Optional[str] = None,
    include_inactive: bool = False,
) -> List[Dict[str, Any]]:
    """
    Fetch the organization's categories with usage details.

    Args:
        supabase_client: Authenticated Supabase client
        organization_id: Organization UUID
        category_type: Optional filter (income|expense|transfer)
        include_inactive: Include categories with is_active = false

    Returns:
        List of category records ordered by name
    """
    logger.debug(f"Fetching categories for organization {organization_id} (type={category_type})")

    result = supabase_client.rpc(
        "get_organization_categories_detailed",
        {"p_organization_id": organization_id}
    ).execute()

    categories = cast(List[Dict[str, Any]], result.data or [])

    if category_type:
        categories = [c for c in categories if c.get("type") == category_type]
    if not include_inactive:
        categories = [c for c in categories if c.get("is_active", True)]

    categories.sort(key=lambda c: (c.get("name") or "").lower())

    logger.info(f"Fetched {len(categories)} categories for organization {organization_id}")

    return categories


async def get_category_by_id(
    supabase_client: Client,
    organization_id: str,
    category_id: str,
) -> Optional[Dict[str, Any]]:
    """Fetch a raw categories row, or None if not found in this organization."""
    result = (
        supabase_client.table("categories")
        .select("*")
        .eq("id", category_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    if not result.data:
        return None

    return cast(Dict[str, Any], result.data[0])


async def create_category(
    supabase_client: Client,
    organization_id: str,
    name: str,
    category_type: str,
    parent_id: Optional[str] = None,
    icon: Optional[str] = None,
    color: Optional[str] = None,
) -> str:
    """
    Create a category through the create_category RPC.

    Returns:
        The new category id

    Raises:
        ValueError: If the parent doesn't exist, is itself a subcategory,
            or has a different type
    """
    if parent_id:
        parent = await get_category_by_id(supabase_client, organization_id, parent_id)
        if not parent:
            raise ValueError(f"Parent category {parent_id} not found")
        if parent.get("parent_id"):
            raise ValueError("Subcategories cannot have their own subcategories")
        if parent.get("type") != category_type:
            raise ValueError(
                f"Subcategory type '{category_type}' must match parent type '{parent.get('type')}'"
            )

    logger.info(f"Creating {category_type} category in organization {organization_id}")

    result = supabase_client.rpc(
        "create_category",
        {
            "p_organization_id": organization_id,
            "p_name": name,
            "p_type": category_type,
            "p_parent_id": parent_id,
            "p_icon": icon,
            "p_color": color or DEFAULT_CATEGORY_COLOR,
        }
    ).execute()

    if not result.data:
        raise Exception("Failed to create category: no id returned")

    category_id = str(result.data)
    logger.info(f"Category created successfully: {category_id}")

    return category_id


async def delete_category(
    supabase_client: Client,
    organization_id: str,
    category_id: str,
) -> bool:
    """
    Delete a category through the delete_category RPC.

    Returns:
        True if deleted, False if the category doesn't exist

    Raises:
        ValueError: If the category is a system category
    """
    category = await get_category_by_id(supabase_client, organization_id, category_id)
    if not category:
        return False

    if category.get("is_system"):
        raise ValueError("System categories cannot be deleted")

    logger.info(f"Deleting category {category_id} from organization {organization_id}")

    supabase_client.rpc(
        "delete_category",
        {"p_category_id": category_id}
    ).execute()

    logger.info(f"Category {category_id} deleted")

    return True
