"""
Account service.

RULES:
1. Accounts belong to one organization
2. `balance` starts at the opening balance given on creation and afterwards
   moves only with completed transactions (see ledger_rules.settled_balance_effect)
3. Deleting an account leaves its transactions in place with account_id cleared
   (ON DELETE SET NULL in the database)
"""

import logging
from typing import Any, Dict, List, Optional, cast

from supabase import Client

logger = logging.getLogger(__name__)


async def get_organization_accounts(
    supabase_client: Client,
    organization_id: str,
) -> List[Dict[str, Any]]:
    """Fetch all accounts of an organization, oldest first."""
    logger.debug(f"Fetching accounts for organization {organization_id}")

    result = (
        supabase_client.table("accounts")
        .select("*")
        .eq("organization_id", organization_id)
        .order("created_at")
        .execute()
    )

    accounts = cast(List[Dict[str, Any]], result.data or [])

    logger.info(f"Fetched {len(accounts)} accounts for organization {organization_id}")

    return accounts


async def get_account_by_id(
    supabase_client: Client,
    organization_id: str,
    account_id: str,
) -> Optional[Dict[str, Any]]:
    """Fetch a single account, or None if it isn't in this organization."""
    result = (
        supabase_client.table("accounts")
        .select("*")
        .eq("id", account_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    if not result.data:
        logger.warning(f"Account {account_id} not found in organization {organization_id}")
        return None

    return cast(Dict[str, Any], result.data[0])


async def create_account(
    supabase_client: Client,
    organization_id: str,
    name: str,
    account_type: str,
    balance: float,
    last_four: Optional[str],
    icon_name: str,
    color: str,
) -> Dict[str, Any]:
    """
    Create an account with an opening balance.

    Raises:
        Exception: If the insert returns no row
    """
    account_data = {
        "organization_id": organization_id,
        "name": name,
        "type": account_type,
        "balance": balance,
        "last_four": last_four,
        "icon_name": icon_name,
        "color": color,
    }

    logger.info(f"Creating {account_type} account in organization {organization_id}")

    result = supabase_client.table("accounts").insert(account_data).execute()

    if not result.data:
        raise Exception("Failed to create account: no data returned")

    created = cast(Dict[str, Any], result.data[0])
    logger.info(f"Account created successfully: {created.get('id')}")

    return created


async def update_account(
    supabase_client: Client,
    organization_id: str,
    account_id: str,
    **updates: Any,
) -> Optional[Dict[str, Any]]:
    """
    Update account details (not the balance).

    Returns:
        Updated account row, or None if not found
    """
    if "balance" in updates:
        raise ValueError("Account balance changes only through transactions")

    logger.info(f"Updating account {account_id}: {list(updates.keys())}")

    result = (
        supabase_client.table("accounts")
        .update(updates)
        .eq("id", account_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    if not result.data:
        logger.warning(f"Account {account_id} not found for update")
        return None

    return cast(Dict[str, Any], result.data[0])


async def adjust_account_balance(
    supabase_client: Client,
    organization_id: str,
    account_id: str,
    delta: float,
) -> Optional[float]:
    """
    Add `delta` to an account's balance.

    The increment runs inside the `adjust_account_balance` RPC as a single
    UPDATE ... SET balance = balance + delta, so concurrent transaction writes
    on the same account never lose each other's change.

    Returns:
        The new balance, or None if nothing changed or the account doesn't exist
    """
    if delta == 0:
        return None

    result = supabase_client.rpc(
        "adjust_account_balance",
        {
            "p_organization_id": organization_id,
            "p_account_id": account_id,
            "p_delta": round(delta, 2),
        }
    ).execute()

    if result.data is None:
        logger.warning(f"Account {account_id} not found for balance adjustment")
        return None

    new_balance = float(cast(Any, result.data))
    logger.debug(f"Account {account_id} balance adjusted by {delta} to {new_balance}")

    return new_balance


async def delete_account(
    supabase_client: Client,
    organization_id: str,
    account_id: str,
) -> bool:
    """
    Delete an account.

    Returns:
        True if deleted, False if not found
    """
    logger.info(f"Deleting account {account_id} from organization {organization_id}")

    result = (
        supabase_client.table("accounts")
        .delete()
        .eq("id", account_id)
        .eq("organization_id", organization_id)
        .execute()
    )

    return bool(result.data)
