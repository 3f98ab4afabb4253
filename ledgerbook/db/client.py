"""
Supabase client factory with RLS enforcement.

This module provides authenticated Supabase clients that enforce Row Level
Security (RLS) by attaching the caller's JWT to every request.

RULES:
1. NEVER use the service_role key for user operations
2. ALWAYS use the user's JWT token from Supabase Auth
3. RLS policies restrict every table to organizations the user is a member of
4. The client MUST be created per-request with the user's token
"""

import logging

from ledgerbook.config import settings
from supabase import Client, create_client

logger = logging.getLogger(__name__)


def get_supabase_client(access_token: str) -> Client:
    """
    Create an authenticated Supabase client for a specific user.

    The client uses the publishable key plus the user's access token, so all
    table queries and RPC calls run as that user and are subject to the
    organization membership policies in the database.

    Args:
        access_token: The user's JWT access token from Supabase Auth.

    Returns:
        An authenticated Supabase client that enforces RLS.

    Example:
        >>> client = get_supabase_client(auth_user.access_token)
        >>> result = client.table("accounts").select("*").eq("organization_id", org_id).execute()
    """
    client: Client = create_client(
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_PUBLISHABLE_KEY
    )

    # The token carries the user_id in its 'sub' claim; auth.uid() in the
    # RLS policies resolves from it
    client.auth.set_session(access_token, access_token)

    logger.debug("Created authenticated Supabase client with user token (RLS enforced)")

    return client
