"""
Database access layer for the Ledgerbook backend.

All database operations MUST:
- Go through a client created with the caller's access token
- Respect Row Level Security (membership in the owning organization)
- Leave multi-table writes to the RPCs defined in the database

DO NOT define table schemas, migrations, or RLS policies here.
"""

from .client import get_supabase_client

__all__ = ["get_supabase_client"]
