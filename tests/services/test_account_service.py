"""
Tests for account balance adjustments.
"""

import pytest
from unittest.mock import MagicMock

from ledgerbook.services.account_service import adjust_account_balance

ORG_ID = "org-123"


class TestAdjustAccountBalance:

    @pytest.mark.asyncio
    async def test_delta_applied_by_rpc(self, supabase_client):
        supabase_client.rpc.return_value.execute.return_value.data = 150.0

        new_balance = await adjust_account_balance(supabase_client, ORG_ID, "acc-1", 50.0)

        assert new_balance == 150.0
        supabase_client.rpc.assert_called_once_with(
            "adjust_account_balance",
            {"p_organization_id": ORG_ID, "p_account_id": "acc-1", "p_delta": 50.0},
        )
        # No read-modify-write through the table builder
        supabase_client.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_deltas_are_each_sent_as_increments(self):
        client = MagicMock()
        client.rpc.return_value.execute.side_effect = [
            MagicMock(data=150.0),
            MagicMock(data=130.0),
        ]

        await adjust_account_balance(client, ORG_ID, "acc-1", 50.0)
        await adjust_account_balance(client, ORG_ID, "acc-1", -20.0)

        deltas = [c[0][1]["p_delta"] for c in client.rpc.call_args_list]
        assert deltas == [50.0, -20.0]

    @pytest.mark.asyncio
    async def test_zero_delta_skips_database(self, supabase_client):
        assert await adjust_account_balance(supabase_client, ORG_ID, "acc-1", 0) is None
        supabase_client.rpc.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_account_returns_none(self, supabase_client):
        supabase_client.rpc.return_value.execute.return_value.data = None

        assert await adjust_account_balance(supabase_client, ORG_ID, "gone", 10.0) is None
