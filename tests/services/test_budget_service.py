"""
Tests for budget tracking of expense transactions.
"""

import pytest
from unittest.mock import MagicMock

from ledgerbook.services.budget_service import adjust_budgets_for_expense, with_health

ORG_ID = "org-123"


def _client_with_updated_budgets(rows):
    client = MagicMock()
    client.rpc.return_value.execute.return_value.data = rows
    return client


class TestAdjustBudgets:

    @pytest.mark.asyncio
    async def test_increment_runs_in_one_rpc(self):
        client = _client_with_updated_budgets([
            {"budget_id": "b-1", "spent": 165.5},
            {"budget_id": "b-2", "spent": 45.5},
        ])

        updated = await adjust_budgets_for_expense(client, ORG_ID, "Software", 45.5)

        assert updated == 2
        client.rpc.assert_called_once_with(
            "adjust_budgets_for_expense",
            {"p_organization_id": ORG_ID, "p_category": "Software", "p_amount": 45.5},
        )
        client.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_reversal_passes_negative_amount(self):
        client = _client_with_updated_budgets([{"budget_id": "b-1", "spent": 0.0}])

        await adjust_budgets_for_expense(client, ORG_ID, "Travel", -50.0)

        assert client.rpc.call_args[0][1]["p_amount"] == -50.0

    @pytest.mark.asyncio
    async def test_no_matching_budget(self):
        client = _client_with_updated_budgets([])

        assert await adjust_budgets_for_expense(client, ORG_ID, "Meals", 10.0) == 0

    @pytest.mark.asyncio
    async def test_database_failure_is_logged_not_raised(self):
        client = MagicMock()
        client.rpc.side_effect = Exception("connection refused")

        assert await adjust_budgets_for_expense(client, ORG_ID, "Meals", 10.0) == 0


class TestWithHealth:

    def test_adds_derived_fields(self):
        budget = with_health({"id": "b-1", "spent": 2700, "limit_amount": 3000, "alert_threshold": 90})

        assert budget["percent_used"] == 90.0
        assert budget["remaining"] == 300.0
        assert budget["status"] == "warning"

    def test_missing_threshold_uses_default(self):
        budget = with_health({"id": "b-1", "spent": 800, "limit_amount": 1000, "alert_threshold": None})

        assert budget["status"] == "warning"
