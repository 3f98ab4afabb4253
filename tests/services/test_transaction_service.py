"""
Tests for transaction persistence and its ledger side effects.

Budget and balance follow-ups are patched so each test checks which effects
a write triggers, not how they are stored.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from ledgerbook.services.ledger_rules import InvalidTransitionError
from ledgerbook.services.transaction_service import (
    add_transaction,
    delete_transaction,
    set_transaction_status,
    toggle_transaction_status,
)

ORG_ID = "org-123"


@pytest.fixture
def mock_budgets():
    with patch(
        "ledgerbook.services.transaction_service.adjust_budgets_for_expense",
        new_callable=AsyncMock,
    ) as mock:
        mock.return_value = 1
        yield mock


@pytest.fixture
def mock_balance():
    with patch(
        "ledgerbook.services.transaction_service.adjust_account_balance",
        new_callable=AsyncMock,
    ) as mock:
        yield mock


def _client_returning(rows):
    client = MagicMock()
    table = client.table.return_value
    table.insert.return_value.execute.return_value.data = rows
    table.delete.return_value.eq.return_value.eq.return_value.execute.return_value.data = rows
    table.update.return_value.eq.return_value.eq.return_value.execute.return_value.data = rows
    table.update.return_value.eq.return_value.eq.return_value.eq.return_value.execute.return_value.data = rows
    return client


class TestAddTransaction:

    @pytest.mark.asyncio
    async def test_completed_expense_updates_budgets_and_balance(self, mock_budgets, mock_balance):
        client = _client_returning([{"id": "txn-1"}])

        result = await add_transaction(
            supabase_client=client,
            organization_id=ORG_ID,
            payee="AWS",
            date="2024-03-09",
            amount=2450.0,
            transaction_type="expense",
            category="Infrastructure",
            account_id="acc-1",
        )

        assert result == {"id": "txn-1"}
        inserted = client.table.return_value.insert.call_args[0][0]
        assert inserted["organization_id"] == ORG_ID
        assert inserted["status"] == "completed"
        mock_budgets.assert_awaited_once_with(client, ORG_ID, "Infrastructure", 2450.0)
        mock_balance.assert_awaited_once_with(client, ORG_ID, "acc-1", -2450.0)

    @pytest.mark.asyncio
    async def test_pending_income_touches_nothing(self, mock_budgets, mock_balance):
        client = _client_returning([{"id": "txn-2"}])

        await add_transaction(
            supabase_client=client,
            organization_id=ORG_ID,
            payee="MegaCorp",
            date="2024-03-10",
            amount=4500.0,
            transaction_type="income",
            category="Sales",
            status="pending",
            account_id="acc-1",
        )

        mock_budgets.assert_not_awaited()
        mock_balance.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pending_expense_still_counts_toward_budget(self, mock_budgets, mock_balance):
        client = _client_returning([{"id": "txn-3"}])

        await add_transaction(
            supabase_client=client,
            organization_id=ORG_ID,
            payee="Figma",
            date="2024-03-10",
            amount=45.0,
            transaction_type="expense",
            category="Software",
            status="pending",
        )

        mock_budgets.assert_awaited_once()
        mock_balance.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [
        {"transaction_type": "transfer"},
        {"status": "void"},
        {"amount": 0},
        {"amount": -5},
    ])
    async def test_invalid_input_rejected(self, kwargs, mock_budgets, mock_balance):
        client = _client_returning([{"id": "txn-x"}])
        params = {
            "supabase_client": client,
            "organization_id": ORG_ID,
            "payee": "X",
            "date": "2024-03-10",
            "amount": 10.0,
            "transaction_type": "expense",
            "category": "Misc",
        }
        params.update(kwargs)

        with pytest.raises(ValueError):
            await add_transaction(**params)

        client.table.return_value.insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_balance_failure_does_not_fail_write(self, mock_budgets, mock_balance):
        mock_balance.side_effect = Exception("connection reset")
        client = _client_returning([{"id": "txn-4"}])

        result = await add_transaction(
            supabase_client=client,
            organization_id=ORG_ID,
            payee="Client",
            date="2024-03-10",
            amount=100.0,
            transaction_type="income",
            category="Sales",
            account_id="acc-1",
        )

        assert result["id"] == "txn-4"


class TestDeleteTransaction:

    @pytest.mark.asyncio
    async def test_reverses_budget_and_balance(self, mock_budgets, mock_balance):
        existing = {
            "id": "txn-1",
            "type": "expense",
            "amount": 200.0,
            "category": "Travel",
            "status": "completed",
            "account_id": "acc-1",
        }
        client = _client_returning([existing])

        with patch(
            "ledgerbook.services.transaction_service.get_transaction_by_id",
            new_callable=AsyncMock,
            return_value=existing,
        ):
            deleted = await delete_transaction(client, ORG_ID, "txn-1")

        assert deleted is True
        mock_budgets.assert_awaited_once_with(client, ORG_ID, "Travel", -200.0)
        mock_balance.assert_awaited_once_with(client, ORG_ID, "acc-1", 200.0)

    @pytest.mark.asyncio
    async def test_missing_transaction_returns_false(self, mock_budgets, mock_balance):
        client = _client_returning([])

        with patch(
            "ledgerbook.services.transaction_service.get_transaction_by_id",
            new_callable=AsyncMock,
            return_value=None,
        ):
            deleted = await delete_transaction(client, ORG_ID, "missing")

        assert deleted is False
        client.table.return_value.delete.assert_not_called()


class TestTransactionStatus:

    @pytest.mark.asyncio
    async def test_completing_applies_balance_and_settles_invoice(self, mock_balance):
        txn = {
            "id": "txn-1",
            "type": "income",
            "amount": 4500.0,
            "status": "pending",
            "account_id": "acc-1",
            "invoice_id": "inv-1",
        }
        client = _client_returning([{**txn, "status": "completed"}])

        updated = await set_transaction_status(client, ORG_ID, txn, "completed")

        assert updated["status"] == "completed"
        mock_balance.assert_awaited_once_with(client, ORG_ID, "acc-1", 4500.0)
        client.table.assert_any_call("invoices")
        client.table.return_value.update.assert_any_call({"status": "paid"})

    @pytest.mark.asyncio
    async def test_reverting_to_pending_reverses_balance(self, mock_balance):
        txn = {
            "id": "txn-1",
            "type": "expense",
            "amount": 80.0,
            "status": "completed",
            "account_id": "acc-1",
        }
        client = _client_returning([{**txn, "status": "pending"}])

        await set_transaction_status(client, ORG_ID, txn, "pending")

        mock_balance.assert_awaited_once_with(client, ORG_ID, "acc-1", 80.0)

    @pytest.mark.asyncio
    async def test_same_status_rejected(self, mock_balance):
        txn = {"id": "txn-1", "type": "income", "amount": 1.0, "status": "pending"}

        with pytest.raises(InvalidTransitionError):
            await set_transaction_status(MagicMock(), ORG_ID, txn, "pending")

    @pytest.mark.asyncio
    async def test_toggle_missing_transaction_returns_none(self):
        with patch(
            "ledgerbook.services.transaction_service.get_transaction_by_id",
            new_callable=AsyncMock,
            return_value=None,
        ):
            assert await toggle_transaction_status(MagicMock(), ORG_ID, "missing") is None
