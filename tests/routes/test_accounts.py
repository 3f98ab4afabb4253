"""
Tests for account endpoints.

Tests cover:
- Account listing with total balance
- Account creation, retrieval, update and deletion
- Balance is not editable
- Role checks
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock, patch

from ledgerbook.main import app

client = TestClient(app)

BASE = "/organizations/org-123/accounts"
ROUTES = "ledgerbook.routes.accounts"


@pytest.fixture(autouse=True)
def mock_get_supabase_client():
    with patch(f"{ROUTES}.get_supabase_client") as mock:
        mock.return_value = MagicMock()
        yield mock


@pytest.fixture
def mock_account():
    return {
        "id": "acc-1",
        "organization_id": "org-123",
        "name": "Business Checking",
        "type": "checking",
        "balance": 146152.50,
        "last_four": "4242",
        "icon_name": "Building2",
        "color": "bg-blue-500",
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-03-01T00:00:00Z",
    }


class TestListAccounts:

    @patch(f"{ROUTES}.get_organization_accounts", new_callable=AsyncMock)
    def test_list_with_total(self, mock_list, as_role, mock_account):
        as_role("viewer")
        mock_list.return_value = [
            mock_account,
            {**mock_account, "id": "acc-2", "type": "credit_card", "balance": -2340.50, "icon_name": "CreditCard"},
        ]

        response = client.get(BASE)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert data["total_balance"] == 143812.0

    @patch(f"{ROUTES}.get_organization_accounts", new_callable=AsyncMock)
    def test_list_empty(self, mock_list, as_role):
        as_role("viewer")
        mock_list.return_value = []

        response = client.get(BASE)

        assert response.status_code == 200
        assert response.json() == {"accounts": [], "count": 0, "total_balance": 0.0}


class TestCreateAccount:

    @patch(f"{ROUTES}.create_account", new_callable=AsyncMock)
    def test_create(self, mock_create, as_role, mock_account):
        as_role("accountant")
        mock_create.return_value = mock_account

        response = client.post(BASE, json={
            "name": "Business Checking",
            "type": "checking",
            "balance": 146152.50,
            "last_four": "4242",
        })

        assert response.status_code == 201
        assert response.json()["account"]["id"] == "acc-1"
        assert mock_create.call_args.kwargs["icon_name"] == "Building2"

    def test_invalid_last_four_returns_422(self, as_role):
        as_role("owner")

        response = client.post(BASE, json={"name": "Card", "type": "credit_card", "last_four": "42a2"})

        assert response.status_code == 422

    def test_unknown_type_returns_422(self, as_role):
        as_role("owner")

        response = client.post(BASE, json={"name": "Cash", "type": "cash"})

        assert response.status_code == 422


class TestAccountDetail:

    @patch(f"{ROUTES}.get_account_by_id", new_callable=AsyncMock)
    def test_get_missing_returns_404(self, mock_get, as_role):
        as_role("viewer")
        mock_get.return_value = None

        response = client.get(f"{BASE}/missing")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "not_found"

    @patch(f"{ROUTES}.update_account", new_callable=AsyncMock)
    def test_update_ignores_balance(self, mock_update, as_role, mock_account):
        as_role("admin")
        mock_update.return_value = {**mock_account, "name": "Operating"}

        response = client.patch(f"{BASE}/acc-1", json={"name": "Operating", "balance": 1.0})

        assert response.status_code == 200
        assert response.json()["account"]["name"] == "Operating"
        assert "balance" not in mock_update.call_args.kwargs

    @patch(f"{ROUTES}.delete_account", new_callable=AsyncMock)
    def test_delete(self, mock_delete, as_role):
        as_role("owner")
        mock_delete.return_value = True

        response = client.delete(f"{BASE}/acc-1")

        assert response.status_code == 200
        assert response.json()["status"] == "DELETED"

    def test_viewer_cannot_delete(self, as_role):
        as_role("viewer")

        response = client.delete(f"{BASE}/acc-1")

        assert response.status_code == 403
