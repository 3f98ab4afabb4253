"""
Tests for budget endpoints.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock, patch

from ledgerbook.main import app

client = TestClient(app)

BASE = "/organizations/org-123/budgets"
ROUTES = "ledgerbook.routes.budgets"


@pytest.fixture(autouse=True)
def mock_get_supabase_client():
    with patch(f"{ROUTES}.get_supabase_client") as mock:
        mock.return_value = MagicMock()
        yield mock


@pytest.fixture
def mock_budget():
    return {
        "id": "b-1",
        "organization_id": "org-123",
        "category": "Infrastructure",
        "spent": 2700.0,
        "limit_amount": 3000.0,
        "period": "monthly",
        "alert_threshold": 80,
        "color": "bg-blue-500",
        "percent_used": 90.0,
        "remaining": 300.0,
        "status": "warning",
    }


class TestBudgets:

    @patch(f"{ROUTES}.get_all_budgets", new_callable=AsyncMock)
    def test_list(self, mock_list, as_role, mock_budget):
        as_role("viewer")
        mock_list.return_value = [mock_budget]

        response = client.get(f"{BASE}?period=monthly")

        assert response.status_code == 200
        data = response.json()
        assert data["budgets"][0]["status"] == "warning"
        assert data["budgets"][0]["remaining"] == 300.0
        assert mock_list.call_args.kwargs["period"] == "monthly"

    @patch(f"{ROUTES}.create_budget", new_callable=AsyncMock)
    def test_create(self, mock_create, as_role, mock_budget):
        as_role("accountant")
        mock_create.return_value = mock_budget

        response = client.post(BASE, json={"category": "Infrastructure", "limit_amount": 3000.0})

        assert response.status_code == 201
        kwargs = mock_create.call_args.kwargs
        assert kwargs["alert_threshold"] == 80
        assert kwargs["period"] == "monthly"
        assert kwargs["spent"] == 0.0

    def test_threshold_over_100_returns_422(self, as_role):
        as_role("owner")

        response = client.post(BASE, json={"category": "Travel", "limit_amount": 100, "alert_threshold": 120})

        assert response.status_code == 422

    @patch(f"{ROUTES}.update_budget", new_callable=AsyncMock)
    def test_update_recomputes_health_for_raw_rows(self, mock_update, as_role, mock_budget):
        as_role("admin")
        raw = {k: v for k, v in mock_budget.items() if k not in ("percent_used", "remaining", "status")}
        mock_update.return_value = {**raw, "limit_amount": 2000.0}

        response = client.patch(f"{BASE}/b-1", json={"limit_amount": 2000.0})

        assert response.status_code == 200
        budget = response.json()["budget"]
        assert budget["status"] == "exceeded"
        assert budget["remaining"] == -700.0

    @patch(f"{ROUTES}.delete_budget", new_callable=AsyncMock)
    def test_delete_missing_returns_404(self, mock_delete, as_role):
        as_role("owner")
        mock_delete.return_value = False

        response = client.delete(f"{BASE}/missing")

        assert response.status_code == 404

    @patch(f"{ROUTES}.get_budget_by_id", new_callable=AsyncMock)
    def test_get_one(self, mock_get, as_role, mock_budget):
        as_role("viewer")
        mock_get.return_value = mock_budget

        response = client.get(f"{BASE}/b-1")

        assert response.status_code == 200
        assert response.json()["percent_used"] == 90.0
        assert mock_get.call_args[0][1:] == ("org-123", "b-1")

    @patch(f"{ROUTES}.get_budget_by_id", new_callable=AsyncMock)
    def test_get_missing_returns_404(self, mock_get, as_role):
        as_role("viewer")
        mock_get.return_value = None

        response = client.get(f"{BASE}/missing")

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "not_found"
