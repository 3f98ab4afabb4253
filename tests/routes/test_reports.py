"""
Tests for report endpoints.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock, patch

from ledgerbook.main import app

client = TestClient(app)

BASE = "/organizations/org-123/reports"
ROUTES = "ledgerbook.routes.reports"


@pytest.fixture(autouse=True)
def mock_get_supabase_client():
    with patch(f"{ROUTES}.get_supabase_client") as mock:
        mock.return_value = MagicMock()
        yield mock


class TestReports:

    @patch(f"{ROUTES}.get_dashboard_summary", new_callable=AsyncMock)
    def test_dashboard(self, mock_summary, as_role):
        as_role("viewer")
        mock_summary.return_value = {
            "month": "2024-03",
            "total_balance": 188812.0,
            "monthly_income": 5000.0,
            "monthly_expenses": 1200.0,
            "net_income": 3800.0,
            "open_invoices": 2,
            "open_invoices_amount": 5500.0,
            "overdue_invoices": 1,
            "budgets_warning": 1,
            "budgets_exceeded": 0,
        }

        response = client.get(f"{BASE}/dashboard")

        assert response.status_code == 200
        assert response.json()["net_income"] == 3800.0

    @patch(f"{ROUTES}.get_expenses_by_category", new_callable=AsyncMock)
    def test_expenses_by_category(self, mock_breakdown, as_role):
        as_role("viewer")
        mock_breakdown.return_value = [
            {"category": "Software", "total": 600.0, "share": 60.0},
            {"category": "Travel", "total": 400.0, "share": 40.0},
        ]

        response = client.get(f"{BASE}/expenses-by-category?from_date=2024-03-01")

        assert response.status_code == 200
        assert response.json()["total"] == 1000.0
        assert mock_breakdown.call_args.kwargs["from_date"] == "2024-03-01"

    @patch(f"{ROUTES}.get_cash_flow", new_callable=AsyncMock)
    @patch(f"{ROUTES}.get_organization", new_callable=AsyncMock)
    def test_cash_flow_uses_fiscal_year_start(self, mock_org, mock_flow, as_role):
        as_role("viewer")
        mock_org.return_value = {"id": "org-123", "fiscal_year_start": 4}
        mock_flow.return_value = [
            {"month": "2024-04", "label": "Apr 2024", "income": 1000.0, "expenses": 250.0, "net": 750.0},
            {"month": "2024-05", "label": "May 2024", "income": 0.0, "expenses": 100.0, "net": -100.0},
        ]

        response = client.get(f"{BASE}/cash-flow?fiscal_year=2024")

        assert response.status_code == 200
        data = response.json()
        assert data["fiscal_year_start"] == 4
        assert data["total_income"] == 1000.0
        assert data["total_expenses"] == 350.0
        assert data["net"] == 650.0
        assert mock_flow.call_args[0][2:] == (2024, 4)

    @patch(f"{ROUTES}.get_dashboard_summary", new_callable=AsyncMock)
    def test_failure_returns_500(self, mock_summary, as_role):
        as_role("viewer")
        mock_summary.side_effect = Exception("timeout")

        response = client.get(f"{BASE}/dashboard")

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "report_error"

    @patch(f"{ROUTES}.get_cash_flow", new_callable=AsyncMock)
    @patch(f"{ROUTES}.get_organization", new_callable=AsyncMock)
    def test_fiscal_year_past_calendar_range_returns_422(self, mock_org, mock_flow, as_role):
        as_role("viewer")
        mock_org.return_value = {"id": "org-123", "fiscal_year_start": 4}

        response = client.get(f"{BASE}/cash-flow?fiscal_year=9999")

        assert response.status_code == 422
        mock_flow.assert_not_awaited()

    @patch(f"{ROUTES}.get_cash_flow", new_callable=AsyncMock)
    @patch(f"{ROUTES}.get_organization", new_callable=AsyncMock)
    def test_last_supported_fiscal_year(self, mock_org, mock_flow, as_role):
        as_role("viewer")
        mock_org.return_value = {"id": "org-123", "fiscal_year_start": 12}
        mock_flow.return_value = []

        response = client.get(f"{BASE}/cash-flow?fiscal_year=9998")

        assert response.status_code == 200
        assert mock_flow.call_args[0][2:] == (9998, 12)
