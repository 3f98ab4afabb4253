"""
Tests for organization endpoints and /auth/me.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock, patch

from ledgerbook.auth.dependencies import AuthenticatedUser, get_authenticated_user
from ledgerbook.main import app

client = TestClient(app)

ROUTES = "ledgerbook.routes.organizations"


async def mock_get_authenticated_user_dependency():
    """Mock dependency that returns test AuthenticatedUser."""
    return AuthenticatedUser(
        user_id="test-user-id",
        access_token="test-access-token",
        email="owner@example.com",
    )


@pytest.fixture
def mock_auth():
    """Override get_authenticated_user dependency."""
    app.dependency_overrides[get_authenticated_user] = mock_get_authenticated_user_dependency
    yield
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def mock_get_supabase_client():
    with patch(f"{ROUTES}.get_supabase_client") as mock, \
         patch("ledgerbook.routes.auth.get_supabase_client") as auth_mock:
        mock.return_value = MagicMock()
        auth_mock.return_value = MagicMock()
        yield mock


@pytest.fixture
def mock_organization():
    return {
        "id": "org-123",
        "name": "Acme Studio",
        "slug": "acme-studio",
        "currency": "USD",
        "timezone": "America/New_York",
        "fiscal_year_start": 1,
        "role": "owner",
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": None,
    }


class TestListOrganizations:

    @patch(f"{ROUTES}.list_user_organizations", new_callable=AsyncMock)
    def test_list(self, mock_list, mock_auth, mock_organization):
        mock_list.return_value = [mock_organization]

        response = client.get("/organizations")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["organizations"][0]["role"] == "owner"

    def test_requires_auth(self):
        response = client.get("/organizations")

        assert response.status_code == 401


class TestCreateOrganization:

    @patch(f"{ROUTES}.create_organization", new_callable=AsyncMock)
    def test_create_defaults_and_uppercases_currency(self, mock_create, mock_auth, mock_organization):
        mock_create.return_value = mock_organization

        response = client.post("/organizations", json={"name": "Acme Studio", "currency": "usd"})

        assert response.status_code == 201
        data = response.json()
        assert data["organization"]["role"] == "owner"
        assert mock_create.call_args.kwargs["currency"] == "USD"
        assert mock_create.call_args.kwargs["fiscal_year_start"] == 1

    def test_invalid_fiscal_month_returns_422(self, mock_auth):
        response = client.post("/organizations", json={"name": "Acme", "fiscal_year_start": 13})

        assert response.status_code == 422


class TestOrganizationDetail:

    @patch(f"{ROUTES}.get_organization", new_callable=AsyncMock)
    def test_get_reports_caller_role(self, mock_get, as_role, mock_organization):
        as_role("accountant")
        mock_get.return_value = {**mock_organization, "role": None}

        response = client.get("/organizations/org-123")

        assert response.status_code == 200
        assert response.json()["role"] == "accountant"

    @patch(f"{ROUTES}.update_organization", new_callable=AsyncMock)
    def test_accountant_cannot_update(self, mock_update, as_role):
        as_role("accountant")

        response = client.patch("/organizations/org-123", json={"name": "New"})

        assert response.status_code == 403
        mock_update.assert_not_awaited()

    @patch(f"{ROUTES}.update_organization", new_callable=AsyncMock)
    def test_admin_updates(self, mock_update, as_role, mock_organization):
        as_role("admin")
        mock_update.return_value = {**mock_organization, "fiscal_year_start": 4}

        response = client.patch("/organizations/org-123", json={"fiscal_year_start": 4})

        assert response.status_code == 200
        assert response.json()["organization"]["fiscal_year_start"] == 4


class TestAuthMe:

    @patch("ledgerbook.routes.auth.list_user_organizations", new_callable=AsyncMock)
    def test_me_lists_memberships(self, mock_list, mock_auth, mock_organization):
        mock_list.return_value = [mock_organization]

        response = client.get("/auth/me")

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == "test-user-id"
        assert data["email"] == "owner@example.com"
        assert data["organizations"] == [{
            "organization_id": "org-123",
            "name": "Acme Studio",
            "slug": "acme-studio",
            "role": "owner",
        }]


class TestHealth:

    def test_health_is_public(self):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "ledgerbook-backend"}
