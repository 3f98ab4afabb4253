"""
Tests for category endpoints.
"""

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError
from unittest.mock import AsyncMock, MagicMock, patch

from ledgerbook.main import app

client = TestClient(app)

BASE = "/organizations/org-123/categories"
ROUTES = "ledgerbook.routes.categories"


@pytest.fixture(autouse=True)
def mock_get_supabase_client():
    with patch(f"{ROUTES}.get_supabase_client") as mock:
        mock.return_value = MagicMock()
        yield mock


@pytest.fixture
def mock_categories():
    return [
        {"id": "c-1", "name": "Operations", "type": "expense", "parent_id": None,
         "is_system": True, "is_active": True, "transaction_count": 12},
        {"id": "c-2", "name": "Software", "type": "expense", "parent_id": "c-1",
         "parent_name": "Operations", "is_system": False, "is_active": True, "transaction_count": 4},
        {"id": "c-3", "name": "Sales", "type": "income", "parent_id": None,
         "is_system": True, "is_active": True, "transaction_count": 7},
    ]


class TestListCategories:

    @patch(f"{ROUTES}.get_all_categories", new_callable=AsyncMock)
    def test_flat_list(self, mock_list, as_role, mock_categories):
        as_role("viewer")
        mock_list.return_value = mock_categories

        response = client.get(BASE)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 3
        assert data["categories"][1]["parent_name"] == "Operations"
        assert data["categories"][0]["subcategories"] is None

    @patch(f"{ROUTES}.get_all_categories", new_callable=AsyncMock)
    def test_nested_list(self, mock_list, as_role, mock_categories):
        as_role("viewer")
        mock_list.return_value = mock_categories

        response = client.get(f"{BASE}?nested=true&type=expense")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        operations = data["categories"][0]
        assert [s["id"] for s in operations["subcategories"]] == ["c-2"]
        assert mock_list.call_args.kwargs["category_type"] == "expense"


class TestCreateCategory:

    @patch(f"{ROUTES}.create_category", new_callable=AsyncMock)
    def test_create(self, mock_create, as_role):
        as_role("accountant")
        mock_create.return_value = "c-9"

        response = client.post(BASE, json={"name": "Travel", "type": "expense", "color": "bg-amber-500"})

        assert response.status_code == 201
        assert response.json()["category_id"] == "c-9"

    @patch(f"{ROUTES}.create_category", new_callable=AsyncMock)
    def test_duplicate_returns_409(self, mock_create, as_role):
        as_role("owner")
        mock_create.side_effect = APIError({"message": "duplicate key", "code": "23505"})

        response = client.post(BASE, json={"name": "Travel"})

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "duplicate_category"

    @patch(f"{ROUTES}.create_category", new_callable=AsyncMock)
    def test_bad_parent_returns_400(self, mock_create, as_role):
        as_role("owner")
        mock_create.side_effect = ValueError("Parent category c-404 not found")

        response = client.post(BASE, json={"name": "Travel", "parent_id": "c-404"})

        assert response.status_code == 400

    def test_viewer_cannot_create(self, as_role):
        as_role("viewer")

        response = client.post(BASE, json={"name": "Travel"})

        assert response.status_code == 403


class TestDeleteCategory:

    @patch(f"{ROUTES}.delete_category", new_callable=AsyncMock)
    def test_system_category_returns_400(self, mock_delete, as_role):
        as_role("owner")
        mock_delete.side_effect = ValueError("System categories cannot be deleted")

        response = client.delete(f"{BASE}/c-1")

        assert response.status_code == 400

    @patch(f"{ROUTES}.delete_category", new_callable=AsyncMock)
    def test_missing_returns_404(self, mock_delete, as_role):
        as_role("owner")
        mock_delete.return_value = False

        response = client.delete(f"{BASE}/nope")

        assert response.status_code == 404
