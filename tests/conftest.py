"""
Pytest configuration for Ledgerbook backend tests.

Sets up test environment and global fixtures.
"""
import os
import pytest
from unittest.mock import MagicMock

# Disable config validation during tests
# This allows tests to run without requiring real environment variables
os.environ["VALIDATE_CONFIG"] = "false"

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_PUBLISHABLE_KEY", "test-publishable-key")

ORG_ID = "org-123"
USER_ID = "test-user-id"


@pytest.fixture
def supabase_client():
    """
    Mock Supabase client for service tests.
    Returns a MagicMock that simulates Supabase client behavior.
    """
    mock_client = MagicMock()
    return mock_client


@pytest.fixture
def as_role():
    """
    Override organization membership resolution for route tests.

    Usage:
        as_role("viewer")  # every org-scoped request now runs as a viewer
    """
    from ledgerbook.auth.permissions import OrganizationContext, get_organization_context
    from ledgerbook.main import app

    def _set(role: str, user_id: str = USER_ID):
        async def _context(organization_id: str) -> OrganizationContext:
            return OrganizationContext(
                user_id=user_id,
                access_token="test-access-token",
                organization_id=organization_id,
                role=role,
            )

        app.dependency_overrides[get_organization_context] = _context

    yield _set

    app.dependency_overrides.clear()
