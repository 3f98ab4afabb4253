"""
Pydantic schemas for authentication endpoints.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from ledgerbook.schemas.organizations import MemberRole


class MembershipSummary(BaseModel):
    """One organization the user belongs to."""
    organization_id: str = Field(..., description="Organization UUID")
    name: str = Field(..., description="Organization name")
    slug: Optional[str] = Field(None, description="Organization slug")
    role: MemberRole = Field(..., description="The user's role")


class AuthMeResponse(BaseModel):
    """
    Response for GET /auth/me.

    Used at app boot to hydrate the session and pick the active organization.
    A new user has no memberships until they create or join an organization.
    """
    user_id: str = Field(..., description="Authenticated user's UUID")
    email: Optional[str] = Field(None, description="Email from the token claims")
    organizations: List[MembershipSummary] = Field(
        default_factory=list,
        description="Organizations the user belongs to"
    )
