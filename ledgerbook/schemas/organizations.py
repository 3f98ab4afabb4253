"""
Pydantic schemas for organization endpoints.

An organization is the tenant that owns accounts, transactions, budgets,
invoices, categories and members.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

MemberRole = Literal["owner", "admin", "accountant", "viewer"]


class OrganizationResponse(BaseModel):
    """Organization details, with the caller's role when listed from memberships."""
    id: str = Field(..., description="Organization UUID")
    name: str = Field(..., description="Organization display name")
    slug: Optional[str] = Field(None, description="URL-friendly unique identifier")
    currency: str = Field(..., description="ISO currency code used for all amounts")
    timezone: str = Field(..., description="IANA timezone name")
    fiscal_year_start: int = Field(..., description="Month (1-12) the fiscal year begins")
    role: Optional[MemberRole] = Field(None, description="The caller's role in this organization")
    created_at: Optional[str] = Field(None, description="ISO-8601 timestamp when created")
    updated_at: Optional[str] = Field(None, description="ISO-8601 timestamp of last update")


class OrganizationListResponse(BaseModel):
    organizations: List[OrganizationResponse] = Field(..., description="Organizations the caller belongs to")
    count: int = Field(..., description="Number of organizations returned")


class OrganizationCreateRequest(BaseModel):
    """
    Request to create an organization.

    The caller becomes its owner.
    """
    name: str = Field(
        ...,
        min_length=2,
        max_length=120,
        description="Organization name",
        examples=["Acme Corporation"]
    )
    currency: Optional[str] = Field(
        None,
        min_length=3,
        max_length=3,
        description="ISO currency code (defaults to the server's DEFAULT_CURRENCY)",
        examples=["USD", "EUR"]
    )
    timezone: Optional[str] = Field(
        None,
        description="IANA timezone name (defaults to the server's DEFAULT_TIMEZONE)",
        examples=["UTC", "America/New_York"]
    )
    fiscal_year_start: int = Field(
        default=1,
        ge=1,
        le=12,
        description="Month the fiscal year begins"
    )


class OrganizationCreateResponse(BaseModel):
    status: Literal["CREATED"] = Field("CREATED", description="Indicates successful creation")
    organization: OrganizationResponse = Field(..., description="The created organization")
    message: str = Field(..., description="Success message")


class OrganizationUpdateRequest(BaseModel):
    """
    Request to update organization settings.

    All fields are optional; at least one must be provided.
    """
    name: Optional[str] = Field(None, min_length=2, max_length=120)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    timezone: Optional[str] = Field(None)
    fiscal_year_start: Optional[int] = Field(None, ge=1, le=12)


class OrganizationUpdateResponse(BaseModel):
    status: Literal["UPDATED"] = Field("UPDATED", description="Indicates successful update")
    organization: OrganizationResponse = Field(..., description="The updated organization")
    message: str = Field(..., description="Success message")
