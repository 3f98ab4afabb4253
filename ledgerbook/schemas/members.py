"""
Pydantic schemas for organization member endpoints.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from ledgerbook.schemas.organizations import MemberRole


class MemberResponse(BaseModel):
    """A member of an organization, as returned by get_organization_members."""
    member_id: str = Field(..., description="organization_members row UUID")
    user_id: str = Field(..., description="Member's user UUID")
    role: MemberRole = Field(..., description="Member's role in the organization")
    joined_at: Optional[str] = Field(None, description="ISO-8601 timestamp when the member joined")
    full_name: Optional[str] = Field(None, description="Member's display name")
    email: Optional[str] = Field(None, description="Member's email address")
    avatar_url: Optional[str] = Field(None, description="Avatar image URL")
    invited_by_name: Optional[str] = Field(None, description="Display name of the inviting member")


class MemberListResponse(BaseModel):
    members: List[MemberResponse] = Field(..., description="Organization members")
    count: int = Field(..., description="Number of members returned")


class MemberInviteRequest(BaseModel):
    """Invite a registered user into the organization."""
    email: EmailStr = Field(..., description="Email address of the user to add")
    role: MemberRole = Field(default="viewer", description="Role to grant")


class MemberInviteResponse(BaseModel):
    status: Literal["INVITED"] = Field("INVITED", description="Indicates successful invitation")
    member_id: Optional[str] = Field(None, description="New member UUID, when returned by the database")
    message: str = Field(..., description="Success message")


class MemberRoleUpdateRequest(BaseModel):
    role: MemberRole = Field(..., description="New role for the member")


class MemberRoleUpdateResponse(BaseModel):
    status: Literal["UPDATED"] = Field("UPDATED", description="Indicates successful update")
    member_id: str = Field(..., description="Updated member UUID")
    role: MemberRole = Field(..., description="The member's new role")
    message: str = Field(..., description="Success message")


class MemberRemoveResponse(BaseModel):
    status: Literal["REMOVED"] = Field("REMOVED", description="Indicates successful removal")
    member_id: str = Field(..., description="Removed member UUID")
    message: str = Field(..., description="Success message")
