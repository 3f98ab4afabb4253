"""
Pydantic schemas for account endpoints.

Accounts are the bank, savings, card and investment accounts of an organization.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

AccountType = Literal["checking", "savings", "credit_card", "investment"]
AccountIcon = Literal["Building2", "Landmark", "CreditCard"]


class AccountResponse(BaseModel):
    id: str = Field(..., description="Account UUID")
    organization_id: str = Field(..., description="Owning organization UUID")
    name: str = Field(..., description="Account display name")
    type: AccountType = Field(..., description="Kind of account")
    balance: float = Field(..., description="Current balance")
    last_four: Optional[str] = Field(None, description="Last four digits of the account number")
    icon_name: AccountIcon = Field(..., description="Icon identifier")
    color: str = Field(..., description="Color token")
    created_at: Optional[str] = Field(None, description="ISO-8601 timestamp when created")
    updated_at: Optional[str] = Field(None, description="ISO-8601 timestamp of last update")


class AccountListResponse(BaseModel):
    accounts: List[AccountResponse] = Field(..., description="Organization accounts")
    count: int = Field(..., description="Number of accounts returned")
    total_balance: float = Field(..., description="Sum of all account balances")


class AccountCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120, examples=["Business Checking"])
    type: AccountType = Field(..., description="Kind of account")
    balance: float = Field(default=0.0, description="Opening balance", examples=[146152.50])
    last_four: Optional[str] = Field(
        None,
        pattern=r"^\d{4}$",
        description="Last four digits of the account number",
        examples=["4242"]
    )
    icon_name: AccountIcon = Field(default="Building2", description="Icon identifier")
    color: str = Field(default="bg-blue-500", description="Color token")


class AccountCreateResponse(BaseModel):
    status: Literal["CREATED"] = Field("CREATED", description="Indicates successful creation")
    account: AccountResponse = Field(..., description="The created account")
    message: str = Field(..., description="Success message")


class AccountUpdateRequest(BaseModel):
    """
    Request to update account details.

    The balance is not editable; it changes only through transactions.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    type: Optional[AccountType] = Field(None)
    last_four: Optional[str] = Field(None, pattern=r"^\d{4}$")
    icon_name: Optional[AccountIcon] = Field(None)
    color: Optional[str] = Field(None)


class AccountUpdateResponse(BaseModel):
    status: Literal["UPDATED"] = Field("UPDATED", description="Indicates successful update")
    account: AccountResponse = Field(..., description="The updated account")
    message: str = Field(..., description="Success message")


class AccountDeleteResponse(BaseModel):
    status: Literal["DELETED"] = Field("DELETED", description="Indicates successful deletion")
    account_id: str = Field(..., description="Deleted account UUID")
    message: str = Field(..., description="Success message")
