"""
Pydantic schemas for transaction endpoints.

Transactions are individual money movements of an organization. Expense
transactions count toward budgets; completed ones move account balances.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

TransactionType = Literal["income", "expense"]
TransactionStatus = Literal["completed", "pending"]


class TransactionResponse(BaseModel):
    id: str = Field(..., description="Transaction UUID")
    organization_id: str = Field(..., description="Owning organization UUID")
    account_id: Optional[str] = Field(None, description="Account the money moved through")
    payee: str = Field(..., description="Counterparty name")
    date: str = Field(..., description="ISO-8601 date the transaction occurred")
    amount: float = Field(..., description="Positive transaction amount")
    type: TransactionType = Field(..., description="Money direction")
    category: str = Field(..., description="Category name")
    status: TransactionStatus = Field(..., description="Settlement status")
    invoice_id: Optional[str] = Field(None, description="Invoice this transaction was generated from")
    notes: Optional[str] = Field(None, description="Free-form note")
    created_at: Optional[str] = Field(None, description="ISO-8601 timestamp when created")


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse] = Field(..., description="Organization transactions")
    count: int = Field(..., description="Number of transactions returned")
    limit: int = Field(..., description="Maximum number of transactions requested")
    offset: int = Field(..., description="Number of transactions skipped")


class TransactionCreateRequest(BaseModel):
    payee: str = Field(..., min_length=1, max_length=200, examples=["AWS Web Services"])
    date: str = Field(..., description="ISO-8601 date", examples=["2024-03-09"])
    amount: float = Field(..., gt=0, examples=[2450.00])
    type: TransactionType = Field(..., description="Money direction")
    category: str = Field(..., min_length=1, max_length=80, examples=["Infrastructure"])
    status: TransactionStatus = Field(default="completed", description="Settlement status")
    account_id: Optional[str] = Field(None, description="Account UUID the money moved through")
    notes: Optional[str] = Field(None, max_length=1000)


class TransactionCreateResponse(BaseModel):
    status: Literal["CREATED"] = Field("CREATED", description="Indicates successful creation")
    transaction: TransactionResponse = Field(..., description="The created transaction")
    message: str = Field(..., description="Success message")


class TransactionStatusResponse(BaseModel):
    status: Literal["UPDATED"] = Field("UPDATED", description="Indicates successful status change")
    transaction: TransactionResponse = Field(..., description="The updated transaction")
    message: str = Field(..., description="Success message")


class TransactionDeleteResponse(BaseModel):
    status: Literal["DELETED"] = Field("DELETED", description="Indicates successful deletion")
    transaction_id: str = Field(..., description="Deleted transaction UUID")
    message: str = Field(..., description="Success message")
