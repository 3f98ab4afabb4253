"""
Pydantic schemas for invoice endpoints.

Invoice lifecycle:

    draft -> pending_approval -> approved -> paid

Any status before paid can also move to cancelled.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ledgerbook.schemas.transactions import TransactionResponse

InvoiceStatus = Literal["draft", "pending_approval", "approved", "paid", "cancelled"]


class InvoiceResponse(BaseModel):
    id: str = Field(..., description="Invoice UUID")
    organization_id: str = Field(..., description="Owning organization UUID")
    invoice_number: str = Field(..., description="Sequential number within the organization", examples=["INV-002"])
    client: str = Field(..., description="Billed client")
    amount: float = Field(..., description="Invoice total")
    date: str = Field(..., description="ISO-8601 issue date")
    due_date: str = Field(..., description="ISO-8601 payment due date")
    status: InvoiceStatus = Field(..., description="Lifecycle status")
    account_id: Optional[str] = Field(None, description="Account the payment is expected in")
    notes: Optional[str] = Field(None, description="Free-form note")
    created_at: Optional[str] = Field(None, description="ISO-8601 timestamp when created")


class InvoiceListResponse(BaseModel):
    invoices: List[InvoiceResponse] = Field(..., description="Organization invoices")
    count: int = Field(..., description="Number of invoices returned")


class InvoiceCreateRequest(BaseModel):
    client: str = Field(..., min_length=1, max_length=200, examples=["MegaCorp"])
    amount: float = Field(..., gt=0, examples=[4500.00])
    date: str = Field(..., description="ISO-8601 issue date", examples=["2024-03-10"])
    due_date: str = Field(..., description="ISO-8601 due date", examples=["2024-03-24"])
    account_id: Optional[str] = Field(None, description="Account the payment is expected in")
    notes: Optional[str] = Field(None, max_length=1000)


class InvoiceUpdateRequest(BaseModel):
    """Edit a draft invoice. All fields optional; at least one must be provided."""
    client: Optional[str] = Field(None, min_length=1, max_length=200)
    amount: Optional[float] = Field(None, gt=0)
    date: Optional[str] = Field(None)
    due_date: Optional[str] = Field(None)
    account_id: Optional[str] = Field(None)
    notes: Optional[str] = Field(None, max_length=1000)


class InvoiceMutationResponse(BaseModel):
    """
    Response for invoice create/update/status changes.

    `transaction` is set when the change created or settled the linked
    income transaction (approve, mark-paid).
    """
    status: Literal["CREATED", "UPDATED"] = Field(..., description="Kind of change")
    invoice: InvoiceResponse = Field(..., description="The invoice after the change")
    transaction: Optional[TransactionResponse] = Field(None, description="Linked transaction, if affected")
    message: str = Field(..., description="Success message")
