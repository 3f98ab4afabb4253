"""
Pydantic schemas for budget endpoints.

A budget is a spending cap on one category over a period, with an alert
threshold expressed as a percentage of the limit.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

BudgetPeriod = Literal["monthly", "yearly"]
BudgetStatus = Literal["ok", "warning", "exceeded"]


class BudgetResponse(BaseModel):
    """
    Budget with derived health figures.

    percent_used, remaining and status are computed on read from spent,
    limit_amount and alert_threshold.
    """
    id: str = Field(..., description="Budget UUID")
    organization_id: str = Field(..., description="Owning organization UUID")
    category: str = Field(..., description="Category name the budget tracks")
    spent: float = Field(..., description="Amount spent so far")
    limit_amount: float = Field(..., description="Spending cap for the period")
    period: BudgetPeriod = Field(..., description="Budget period")
    alert_threshold: int = Field(..., description="Percentage of the limit that triggers a warning")
    color: str = Field(..., description="Color token")
    percent_used: float = Field(..., description="spent as a percentage of limit_amount")
    remaining: float = Field(..., description="limit_amount minus spent (negative when exceeded)")
    status: BudgetStatus = Field(..., description="ok, warning (threshold reached) or exceeded")
    created_at: Optional[str] = Field(None, description="ISO-8601 timestamp when created")
    updated_at: Optional[str] = Field(None, description="ISO-8601 timestamp of last update")


class BudgetListResponse(BaseModel):
    budgets: List[BudgetResponse] = Field(..., description="Organization budgets")
    count: int = Field(..., description="Number of budgets returned")


class BudgetCreateRequest(BaseModel):
    category: str = Field(..., min_length=1, max_length=80, examples=["Infrastructure"])
    limit_amount: float = Field(..., gt=0, examples=[3000.00])
    period: BudgetPeriod = Field(default="monthly")
    alert_threshold: int = Field(default=80, ge=1, le=100)
    color: str = Field(default="bg-blue-500")
    spent: float = Field(default=0.0, ge=0, description="Amount already spent when the budget starts")


class BudgetCreateResponse(BaseModel):
    status: Literal["CREATED"] = Field("CREATED", description="Indicates successful creation")
    budget: BudgetResponse = Field(..., description="The created budget")
    message: str = Field(..., description="Success message")


class BudgetUpdateRequest(BaseModel):
    """All fields optional; at least one must be provided."""
    category: Optional[str] = Field(None, min_length=1, max_length=80)
    limit_amount: Optional[float] = Field(None, gt=0)
    period: Optional[BudgetPeriod] = Field(None)
    alert_threshold: Optional[int] = Field(None, ge=1, le=100)
    color: Optional[str] = Field(None)


class BudgetUpdateResponse(BaseModel):
    status: Literal["UPDATED"] = Field("UPDATED", description="Indicates successful update")
    budget: BudgetResponse = Field(..., description="The updated budget")
    message: str = Field(..., description="Success message")


class BudgetDeleteResponse(BaseModel):
    status: Literal["DELETED"] = Field("DELETED", description="Indicates successful deletion")
    budget_id: str = Field(..., description="Deleted budget UUID")
    message: str = Field(..., description="Success message")
