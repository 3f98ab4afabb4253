"""
Pydantic schemas for report endpoints.
"""

from typing import List

from pydantic import BaseModel, Field


class DashboardSummaryResponse(BaseModel):
    month: str = Field(..., description="Reporting month (YYYY-MM)")
    total_balance: float = Field(..., description="Sum of all account balances")
    monthly_income: float = Field(..., description="Completed income this month")
    monthly_expenses: float = Field(..., description="Completed expenses this month")
    net_income: float = Field(..., description="monthly_income minus monthly_expenses")
    open_invoices: int = Field(..., description="Invoices awaiting approval or payment")
    open_invoices_amount: float = Field(..., description="Total of open invoices")
    overdue_invoices: int = Field(..., description="Open invoices past their due date")
    budgets_warning: int = Field(..., description="Budgets at or past their alert threshold")
    budgets_exceeded: int = Field(..., description="Budgets over their limit")


class CategoryExpense(BaseModel):
    category: str = Field(..., description="Category name")
    total: float = Field(..., description="Expense total for the category")
    share: float = Field(..., description="Percentage of all expenses")


class ExpensesByCategoryResponse(BaseModel):
    categories: List[CategoryExpense] = Field(..., description="Largest category first")
    total: float = Field(..., description="Sum of all expenses")


class CashFlowMonth(BaseModel):
    month: str = Field(..., description="YYYY-MM")
    label: str = Field(..., description="Display label", examples=["Jan 2024"])
    income: float
    expenses: float
    net: float


class CashFlowResponse(BaseModel):
    fiscal_year: int = Field(..., description="Calendar year the fiscal year starts in")
    fiscal_year_start: int = Field(..., description="First month of the fiscal year")
    months: List[CashFlowMonth] = Field(..., description="12 months in fiscal order")
    total_income: float
    total_expenses: float
    net: float
