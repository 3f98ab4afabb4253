"""
Tests for report aggregation.
"""

from datetime import date

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from ledgerbook.services.report_service import (
    REPORT_PAGE_SIZE,
    expenses_by_category,
    fiscal_year_bounds,
    fiscal_year_months,
    get_cash_flow,
    get_expenses_by_category,
    monthly_cash_flow,
    summarize_dashboard,
)


def _txn(date_str, type_, amount, status="completed", category="Misc"):
    return {"date": date_str, "type": type_, "amount": amount, "status": status, "category": category}


class TestFiscalYear:

    def test_calendar_fiscal_year(self):
        assert fiscal_year_bounds(2024, 1) == (date(2024, 1, 1), date(2024, 12, 31))

    def test_april_fiscal_year_spans_two_calendar_years(self):
        months = fiscal_year_months(2024, 4)
        assert months[0] == (2024, 4)
        assert months[-1] == (2025, 3)
        assert fiscal_year_bounds(2024, 4) == (date(2024, 4, 1), date(2025, 3, 31))

    def test_latest_fiscal_year_ends_in_year_9999(self):
        assert fiscal_year_bounds(9998, 12) == (date(9998, 12, 1), date(9999, 11, 30))


class TestDashboard:

    def test_summary(self):
        accounts = [{"balance": 146152.50}, {"balance": 45000.00}, {"balance": -2340.50}]
        transactions = [
            _txn("2024-03-01", "income", 5000),
            _txn("2024-03-05", "expense", 1200),
            _txn("2024-03-07", "income", 900, status="pending"),
            _txn("2024-02-28", "expense", 300),
        ]
        invoices = [
            {"status": "approved", "amount": 4500, "due_date": "2024-03-01"},
            {"status": "pending_approval", "amount": 1000, "due_date": "2024-04-01"},
            {"status": "paid", "amount": 700, "due_date": "2024-01-01"},
            {"status": "draft", "amount": 50, "due_date": "2024-01-01"},
        ]
        budgets = [{"status": "ok"}, {"status": "warning"}, {"status": "exceeded"}]

        summary = summarize_dashboard(accounts, transactions, invoices, budgets, "2024-03", date(2024, 3, 15))

        assert summary["total_balance"] == 188812.0
        assert summary["monthly_income"] == 5000.0
        assert summary["monthly_expenses"] == 1200.0
        assert summary["net_income"] == 3800.0
        assert summary["open_invoices"] == 2
        assert summary["open_invoices_amount"] == 5500.0
        assert summary["overdue_invoices"] == 1
        assert summary["budgets_warning"] == 1
        assert summary["budgets_exceeded"] == 1


class TestExpensesByCategory:

    def test_largest_first_with_share(self):
        rows = expenses_by_category([
            _txn("2024-03-01", "expense", 300, category="Travel"),
            _txn("2024-03-02", "expense", 600, category="Software"),
            _txn("2024-03-03", "expense", 100, category="Travel", status="pending"),
            _txn("2024-03-04", "income", 5000, category="Sales"),
        ])

        assert rows == [
            {"category": "Software", "total": 600.0, "share": 60.0},
            {"category": "Travel", "total": 400.0, "share": 40.0},
        ]

    def test_no_expenses(self):
        assert expenses_by_category([]) == []


class TestCashFlow:

    def test_twelve_months_in_fiscal_order(self):
        rows = monthly_cash_flow(
            [
                _txn("2024-04-10", "income", 1000),
                _txn("2024-04-12", "expense", 250),
                _txn("2025-03-01", "expense", 100),
                _txn("2024-05-01", "income", 999, status="pending"),
                _txn("2023-12-01", "income", 5),
            ],
            fiscal_year=2024,
            fiscal_year_start=4,
        )

        assert len(rows) == 12
        assert rows[0] == {"month": "2024-04", "label": "Apr 2024", "income": 1000.0, "expenses": 250.0, "net": 750.0}
        assert rows[1]["income"] == 0.0
        assert rows[-1]["month"] == "2025-03"
        assert rows[-1]["net"] == -100.0


class TestReportPaging:
    """Reports read every page, not just the first max-rows rows."""

    SERVICE = "ledgerbook.services.report_service"

    @pytest.mark.asyncio
    async def test_cash_flow_sums_rows_beyond_first_page(self):
        first_page = [_txn("2024-04-10", "income", 1.0)] * REPORT_PAGE_SIZE
        second_page = [_txn("2024-05-10", "income", 2.0)] * 500

        with patch(f"{self.SERVICE}.get_organization_transactions", new_callable=AsyncMock,
                   side_effect=[first_page, second_page]) as mock_fetch:
            rows = await get_cash_flow(MagicMock(), "org-123", 2024, 4)

        assert rows[0]["income"] == float(REPORT_PAGE_SIZE)
        assert rows[1]["income"] == 1000.0
        assert [c.kwargs["offset"] for c in mock_fetch.call_args_list] == [0, REPORT_PAGE_SIZE]
        assert all(c.kwargs["limit"] == REPORT_PAGE_SIZE for c in mock_fetch.call_args_list)
        assert mock_fetch.call_args.kwargs["from_date"] == "2024-04-01"

    @pytest.mark.asyncio
    async def test_full_last_page_triggers_one_more_read(self):
        page = [_txn("2024-03-01", "expense", 1.0, category="Software")] * REPORT_PAGE_SIZE

        with patch(f"{self.SERVICE}.get_organization_transactions", new_callable=AsyncMock,
                   side_effect=[page, page, []]) as mock_fetch:
            breakdown = await get_expenses_by_category(MagicMock(), "org-123")

        assert mock_fetch.await_count == 3
        assert breakdown == [{"category": "Software", "total": 2.0 * REPORT_PAGE_SIZE, "share": 100.0}]
