"""
Tests for the pure bookkeeping rules.
"""

from datetime import date

import pytest

from ledgerbook.services.ledger_rules import (
    InvalidTransitionError,
    balance_delta,
    budget_health,
    build_invoice_income_transaction,
    ensure_invoice_transition,
    next_invoice_number,
    settled_balance_effect,
    toggled_status,
)


class TestInvoiceTransitions:

    @pytest.mark.parametrize("current,target", [
        ("draft", "pending_approval"),
        ("pending_approval", "approved"),
        ("approved", "paid"),
        ("draft", "cancelled"),
        ("pending_approval", "cancelled"),
        ("approved", "cancelled"),
    ])
    def test_allowed_transitions(self, current, target):
        ensure_invoice_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        ("draft", "paid"),
        ("pending_approval", "paid"),
        ("paid", "cancelled"),
        ("cancelled", "draft"),
        ("paid", "approved"),
    ])
    def test_rejected_transitions(self, current, target):
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_invoice_transition(current, target)

        assert exc_info.value.current == current
        assert exc_info.value.target == target

    def test_invalid_transition_is_a_value_error(self):
        with pytest.raises(ValueError):
            ensure_invoice_transition("paid", "draft")


class TestTransactionStatus:

    def test_toggle_flips_status(self):
        assert toggled_status("pending") == "completed"
        assert toggled_status("completed") == "pending"

    def test_toggle_rejects_unknown_status(self):
        with pytest.raises(ValueError):
            toggled_status("void")


class TestBalanceEffects:

    def test_income_adds_and_expense_subtracts(self):
        assert balance_delta("income", 100) == 100.0
        assert balance_delta("expense", 40.5) == -40.5

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            balance_delta("transfer", 10)

    def test_completed_transaction_with_account_moves_balance(self):
        txn = {"type": "expense", "amount": 25, "status": "completed", "account_id": "acc-1"}
        assert settled_balance_effect(txn) == -25.0

    def test_pending_transaction_has_no_effect(self):
        txn = {"type": "income", "amount": 25, "status": "pending", "account_id": "acc-1"}
        assert settled_balance_effect(txn) == 0.0

    def test_transaction_without_account_has_no_effect(self):
        txn = {"type": "income", "amount": 25, "status": "completed", "account_id": None}
        assert settled_balance_effect(txn) == 0.0


class TestBudgetHealth:

    def test_under_threshold_is_ok(self):
        health = budget_health(spent=500, limit_amount=1000, alert_threshold=80)
        assert health == {"percent_used": 50.0, "remaining": 500.0, "status": "ok"}

    def test_threshold_reached_is_warning(self):
        assert budget_health(800, 1000, 80)["status"] == "warning"

    def test_exactly_at_limit_is_warning_not_exceeded(self):
        health = budget_health(1000, 1000, 80)
        assert health["status"] == "warning"
        assert health["remaining"] == 0.0

    def test_over_limit_is_exceeded(self):
        health = budget_health(1250, 1000, 80)
        assert health["status"] == "exceeded"
        assert health["percent_used"] == 125.0
        assert health["remaining"] == -250.0

    def test_warning_uses_unrounded_ratio(self):
        # 79.996% rounds to 80.0 for display but has not reached the threshold
        health = budget_health(79.996, 100, 80)
        assert health["percent_used"] == 80.0
        assert health["status"] == "ok"

    def test_exact_threshold_is_warning(self):
        assert budget_health(80, 100, 80)["status"] == "warning"


class TestInvoiceNumbers:

    def test_first_invoice(self):
        assert next_invoice_number([]) == "INV-001"

    def test_continues_from_highest(self):
        assert next_invoice_number(["INV-002", "INV-010", "INV-003"]) == "INV-011"

    def test_ignores_foreign_numbers(self):
        assert next_invoice_number(["legacy-77", None, "INV-004"]) == "INV-005"

    def test_grows_past_padding(self):
        assert next_invoice_number(["INV-999"]) == "INV-1000"


class TestInvoiceIncomeTransaction:

    def test_builds_pending_sales_income(self):
        invoice = {
            "id": "inv-1",
            "organization_id": "org-1",
            "client": "MegaCorp",
            "amount": "4500.00",
            "account_id": "acc-1",
        }

        txn = build_invoice_income_transaction(invoice, date(2024, 3, 15))

        assert txn == {
            "organization_id": "org-1",
            "payee": "MegaCorp",
            "date": "2024-03-15",
            "amount": 4500.0,
            "type": "income",
            "category": "Sales",
            "status": "pending",
            "invoice_id": "inv-1",
            "account_id": "acc-1",
        }
