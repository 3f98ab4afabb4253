"""
Bookkeeping rules shared by the transaction, budget and invoice services.

These functions hold no database access. Services fetch rows, ask these
rules what should change, and persist the result.

RULES:
1. Only expense transactions count toward budget `spent`
2. Only completed transactions that reference an account move its balance
   (income adds, expense subtracts)
3. Invoice status moves along INVOICE_TRANSITIONS; `paid` and `cancelled` are terminal
4. Approving an invoice yields a pending income transaction linked by invoice_id
"""

import re
from datetime import date
from typing import Any, Dict, FrozenSet, Iterable, Optional

from ledgerbook.utils.constants import (
    INVOICE_INCOME_CATEGORY,
    INVOICE_NUMBER_PREFIX,
    INVOICE_NUMBER_WIDTH,
)

TRANSACTION_TYPES = ("income", "expense")
TRANSACTION_STATUSES = ("completed", "pending")

INVOICE_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "draft": frozenset({"pending_approval", "approved", "cancelled"}),
    "pending_approval": frozenset({"approved", "cancelled"}),
    "approved": frozenset({"paid", "cancelled"}),
    "paid": frozenset(),
    "cancelled": frozenset(),
}

_INVOICE_NUMBER_RE = re.compile(rf"^{re.escape(INVOICE_NUMBER_PREFIX)}(\d+)$")


class InvalidTransitionError(ValueError):
    """Raised when a record is asked to move to a status it cannot reach."""

    def __init__(self, entity: str, current: str, target: str):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"Cannot move {entity} from '{current}' to '{target}'")


def ensure_invoice_transition(current: str, target: str) -> None:
    """
    Validate an invoice status change.

    Raises:
        InvalidTransitionError: If `target` is not reachable from `current`
    """
    if target not in INVOICE_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError("invoice", current, target)


def toggled_status(status: str) -> str:
    """pending -> completed, completed -> pending."""
    if status not in TRANSACTION_STATUSES:
        raise ValueError(f"Invalid transaction status: {status}")
    return "completed" if status == "pending" else "pending"


def balance_delta(transaction_type: str, amount: float) -> float:
    """Signed effect of a transaction amount on an account balance."""
    if transaction_type not in TRANSACTION_TYPES:
        raise ValueError(f"Invalid transaction type: {transaction_type}")
    return float(amount) if transaction_type == "income" else -float(amount)


def settled_balance_effect(transaction: Dict[str, Any]) -> float:
    """
    Balance change a transaction currently contributes to its account.

    Pending transactions and transactions without an account contribute nothing.
    """
    if not transaction.get("account_id") or transaction.get("status") != "completed":
        return 0.0
    return balance_delta(transaction["type"], transaction.get("amount") or 0.0)


def budget_health(
    spent: float,
    limit_amount: float,
    alert_threshold: float,
) -> Dict[str, Any]:
    """
    Derived budget figures.

    Returns:
        Dict with percent_used (0-100+, 2 decimals), remaining (may be
        negative) and status: 'exceeded' when spent > limit, 'warning' when
        spent has reached alert_threshold percent of the limit, else 'ok'.
    """
    spent = float(spent or 0.0)
    limit_amount = float(limit_amount)

    percent_used = round(spent / limit_amount * 100, 2) if limit_amount > 0 else 0.0
    remaining = round(limit_amount - spent, 2)

    if spent > limit_amount:
        health = "exceeded"
    elif limit_amount > 0 and spent * 100 >= alert_threshold * limit_amount:
        health = "warning"
    else:
        health = "ok"

    return {
        "percent_used": percent_used,
        "remaining": remaining,
        "status": health,
    }


def next_invoice_number(existing_numbers: Iterable[Optional[str]]) -> str:
    """
    Next sequential invoice number for an organization.

    Numbers that don't follow the INV-NNN pattern are ignored.

    >>> next_invoice_number(["INV-001", "INV-007", "legacy"])
    'INV-008'
    """
    highest = 0
    for number in existing_numbers:
        if not number:
            continue
        match = _INVOICE_NUMBER_RE.match(number)
        if match:
            highest = max(highest, int(match.group(1)))

    return f"{INVOICE_NUMBER_PREFIX}{highest + 1:0{INVOICE_NUMBER_WIDTH}d}"


def build_invoice_income_transaction(
    invoice: Dict[str, Any],
    on_date: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Transaction record created when an invoice is approved.

    The money has not arrived yet, so the transaction starts out pending.
    """
    on_date = on_date or date.today()
    return {
        "organization_id": invoice["organization_id"],
        "payee": invoice["client"],
        "date": on_date.isoformat(),
        "amount": float(invoice["amount"]),
        "type": "income",
        "category": INVOICE_INCOME_CATEGORY,
        "status": "pending",
        "invoice_id": invoice["id"],
        "account_id": invoice.get("account_id"),
    }
