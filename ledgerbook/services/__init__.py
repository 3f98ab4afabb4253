"""
Service layer for the Ledgerbook backend.

Contains business logic that:
- Enforces ledger rules (invoice lifecycle, budget tracking, account balances)
- Persists data through the caller's Supabase client (under RLS)
- Calls database RPCs for multi-step writes (organizations, members, categories)

Services act as the glue between routes (HTTP layer) and the database.
"""

from .account_service import (
    create_account,
    delete_account,
    get_account_by_id,
    get_organization_accounts,
    update_account,
)
from .budget_service import (
    create_budget,
    delete_budget,
    get_all_budgets,
    get_budget_by_id,
    update_budget,
)
from .category_service import (
    create_category,
    delete_category,
    get_all_categories,
    get_category_by_id,
)
from .invoice_service import (
    add_invoice,
    approve_invoice,
    cancel_invoice,
    get_invoice_by_id,
    get_organization_invoices,
    mark_invoice_paid,
    submit_invoice,
    update_invoice,
)
from .member_service import (
    get_organization_members,
    invite_member,
    remove_member,
    update_member_role,
)
from .organization_service import (
    create_organization,
    get_organization,
    list_user_organizations,
    update_organization,
)
from .report_service import (
    get_cash_flow,
    get_dashboard_summary,
    get_expenses_by_category,
)
from .transaction_service import (
    add_transaction,
    delete_transaction,
    get_organization_transactions,
    get_transaction_by_id,
    toggle_transaction_status,
)

__all__ = [
    "get_organization_accounts",
    "get_account_by_id",
    "create_account",
    "update_account",
    "delete_account",
    "get_all_budgets",
    "get_budget_by_id",
    "create_budget",
    "update_budget",
    "delete_budget",
    "get_all_categories",
    "get_category_by_id",
    "create_category",
    "delete_category",
    "get_organization_invoices",
    "get_invoice_by_id",
    "add_invoice",
    "update_invoice",
    "submit_invoice",
    "approve_invoice",
    "mark_invoice_paid",
    "cancel_invoice",
    "get_organization_members",
    "invite_member",
    "update_member_role",
    "remove_member",
    "create_organization",
    "list_user_organizations",
    "get_organization",
    "update_organization",
    "get_dashboard_summary",
    "get_expenses_by_category",
    "get_cash_flow",
    "get_organization_transactions",
    "get_transaction_by_id",
    "add_transaction",
    "delete_transaction",
    "toggle_transaction_status",
]
