"""
Shared constants for the Ledgerbook backend.

Values mirror the CHECK constraints and defaults defined in the database.
"""

# Member roles, most privileged first
MEMBER_ROLES = ("owner", "admin", "accountant", "viewer")

# Category assigned to the income transaction created when an invoice is approved
INVOICE_INCOME_CATEGORY = "Sales"

# Invoice numbers look like INV-001, INV-002, ...
INVOICE_NUMBER_PREFIX = "INV-"
INVOICE_NUMBER_WIDTH = 3
# Tries at a fresh number when a concurrent insert took the one we picked
INVOICE_NUMBER_ATTEMPTS = 3

# Budget alert threshold (percentage of limit) when none is given
DEFAULT_BUDGET_ALERT_THRESHOLD = 80

DEFAULT_CATEGORY_COLOR = "bg-blue-500"
DEFAULT_ACCOUNT_COLOR = "bg-blue-500"
DEFAULT_ACCOUNT_ICON = "Building2"

# Invoice statuses that still expect payment
OPEN_INVOICE_STATUSES = ("pending_approval", "approved")
