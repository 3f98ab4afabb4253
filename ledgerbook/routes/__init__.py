"""
FastAPI routers for all API endpoints.

Each module defines a router for one area (organizations, members, invoices, ...).
Organization-scoped routers live under /organizations/{organization_id} and
resolve the caller's role through auth.permissions before touching data.
"""
