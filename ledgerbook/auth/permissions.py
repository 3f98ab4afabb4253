"""
Role-based permission checks for organization-scoped endpoints.

Every organization member holds exactly one role. Roles map to a fixed set
of permissions; the database RLS policies enforce the same matrix, so these
checks exist to fail early with a clear 403 instead of an opaque RLS error.

Role matrix:

    permission           owner  admin  accountant  viewer
    read                   x      x        x          x
    write_ledger           x      x        x
    manage_categories      x      x        x
    approve_invoices       x      x
    manage_members         x      x
    manage_organization    x      x
"""

import logging
from dataclasses import dataclass
from typing import Annotated, Callable, Coroutine, Any, Dict, FrozenSet, Optional

from fastapi import Depends, HTTPException, Path, status

from ledgerbook.auth.dependencies import AuthenticatedUser, get_authenticated_user
from ledgerbook.db.client import get_supabase_client
from ledgerbook.services.member_service import get_member_role
from ledgerbook.utils.constants import MEMBER_ROLES

logger = logging.getLogger(__name__)


class Permission:
    READ = "read"
    WRITE_LEDGER = "write_ledger"
    MANAGE_CATEGORIES = "manage_categories"
    APPROVE_INVOICES = "approve_invoices"
    MANAGE_MEMBERS = "manage_members"
    MANAGE_ORGANIZATION = "manage_organization"


ROLE_PERMISSIONS: Dict[str, FrozenSet[str]] = {
    "owner": frozenset({
        Permission.READ,
        Permission.WRITE_LEDGER,
        Permission.MANAGE_CATEGORIES,
        Permission.APPROVE_INVOICES,
        Permission.MANAGE_MEMBERS,
        Permission.MANAGE_ORGANIZATION,
    }),
    "admin": frozenset({
        Permission.READ,
        Permission.WRITE_LEDGER,
        Permission.MANAGE_CATEGORIES,
        Permission.APPROVE_INVOICES,
        Permission.MANAGE_MEMBERS,
        Permission.MANAGE_ORGANIZATION,
    }),
    "accountant": frozenset({
        Permission.READ,
        Permission.WRITE_LEDGER,
        Permission.MANAGE_CATEGORIES,
    }),
    "viewer": frozenset({
        Permission.READ,
    }),
}


def has_permission(role: Optional[str], permission: str) -> bool:
    """Return True if `role` grants `permission`. Unknown roles grant nothing."""
    if role is None:
        return False
    return permission in ROLE_PERMISSIONS.get(role, frozenset())


def can_assign_role(actor_role: str, target_role: str) -> bool:
    """
    Check whether a member with `actor_role` may give or take away `target_role`.

    Only owners hand out (or revoke) ownership. Admins may assign any other role.
    """
    if not has_permission(actor_role, Permission.MANAGE_MEMBERS):
        return False
    if target_role == "owner":
        return actor_role == "owner"
    return target_role in MEMBER_ROLES


@dataclass
class OrganizationContext:
    """The caller plus their role in the organization named in the path."""
    user_id: str
    access_token: str
    organization_id: str
    role: str

    def can(self, permission: str) -> bool:
        return has_permission(self.role, permission)


async def get_organization_context(
    organization_id: Annotated[str, Path(description="Organization UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
) -> OrganizationContext:
    """
    Resolve the caller's membership in `organization_id`.

    Raises:
        HTTPException: 403 if the caller is not a member of the organization
    """
    supabase_client = get_supabase_client(auth_user.access_token)

    role = await get_member_role(
        supabase_client=supabase_client,
        organization_id=organization_id,
        user_id=auth_user.user_id,
    )

    if role is None:
        logger.warning(f"User {auth_user.user_id} is not a member of organization {organization_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "not_a_member",
                "details": "You are not a member of this organization"
            }
        )

    return OrganizationContext(
        user_id=auth_user.user_id,
        access_token=auth_user.access_token,
        organization_id=organization_id,
        role=role,
    )


def require_permission(
    permission: str,
) -> Callable[..., Coroutine[Any, Any, OrganizationContext]]:
    """
    Build a dependency that resolves the organization context and checks `permission`.

    Usage:
        @router.post("")
        async def create(ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.WRITE_LEDGER))]):
            ...
    """
    async def _check(
        ctx: Annotated[OrganizationContext, Depends(get_organization_context)],
    ) -> OrganizationContext:
        if not ctx.can(permission):
            logger.warning(
                f"User {ctx.user_id} with role '{ctx.role}' denied '{permission}' "
                f"in organization {ctx.organization_id}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "forbidden",
                    "details": f"Role '{ctx.role}' is not allowed to {permission.replace('_', ' ')}"
                }
            )
        return ctx

    return _check
