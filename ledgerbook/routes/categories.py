"""
Category API endpoints.

Endpoints:
- GET /organizations/{organization_id}/categories - List categories
- POST /organizations/{organization_id}/categories - Create a category
- DELETE /organizations/{organization_id}/categories/{category_id} - Delete a category
"""

import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from postgrest.exceptions import APIError

from ledgerbook.auth.permissions import OrganizationContext, Permission, require_permission
from ledgerbook.db.client import get_supabase_client
from ledgerbook.schemas.categories import (
    CategoryCreateRequest,
    CategoryCreateResponse,
    CategoryDeleteResponse,
    CategoryListResponse,
    CategoryResponse,
    CategoryType,
)
from ledgerbook.services.category_service import (
    create_category,
    delete_category,
    get_all_categories,
    nest_categories,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations/{organization_id}/categories", tags=["categories"])


def _build_category_response(cat: Dict[str, Any]) -> CategoryResponse:
    subcategories = cat.get("subcategories")
    return CategoryResponse(
        id=str(cat.get("id")),
        name=cat.get("name") or "",
        type=cat.get("type", "expense"),
        parent_id=str(cat["parent_id"]) if cat.get("parent_id") else None,
        parent_name=cat.get("parent_name"),
        icon=cat.get("icon"),
        color=cat.get("color"),
        is_system=bool(cat.get("is_system", False)),
        is_active=bool(cat.get("is_active", True)),
        created_at=str(cat["created_at"]) if cat.get("created_at") else None,
        transaction_count=int(cat.get("transaction_count") or 0),
        subcategories=[_build_category_response(s) for s in subcategories] if subcategories is not None else None,
    )


@router.get(
    "",
    response_model=CategoryListResponse,
    status_code=status.HTTP_200_OK,
    summary="List categories",
    description="""
    Retrieve the organization's categories with usage counts.

    With nested=true, subcategories are returned under their parents.
    """
)
async def list_categories(
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.READ))],
    type: Optional[CategoryType] = Query(None, description="Filter by type (income|expense|transfer)"),
    nested: bool = Query(False, description="Group subcategories under their parents"),
    include_inactive: bool = Query(False, description="Include inactive categories"),
) -> CategoryListResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        categories = await get_all_categories(
            supabase_client=supabase_client,
            organization_id=ctx.organization_id,
            category_type=type,
            include_inactive=include_inactive,
        )
    except Exception as e:
        logger.error(f"Failed to fetch categories: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "fetch_error", "details": "Failed to retrieve categories"}
        )

    if nested:
        categories = nest_categories(categories)

    responses = [_build_category_response(c) for c in categories]
    return CategoryListResponse(categories=responses, count=len(responses))


@router.post(
    "",
    response_model=CategoryCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
)
async def create_new_category(
    request: CategoryCreateRequest,
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.MANAGE_CATEGORIES))]
) -> CategoryCreateResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        category_id = await create_category(
            supabase_client=supabase_client,
            organization_id=ctx.organization_id,
            name=request.name,
            category_type=request.type,
            parent_id=request.parent_id,
            icon=request.icon,
            color=request.color,
        )
    except ValueError as e:
        logger.warning(f"Validation error creating category: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "details": str(e)}
        )
    except APIError as e:
        if e.code == "23505":  # unique_violation
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"error": "duplicate_category", "details": f"A category named '{request.name}' already exists"}
            )
        logger.error(f"Database error creating category: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "create_error", "details": "Failed to create category"}
        )
    except Exception as e:
        logger.error(f"Failed to create category: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "create_error", "details": "Failed to create category"}
        )

    return CategoryCreateResponse(
        status="CREATED",
        category_id=category_id,
        message=f"{request.name} has been added successfully"
    )


@router.delete(
    "/{category_id}",
    response_model=CategoryDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete a category",
    description="""
    Delete a user-defined category. System categories cannot be deleted.
    """
)
async def delete_existing_category(
    category_id: Annotated[str, Path(description="Category UUID")],
    ctx: Annotated[OrganizationContext, Depends(require_permission(Permission.MANAGE_CATEGORIES))]
) -> CategoryDeleteResponse:
    supabase_client = get_supabase_client(ctx.access_token)

    try:
        deleted = await delete_category(supabase_client, ctx.organization_id, category_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "validation_error", "details": str(e)}
        )
    except Exception as e:
        logger.error(f"Failed to delete category {category_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "delete_error", "details": "Failed to delete category"}
        )

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "details": "Category not found"}
        )

    return CategoryDeleteResponse(
        status="DELETED",
        category_id=category_id,
        message="Category has been removed"
    )
