"""
Pydantic schemas for category endpoints.

Categories classify transactions. They can be nested one level deep.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

CategoryType = Literal["income", "expense", "transfer"]


class CategoryResponse(BaseModel):
    """
    Category with usage details from get_organization_categories_detailed.
    """
    id: str = Field(..., description="Category UUID")
    name: str = Field(..., description="Category display name")
    type: CategoryType = Field(..., description="Money direction the category applies to")
    parent_id: Optional[str] = Field(None, description="Parent category UUID (null for top-level)")
    parent_name: Optional[str] = Field(None, description="Parent category name")
    icon: Optional[str] = Field(None, description="Emoji or icon identifier")
    color: Optional[str] = Field(None, description="Color token (e.g. bg-blue-500)")
    is_system: bool = Field(False, description="Seeded by the system; cannot be deleted")
    is_active: bool = Field(True, description="Whether the category can be used for new transactions")
    created_at: Optional[str] = Field(None, description="ISO-8601 timestamp when created")
    transaction_count: int = Field(0, description="Number of transactions using this category")
    subcategories: Optional[List["CategoryResponse"]] = Field(
        None,
        description="Child categories (only when listing with nested=true)"
    )


class CategoryListResponse(BaseModel):
    categories: List[CategoryResponse] = Field(..., description="Organization categories")
    count: int = Field(..., description="Number of top-level entries returned")


class CategoryCreateRequest(BaseModel):
    name: str = Field(
        ...,
        min_length=2,
        max_length=80,
        description="Category name",
        examples=["Infrastructure", "Consulting"]
    )
    type: CategoryType = Field(default="expense", description="Money direction")
    parent_id: Optional[str] = Field(None, description="Parent category UUID for a subcategory")
    icon: Optional[str] = Field(None, description="Emoji or icon identifier", examples=["💼"])
    color: Optional[str] = Field(None, description="Color token", examples=["bg-blue-500"])


class CategoryCreateResponse(BaseModel):
    status: Literal["CREATED"] = Field("CREATED", description="Indicates successful creation")
    category_id: str = Field(..., description="New category UUID")
    message: str = Field(..., description="Success message")


class CategoryDeleteResponse(BaseModel):
    status: Literal["DELETED"] = Field("DELETED", description="Indicates successful deletion")
    category_id: str = Field(..., description="Deleted category UUID")
    message: str = Field(..., description="Success message")


CategoryResponse.model_rebuild()
