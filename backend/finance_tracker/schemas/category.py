from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

CategoryType = Literal["income", "expense"]


class CreateCategoryCommand(BaseModel):
    name: str = Field(min_length=1)
    category_type: CategoryType = "expense"
    # 0 = root category
    parent_id: int = Field(default=0, ge=0)
    tag: str | None = None


class UpdateCategoryCommand(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    category_type: CategoryType | None = None
    parent_id: int | None = Field(default=None, ge=0)
    tag: str | None = None


class GetCategoriesQuery(BaseModel):
    category_type: CategoryType | None = None
    parent_id: int | None = Field(default=None, ge=0)
    include_inactive: bool = False


class CategoryDTO(BaseModel):
    id: int
    user_id: str
    name: str
    category_type: CategoryType
    parent_id: int
    tag: str | None
    active: bool
    created_at: datetime
    updated_at: datetime
