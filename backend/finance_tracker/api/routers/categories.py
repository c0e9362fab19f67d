from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from finance_tracker.api.deps import get_category_service, get_current_user_id
from finance_tracker.core.errors import NotFound
from finance_tracker.schemas.category import (
    CategoryDTO,
    CategoryType,
    CreateCategoryCommand,
    GetCategoriesQuery,
    UpdateCategoryCommand,
)
from finance_tracker.schemas.common import DataResponse
from finance_tracker.services import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=DataResponse[list[CategoryDTO]])
def list_categories(
    type: CategoryType | None = None,
    parent_id: int | None = None,
    include_inactive: bool = False,
    service: CategoryService = Depends(get_category_service),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[list[CategoryDTO]]:
    query = GetCategoriesQuery(category_type=type, parent_id=parent_id, include_inactive=include_inactive)
    return DataResponse(data=service.list(query, user_id))


@router.post("", response_model=DataResponse[CategoryDTO], status_code=201)
def create_category(
    payload: CreateCategoryCommand,
    service: CategoryService = Depends(get_category_service),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[CategoryDTO]:
    return DataResponse(data=service.create(payload, user_id))


@router.get("/{category_id}", response_model=DataResponse[CategoryDTO])
def get_category(
    category_id: int,
    service: CategoryService = Depends(get_category_service),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[CategoryDTO]:
    category = service.get_by_id(category_id, user_id)
    if category is None:
        raise NotFound("Category not found")
    return DataResponse(data=category)


@router.patch("/{category_id}", response_model=DataResponse[CategoryDTO])
def update_category(
    category_id: int,
    payload: UpdateCategoryCommand,
    service: CategoryService = Depends(get_category_service),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[CategoryDTO]:
    return DataResponse(data=service.update(category_id, payload, user_id))


@router.delete("/{category_id}", status_code=204, response_class=Response)
def delete_category(
    category_id: int,
    service: CategoryService = Depends(get_category_service),
    user_id: str = Depends(get_current_user_id),
) -> Response:
    service.delete(category_id, user_id)
    return Response(status_code=204)
