"""
Categories API Endpoints.

List and create the categories used to group the catalog.
"""

from typing import List

from fastapi import APIRouter, HTTPException, status

from api.models import CategoryCreateRequest, CategoryResponse
from domain.category import Category
from repositories.category_repository import create_category, list_categories

router = APIRouter()


def category_to_response(category: Category) -> CategoryResponse:
    return CategoryResponse(
        category_id=category.category_id,
        name=category.name,
        description=category.description,
    )


@router.get(
    "/categories",
    response_model=List[CategoryResponse],
    summary="List Categories",
    description="Active categories ordered by name."
)
def get_categories():
    try:
        found = list_categories()
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to list categories: {str(e)}")

    return [category_to_response(c) for c in found]


@router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Category",
    responses={400: {"description": "Empty or duplicate category name"}}
)
def add_category(request: CategoryCreateRequest):
    """
    Create a category.

    **Example usage:** `POST /api/v1/categories` with `{"name": "Oficina"}`
    """
    try:
        category = create_category(request.name, request.description)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=f"Failed to create category: {str(e)}")

    return category_to_response(category)
