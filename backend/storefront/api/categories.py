"""
Categories API Endpoints
Category tree management and queries
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Request

from storefront.api.deps import get_category_repository, get_settings
from storefront.api.listing import envelope, paginated_list
from storefront.core.auth import authenticate
from storefront.core.config import Settings
from storefront.domain.category import CategoryCreate, CategoryUpdate
from storefront.domain.user import User
from storefront.repositories import CategoryRepository
from storefront.services.category_service import CategoryService

router = APIRouter()


def get_category_service(categories: CategoryRepository = Depends(get_category_repository)) -> CategoryService:
    return CategoryService(categories)


@router.get("")
def list_categories(
    request: Request,
    categories: CategoryRepository = Depends(get_category_repository),
    settings: Settings = Depends(get_settings),
):
    return paginated_list(categories, request, settings)


@router.post("", status_code=201)
def create_category(
    data: CategoryCreate,
    user: User = Depends(authenticate),
    service: CategoryService = Depends(get_category_service),
):
    category = service.create_category(data)
    return envelope(category.to_dict(), "Category created")


@router.get("/{category_id}")
def get_category(category_id: UUID, service: CategoryService = Depends(get_category_service)):
    """Category details including its direct subcategories"""
    return envelope(service.get_category_details(category_id).to_dict())


@router.patch("/{category_id}")
def update_category(
    category_id: UUID,
    changes: CategoryUpdate,
    user: User = Depends(authenticate),
    service: CategoryService = Depends(get_category_service),
):
    category = service.update_category(category_id, changes)
    return envelope(category.to_dict(), "Category updated")


@router.delete("/{category_id}")
def delete_category(
    category_id: UUID,
    user: User = Depends(authenticate),
    service: CategoryService = Depends(get_category_service),
):
    category = service.delete_category(category_id)
    return envelope(category.to_dict(), "Category deleted")
