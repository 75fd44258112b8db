"""
Products API Endpoints
Handles product catalog management and queries

Reads are public; every write needs a STORE_ADMIN or STORE_WORKER of the
store that lists the product.
"""
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from pydantic import ValidationError

from storefront.api.deps import (
    get_category_repository,
    get_media_host,
    get_product_repository,
    get_settings,
    get_store_repository,
)
from storefront.api.listing import envelope, paginated_list
from storefront.core.auth import authorize
from storefront.core.config import Settings
from storefront.core.errors import ClientError
from storefront.core.media import MediaHost
from storefront.domain.product import CategoryAssignment, DiscountChange, ProductCreate, ProductUpdate
from storefront.domain.user import User
from storefront.repositories import CategoryRepository, ProductRepository, StoreRepository
from storefront.services.product_service import ProductService

router = APIRouter()

store_staff = authorize(["STORE_ADMIN", "STORE_WORKER"])


def get_product_service(
    products: ProductRepository = Depends(get_product_repository),
    stores: StoreRepository = Depends(get_store_repository),
    categories: CategoryRepository = Depends(get_category_repository),
    media: MediaHost = Depends(get_media_host),
    settings: Settings = Depends(get_settings),
) -> ProductService:
    return ProductService(products, stores, categories, media, max_images=settings.MAX_PRODUCT_IMAGES)


def split_list(raw: Optional[str]) -> List[str]:
    """Comma-separated form value -> list of trimmed, non-empty items"""
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid data")


@router.get("")
def list_products(
    request: Request,
    products: ProductRepository = Depends(get_product_repository),
    settings: Settings = Depends(get_settings),
):
    """
    List products

    Supports field filters (``price=gt:100``, ``categories=<id>``,
    ``pricing.currency=UGX``), ``select``, ``sort``, ``page`` and ``limit``.
    """
    return paginated_list(products, request, settings)


@router.post("", status_code=201)
def create_product(
    data: ProductCreate,
    user: User = Depends(store_staff),
    service: ProductService = Depends(get_product_service),
):
    product = service.create_product(data, user)
    return envelope(product.to_dict(), "Product created")


@router.post("/register", status_code=201)
async def register_product(
    store: UUID = Query(..., description="Store that lists the product"),
    name: str = Form(...),
    tradename: Optional[str] = Form(None),
    catch_phrase: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    directions: Optional[str] = Form(None),
    manufacturer: Optional[str] = Form(None),
    tags: Optional[str] = Form(None, description="Comma-separated"),
    categories: Optional[str] = Form(None, description="Comma-separated category IDs"),
    price: Decimal = Form(Decimal("0")),
    discount: Decimal = Form(Decimal("0")),
    currency: Optional[str] = Form(None),
    size: Optional[str] = Form(None),
    quantity: Optional[str] = Form(None),
    weight: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    user: User = Depends(store_staff),
    service: ProductService = Depends(get_product_service),
    settings: Settings = Depends(get_settings),
):
    """Register a product with up to five images (multipart form)"""
    try:
        data = ProductCreate(
            name=name,
            store=store,
            tradename=tradename,
            catch_phrase=catch_phrase,
            description=description,
            directions=directions,
            manufacturer=manufacturer,
            tags=split_list(tags),
            categories=split_list(categories),
            pricing={
                "price": price,
                "discount": discount,
                "currency": currency or settings.DEFAULT_CURRENCY,
            },
            packaging={"size": size, "quantity": quantity, "weight": weight},
        )
    except ValidationError as e:
        raise ClientError(validation_message(e))

    product = await service.register_product(data, user, images)
    return envelope(product.to_dict(), "Product registered")


@router.get("/{product_id}")
def get_product(product_id: UUID, service: ProductService = Depends(get_product_service)):
    return envelope(service.get_product(product_id).to_dict())


@router.patch("/{product_id}")
def update_product(
    product_id: UUID,
    changes: ProductUpdate,
    user: User = Depends(store_staff),
    service: ProductService = Depends(get_product_service),
):
    product = service.update_product(product_id, changes, user)
    return envelope(product.to_dict(), "Product updated")


@router.put("/{product_id}/change-discount")
def change_discount(
    product_id: UUID,
    body: DiscountChange,
    user: User = Depends(store_staff),
    service: ProductService = Depends(get_product_service),
):
    product = service.change_discount(product_id, body.discount, user)
    return envelope(product.to_dict(), "Discount updated")


@router.put("/{product_id}/categories")
def set_categories(
    product_id: UUID,
    body: CategoryAssignment,
    user: User = Depends(store_staff),
    service: ProductService = Depends(get_product_service),
):
    product = service.set_categories(product_id, body.categories, user)
    return envelope(product.to_dict(), "Categories updated")


@router.delete("/{product_id}")
def delete_product(
    product_id: UUID,
    user: User = Depends(store_staff),
    service: ProductService = Depends(get_product_service),
):
    product = service.delete_product(product_id, user)
    return envelope(product.to_dict(), "Product deleted")
