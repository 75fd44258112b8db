"""
Stores API Endpoints
Store catalog, geographic lookup, creation and staff management
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from pydantic import ValidationError

from storefront.api.deps import (
    get_media_host,
    get_password_hasher,
    get_product_repository,
    get_settings,
    get_store_repository,
    get_user_repository,
)
from storefront.api.listing import envelope, paginated_list
from storefront.api.products import split_list, validation_message
from storefront.core.auth import authorize
from storefront.core.config import Settings
from storefront.core.errors import ClientError
from storefront.core.media import MediaHost
from storefront.domain.store import StoreCreate, StoreLocation, StoreSearch, StoreUpdate
from storefront.domain.user import User, UserCreate
from storefront.repositories import ProductRepository, StoreRepository, UserRepository
from storefront.services.store_service import StoreService

logger = logging.getLogger(__name__)

router = APIRouter()

store_admin = authorize(["STORE_ADMIN", "ADMIN"])


def get_store_service(
    stores: StoreRepository = Depends(get_store_repository),
    users: UserRepository = Depends(get_user_repository),
    products: ProductRepository = Depends(get_product_repository),
    media: MediaHost = Depends(get_media_host),
    hasher=Depends(get_password_hasher),
) -> StoreService:
    return StoreService(stores, users, products, media, hasher)


@router.get("")
def list_stores(
    request: Request,
    stores: StoreRepository = Depends(get_store_repository),
    settings: Settings = Depends(get_settings),
):
    return paginated_list(stores, request, settings)


@router.get("/recommended")
def recommended_stores(
    limit: Optional[int] = Query(None, ge=1, le=100),
    stores: StoreRepository = Depends(get_store_repository),
    settings: Settings = Depends(get_settings),
):
    """Active stores, best rated first"""
    found = stores.find_recommended(limit or settings.DEFAULT_PAGE_LIMIT)
    return envelope([store.to_dict() for store in found], count=len(found))


@router.get("/nearby")
def nearby_stores(
    distance: Optional[str] = Query(None, description="Radius in miles"),
    lat: Optional[str] = Query(None),
    lng: Optional[str] = Query(None),
    service: StoreService = Depends(get_store_service),
):
    """Stores within ``distance`` miles of (lat, lng), closest first"""
    found = service.find_nearby(distance, lat, lng)
    return envelope(found, count=len(found))


@router.post("/search")
def search_stores(
    body: StoreSearch,
    stores: StoreRepository = Depends(get_store_repository),
    settings: Settings = Depends(get_settings),
):
    found = stores.search(body.q, settings.DEFAULT_PAGE_LIMIT)
    return envelope([store.to_dict() for store in found], count=len(found))


@router.post("/create", status_code=201)
async def create_store(
    createdBy: Optional[str] = Query(None, description="User ID of the STORE_ADMIN owner"),
    name: str = Form(...),
    email: str = Form(...),
    website: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    account_number: Optional[str] = Form(None),
    license_number: Optional[str] = Form(None),
    physical_address: Optional[str] = Form(None),
    landmark: Optional[str] = Form(None),
    phones: Optional[str] = Form(None, description="Comma-separated"),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    cover_image: Optional[UploadFile] = File(None),
    service: StoreService = Depends(get_store_service),
):
    """Create a store (multipart form with an optional cover image)"""
    try:
        data = StoreCreate(
            name=name,
            email=email,
            website=website,
            description=description,
            account_number=account_number,
            license_number=license_number,
            physical_address=physical_address,
            landmark=landmark,
            phones=split_list(phones),
            latitude=latitude,
            longitude=longitude,
        )
    except ValidationError as e:
        raise ClientError(validation_message(e))

    store = await service.create_store(createdBy, data, cover_image)
    return envelope(store.to_dict(), "Store created")


@router.get("/{store_id}")
def get_store(
    store_id: UUID,
    with_inventory: bool = Query(False, description="Include the store's products"),
    service: StoreService = Depends(get_store_service),
):
    return envelope(service.get_store_details(store_id, with_inventory))


@router.patch("/{store_id}")
def update_store(
    store_id: UUID,
    changes: StoreUpdate,
    user: User = Depends(store_admin),
    service: StoreService = Depends(get_store_service),
    stores: StoreRepository = Depends(get_store_repository),
):
    service.require_owner(store_id, user)
    store = stores.update(store_id, changes.model_dump(exclude_unset=True))
    return envelope(store.to_dict(), "Store updated")


@router.delete("/{store_id}")
def delete_store(
    store_id: UUID,
    user: User = Depends(store_admin),
    service: StoreService = Depends(get_store_service),
):
    store = service.delete_store(store_id, user)
    return envelope(store.to_dict(), "Store deleted")


@router.get("/{store_id}/inventory/search")
def search_inventory(
    store_id: UUID,
    q: str = Query(..., min_length=1),
    service: StoreService = Depends(get_store_service),
    products: ProductRepository = Depends(get_product_repository),
    settings: Settings = Depends(get_settings),
):
    """Search a store's products by name, trade name or tag"""
    service.get_store(store_id)
    found = products.search_in_store(store_id, q, settings.DEFAULT_PAGE_LIMIT)
    return envelope([product.to_dict() for product in found], count=len(found))


@router.put("/{store_id}/location")
def update_location(
    store_id: UUID,
    body: StoreLocation,
    user: User = Depends(store_admin),
    service: StoreService = Depends(get_store_service),
    stores: StoreRepository = Depends(get_store_repository),
):
    service.require_owner(store_id, user)
    store = stores.update_location(store_id, body.lat, body.lng)
    return envelope(store.to_dict(), "Store location updated")


@router.post("/{store_id}/addWorker", status_code=201)
async def add_worker(
    store_id: UUID,
    email: str = Form(...),
    username: str = Form(...),
    password: str = Form(...),
    phone: Optional[str] = Form(None),
    first_name: Optional[str] = Form(None),
    last_name: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    user: User = Depends(store_admin),
    service: StoreService = Depends(get_store_service),
):
    """Create a STORE_WORKER account and add it to the store (multipart form)"""
    try:
        data = UserCreate(
            email=email,
            username=username,
            password=password,
            phone=phone,
            first_name=first_name,
            last_name=last_name,
            city=city,
        )
    except ValidationError as e:
        raise ClientError(validation_message(e))

    store, worker = await service.add_worker(store_id, user, data, avatar)
    return envelope(store.to_dict(), "Worker added", worker=worker.to_dict())
