"""
Store Service
Store creation, removal, worker onboarding and the geographic lookup

Store creation checks the designated owner before anything is written: the
owner must exist and hold STORE_ADMIN, otherwise no image is uploaded and no
store is persisted.
"""
import logging
import uuid
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from storefront.core.errors import ClientError, ForbiddenError, NotFoundError
from storefront.core.media import MediaHost
from storefront.domain.store import Store, StoreCreate
from storefront.domain.user import AccountType, Role, User, UserCreate, derive_role
from storefront.repositories import ProductRepository, StoreRepository, UserRepository

logger = logging.getLogger(__name__)


def parse_coordinate(raw: Optional[str], name: str, low: float, high: float) -> float:
    """Parse a numeric query parameter within [low, high] or raise ClientError"""
    if raw is None or str(raw).strip() == "":
        raise ClientError(f"Query parameter '{name}' is required")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ClientError(f"Query parameter '{name}' must be a number")
    if value != value or not low <= value <= high:
        raise ClientError(f"Query parameter '{name}' must be between {low} and {high}")
    return value


class StoreService:
    """
    Service for store workflows that span several repositories

    Handles:
    - Creation with owner validation and cover upload
    - Deletion (refused while the store still lists products)
    - Adding worker accounts
    - Nearby search parameter handling
    """

    def __init__(
        self,
        stores: StoreRepository,
        users: UserRepository,
        products: ProductRepository,
        media: Optional[MediaHost] = None,
        hasher=None
    ):
        self.stores = stores
        self.users = users
        self.products = products
        self.media = media
        self.hasher = hasher

    def get_store(self, store_id: UUID) -> Store:
        store = self.stores.find_by_id(store_id)
        if not store:
            raise NotFoundError(f"Store {store_id} not found")
        return store

    def require_owner(self, store_id: UUID, user: User) -> Store:
        """
        Load a store the acting user owns

        Raises:
            NotFoundError: store does not exist
            ForbiddenError: user is not the store's owner (platform admins pass)
        """
        store = self.get_store(store_id)
        if user.role != Role.ADMIN and store.owner != user.id:
            raise ForbiddenError("Only the store owner can do this")
        return store

    def resolve_owner(self, created_by: Optional[str]) -> User:
        """
        Validate the designated owner of a new store

        Raises:
            ClientError: id missing or malformed, user missing, or not a STORE_ADMIN
        """
        if not created_by:
            raise ClientError("Query parameter 'createdBy' is required")
        try:
            owner_id = UUID(str(created_by))
        except ValueError:
            raise ClientError(f"Invalid value '{created_by}' for query parameter 'createdBy'")

        owner = self.users.find_by_id(owner_id)
        if not owner:
            raise ClientError(f"Owner {owner_id} does not exist")
        if owner.role != Role.STORE_ADMIN:
            raise ClientError("Store owner must be a STORE_ADMIN user")
        return owner

    async def create_store(
        self,
        created_by: Optional[str],
        data: StoreCreate,
        cover_image: Optional[UploadFile] = None
    ) -> Store:
        """
        Create a store owned by ``created_by``

        Args:
            created_by: User id of the owner (query parameter)
            data: Validated store fields
            cover_image: Optional cover image, uploaded under the new store id

        Returns:
            Created Store
        """
        owner = await run_in_threadpool(self.resolve_owner, created_by)

        store_id = uuid.uuid4()
        values = data.model_dump(exclude_none=True)
        if cover_image is not None and cover_image.filename:
            asset = await self.media.upload_file(cover_image, "stores", str(store_id))
            values["cover_image"] = asset.url

        store = await run_in_threadpool(self.stores.create, store_id, owner.id, values)
        logger.info(f"Store {store.id} '{store.name}' created for owner {owner.id}")
        return store

    def delete_store(self, store_id: UUID, user: User) -> Store:
        """
        Delete a store that no longer lists any product

        Raises:
            ClientError: the store still has products
        """
        self.require_owner(store_id, user)

        product_count = self.stores.count_products(store_id)
        if product_count:
            raise ClientError(
                f"Store {store_id} still has {product_count} products; remove them before deleting the store"
            )

        store = self.stores.delete(store_id)
        if not store:
            raise NotFoundError(f"Store {store_id} not found")
        return store

    async def add_worker(
        self,
        store_id: UUID,
        user: User,
        data: UserCreate,
        avatar: Optional[UploadFile] = None
    ) -> Tuple[Store, User]:
        """
        Create a STORE_WORKER account and attach it to the store

        Returns:
            (updated Store, created worker User)
        """
        await run_in_threadpool(self.require_owner, store_id, user)
        if await run_in_threadpool(self.users.find_by_email, data.email):
            raise ClientError(f"Email {data.email} is already registered")

        worker_id = uuid.uuid4()
        profile = data.model_dump(exclude={"password", "phone"}, exclude_none=True)
        profile["id"] = worker_id
        if data.phone:
            profile["phones"] = [data.phone]
        if avatar is not None and avatar.filename:
            asset = await self.media.upload_file(avatar, "users", str(worker_id))
            profile["avatar"] = asset.to_dict()

        password_hash = await run_in_threadpool(self.hasher.hash, data.password)
        worker = await run_in_threadpool(
            self.users.create,
            profile,
            password_hash=password_hash,
            role=derive_role(AccountType.STORE_WORKER),
            account_type=AccountType.STORE_WORKER,
        )
        store = await run_in_threadpool(self.stores.add_worker, store_id, worker.id)
        logger.info(f"Worker {worker.id} added to store {store_id}")
        return store, worker

    def find_nearby(
        self,
        distance: Optional[str],
        lat: Optional[str],
        lng: Optional[str]
    ) -> List[dict]:
        """Stores within ``distance`` miles of (lat, lng), each with its distance"""
        radius = parse_coordinate(distance, "distance", 0, 12500)
        latitude = parse_coordinate(lat, "lat", -90, 90)
        longitude = parse_coordinate(lng, "lng", -180, 180)

        results = []
        for store, miles in self.stores.find_nearby(latitude, longitude, radius):
            data = store.to_dict()
            data["distance"] = round(miles, 3)
            results.append(data)
        return results

    def get_store_details(self, store_id: UUID, with_inventory: bool = False) -> dict:
        store = self.get_store(store_id)
        data = store.to_dict()
        if with_inventory:
            data["inventory"] = [product.to_dict() for product in self.products.find_by_store(store_id)]
        return data
