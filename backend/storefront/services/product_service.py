"""
Product Service
Product registration and maintenance by store staff

Every mutating operation requires the acting user to be the owner or a
worker of the store that lists the product.
"""
import logging
import uuid
from typing import List, Optional
from uuid import UUID

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from storefront.core.errors import ClientError, ForbiddenError, NotFoundError
from storefront.core.media import MediaHost
from storefront.domain.product import Product, ProductCreate, ProductUpdate
from storefront.domain.store import Store
from storefront.domain.user import Role, User
from storefront.repositories import CategoryRepository, ProductRepository, StoreRepository

logger = logging.getLogger(__name__)


class ProductService:
    """Service for product workflows that touch stores, categories and media"""

    def __init__(
        self,
        products: ProductRepository,
        stores: StoreRepository,
        categories: CategoryRepository,
        media: Optional[MediaHost] = None,
        max_images: int = 5
    ):
        self.products = products
        self.stores = stores
        self.categories = categories
        self.media = media
        self.max_images = max_images

    def get_product(self, product_id: UUID) -> Product:
        product = self.products.find_by_id(product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    def require_member(self, store_id: UUID, user: User) -> Store:
        """
        Load a store the acting user works for

        Raises:
            NotFoundError: store does not exist
            ForbiddenError: user is neither the owner nor a worker
        """
        store = self.stores.find_by_id(store_id)
        if not store:
            raise NotFoundError(f"Store {store_id} not found")
        if user.role != Role.ADMIN and not store.is_member(user.id):
            raise ForbiddenError(f"User {user.id} does not work for store {store_id}")
        return store

    def _check_categories(self, category_ids: List[UUID]) -> None:
        missing = set(category_ids) - self.categories.find_existing_ids(category_ids)
        if missing:
            names = ", ".join(sorted(str(category_id) for category_id in missing))
            raise NotFoundError(f"Categories not found: {names}")

    def create_product(self, data: ProductCreate, user: User) -> Product:
        self.require_member(data.store, user)
        self._check_categories(data.categories)
        product = self.products.create(data.model_dump(mode="python"))
        logger.info(f"Product {product.id} created in store {data.store} by {user.id}")
        return product

    async def register_product(
        self,
        data: ProductCreate,
        user: User,
        images: Optional[List[UploadFile]] = None
    ) -> Product:
        """
        Create a product with up to ``max_images`` uploaded images

        Images are uploaded under the new product's id before it is stored;
        the first image becomes the main image.

        Raises:
            ClientError: too many images
            ForbiddenError: user does not work for the store
        """
        files = [image for image in (images or []) if image is not None and image.filename]
        if len(files) > self.max_images:
            raise ClientError(f"A product can have at most {self.max_images} images")

        await run_in_threadpool(self.require_member, data.store, user)
        await run_in_threadpool(self._check_categories, data.categories)

        product_id = uuid.uuid4()
        uploaded = []
        for position, image in enumerate(files):
            asset = await self.media.upload_file(image, "products", f"{product_id}_{position}")
            uploaded.append(asset.to_dict())

        product = await run_in_threadpool(
            self.products.create, data.model_dump(mode="python"), images=uploaded, product_id=product_id
        )
        logger.info(f"Product {product.id} registered in store {data.store} with {len(uploaded)} images")
        return product

    def update_product(self, product_id: UUID, changes: ProductUpdate, user: User) -> Product:
        product = self.get_product(product_id)
        self.require_member(product.store, user)
        return self.products.update(product_id, changes.model_dump(exclude_unset=True))

    def change_discount(self, product_id: UUID, discount, user: User) -> Product:
        product = self.get_product(product_id)
        self.require_member(product.store, user)
        return self.products.set_discount(product_id, discount)

    def set_categories(self, product_id: UUID, category_ids: List[UUID], user: User) -> Product:
        product = self.get_product(product_id)
        self.require_member(product.store, user)
        self._check_categories(category_ids)
        return self.products.set_categories(product_id, category_ids)

    def delete_product(self, product_id: UUID, user: User) -> Product:
        product = self.get_product(product_id)
        self.require_member(product.store, user)
        deleted = self.products.delete(product_id)
        if not deleted:
            raise NotFoundError(f"Product {product_id} not found")
        return deleted
