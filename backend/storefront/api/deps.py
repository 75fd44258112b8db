"""
Shared FastAPI dependencies

Process-wide resources (settings, database pool, media host) are created in
the application lifespan and kept on ``app.state``; the providers that read
them come from ``storefront.core.dependencies`` and the repository providers
below build on top of them. Tests replace any of them through
``app.dependency_overrides``.
"""
from fastapi import Depends

from storefront.core.database import Database
from storefront.core.dependencies import (  # noqa: F401
    get_database,
    get_media_host,
    get_password_hasher,
    get_settings,
    get_user_repository,
)
from storefront.repositories import (
    CategoryRepository,
    OrderRepository,
    ProductRepository,
    StoreRepository,
)


def get_store_repository(db: Database = Depends(get_database)) -> StoreRepository:
    return StoreRepository(db)


def get_category_repository(db: Database = Depends(get_database)) -> CategoryRepository:
    return CategoryRepository(db)


def get_product_repository(db: Database = Depends(get_database)) -> ProductRepository:
    return ProductRepository(db)


def get_order_repository(db: Database = Depends(get_database)) -> OrderRepository:
    return OrderRepository(db)
