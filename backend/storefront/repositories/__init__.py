"""
Repositories - Data Access Layer

Repositories handle all database queries and return domain models.
They isolate SQL from business logic.
"""
from storefront.repositories.base import BaseRepository
from storefront.repositories.category_repository import CategoryRepository
from storefront.repositories.order_repository import OrderRepository
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.store_repository import StoreRepository
from storefront.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "CategoryRepository",
    "OrderRepository",
    "ProductRepository",
    "StoreRepository",
    "UserRepository",
]
