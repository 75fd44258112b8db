"""
Domain Layer - Business Entities

Pydantic models for users, stores, categories, products and orders.
These models enforce type safety and validation across the application.
"""
from storefront.domain.user import User, Role, AccountType, derive_role
from storefront.domain.store import Store, StoreStatus
from storefront.domain.category import Category
from storefront.domain.product import Product, Pricing, Packaging
from storefront.domain.order import Order, OrderItem, OrderStatus

__all__ = [
    'User', 'Role', 'AccountType', 'derive_role',
    'Store', 'StoreStatus',
    'Category',
    'Product', 'Pricing', 'Packaging',
    'Order', 'OrderItem', 'OrderStatus',
]
