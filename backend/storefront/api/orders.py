"""
Orders API Endpoints
Order placement, details, status updates and removal

All endpoints need an authenticated user. Listings are scoped to the
orders the user placed or, for store staff, the orders of their stores.
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from storefront.api.deps import (
    get_order_repository,
    get_product_repository,
    get_settings,
    get_store_repository,
    get_user_repository,
)
from storefront.api.listing import envelope, paginated_list
from storefront.core.auth import authenticate
from storefront.core.config import Settings
from storefront.domain.order import OrderCreate, OrderUpdate
from storefront.domain.user import User
from storefront.repositories import OrderRepository, ProductRepository, StoreRepository, UserRepository
from storefront.services.order_service import OrderService

router = APIRouter()


def get_order_service(
    orders: OrderRepository = Depends(get_order_repository),
    products: ProductRepository = Depends(get_product_repository),
    stores: StoreRepository = Depends(get_store_repository),
    users: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_settings),
) -> OrderService:
    return OrderService(orders, products, stores, users, default_currency=settings.DEFAULT_CURRENCY)


@router.get("")
def list_orders(
    request: Request,
    user: User = Depends(authenticate),
    orders: OrderRepository = Depends(get_order_repository),
    service: OrderService = Depends(get_order_service),
    settings: Settings = Depends(get_settings),
):
    """List orders visible to the user, with filters, sorting and pagination"""
    conditions, params = service.access_scope(user)
    return paginated_list(orders, request, settings, conditions, params)


@router.post("", status_code=201)
def place_order(
    data: OrderCreate,
    store: Optional[UUID] = Query(None, description="Store the order goes to"),
    user: User = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    """
    Place an order with a store

    Body: {"items": [{"id": <product id>, "quantity": 2}], "shipping_address": ..., "payment_mode": ...}
    """
    order = service.place_order(
        user,
        store,
        data.items,
        shipping_address=data.shipping_address,
        payment_mode=data.payment_mode,
    )
    return envelope(order.to_dict(), "New order placed successfully")


@router.get("/{order_id}")
def get_order(
    order_id: UUID,
    user: User = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    """Order details with items, their products and the customer"""
    service.require_access(order_id, user)
    return envelope(service.get_order_details(order_id).to_dict())


@router.put("/{order_id}")
def update_order(
    order_id: UUID,
    changes: OrderUpdate,
    user: User = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    service.require_access(order_id, user)
    order = service.update_order(order_id, changes.model_dump(exclude_unset=True))
    return envelope(order.to_dict(), "Order updated")


@router.put("/{order_id}/status_update")
def update_order_status(
    order_id: UUID,
    status: str = Query(..., description="PROCESSING, COMPLETED, CANCELED or REJECTED"),
    user: User = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    order = service.update_status(order_id, status, user)
    return envelope(order.to_dict(), f"Order status changed to {order.status.value}")


@router.delete("/{order_id}")
def delete_order(
    order_id: UUID,
    user: User = Depends(authenticate),
    service: OrderService = Depends(get_order_service),
):
    service.require_access(order_id, user)
    order = service.delete_order(order_id)
    return envelope(order.to_dict(), "Order deleted")
