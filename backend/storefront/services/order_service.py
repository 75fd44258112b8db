"""
Order Service
Places orders, assembles their details and removes them with their items

Placement is two-phase: every referenced product and the store are resolved
first, the total is computed, and only then are the items and the order
written in one transaction. A request that fails validation writes nothing.
"""
import logging
from decimal import Decimal
from typing import Any, List, Optional, Tuple
from uuid import UUID

from storefront.core.errors import AuthError, ClientError, ForbiddenError, NotFoundError
from storefront.domain.order import Order, OrderStatus, PlacedItem, can_transition
from storefront.domain.user import Role, User
from storefront.repositories import OrderRepository, ProductRepository, StoreRepository, UserRepository

logger = logging.getLogger(__name__)


class OrderService:
    """
    Service for the order lifecycle

    Handles:
    - Placement (validate products and store, compute total, persist atomically)
    - Details (items with their products, customer)
    - Status transitions
    - Cascade delete of an order and its items
    """

    def __init__(
        self,
        orders: OrderRepository,
        products: ProductRepository,
        stores: StoreRepository,
        users: UserRepository,
        default_currency: str = "UGX"
    ):
        self.orders = orders
        self.products = products
        self.stores = stores
        self.users = users
        self.default_currency = default_currency

    def place_order(
        self,
        user: Optional[User],
        store_id: Optional[UUID],
        items: List[PlacedItem],
        shipping_address: Optional[str] = None,
        payment_mode: Optional[str] = None
    ) -> Order:
        """
        Place an order for a user with a store

        Args:
            user: Acting user
            store_id: Store receiving the order
            items: Requested (product id, quantity) lines

        Returns:
            Created Order (status PENDING, total snapshot)

        Raises:
            AuthError: no acting user
            ClientError: no store or no items
            NotFoundError: a product or the store does not exist
        """
        if user is None:
            raise AuthError("Authentication required")
        if not store_id:
            raise ClientError("Store is required")
        if not items:
            raise ClientError("Order must contain at least one item")

        products = self.products.find_many([line.id for line in items])
        for line in items:
            if line.id not in products:
                raise NotFoundError(f"Product {line.id} not found")

        store = self.stores.find_by_id(store_id)
        if not store:
            raise NotFoundError(f"Store {store_id} not found")

        total = Decimal("0")
        for line in items:
            total += products[line.id].actual_price * line.quantity

        currency = products[items[0].id].pricing.currency or self.default_currency

        order = self.orders.create_with_items(
            user_id=user.id,
            store_id=store.id,
            lines=[(line.id, line.quantity) for line in items],
            total=total,
            currency=currency,
            shipping_address=shipping_address,
            payment_mode=payment_mode,
        )
        logger.info(f"User {user.id} placed order {order.id} with store {store.id}")
        return order

    def get_order_details(self, order_id: UUID) -> Order:
        """
        Load an order with its items (and their products) and its customer

        Raises:
            NotFoundError: order does not exist
        """
        order = self.orders.find_by_id(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")

        items = self.orders.find_items(order.order_items)
        products = self.products.find_many([item.item for item in items])
        for item in items:
            product = products.get(item.item)
            item.product = product.to_dict() if product else None

        order.items = items
        if order.user:
            customer = self.users.find_by_id(order.user)
            order.customer = customer.to_dict() if customer else None
        return order

    def update_status(self, order_id: UUID, status: str, user: Optional[User] = None) -> Order:
        """
        Move an order to a new status

        Store staff and admins drive the lifecycle; the customer who placed
        the order may only cancel it.

        Raises:
            ClientError: unknown status or transition not allowed
            ForbiddenError: user may not set this status
            NotFoundError: order does not exist
        """
        try:
            target = OrderStatus((status or "").strip().upper())
        except ValueError:
            allowed = ", ".join(s.value for s in OrderStatus)
            raise ClientError(f"Invalid status '{status}'. Expected one of: {allowed}")

        order = self.orders.find_by_id(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")

        if user is not None:
            self._check_status_permission(order, target, user)

        if not can_transition(order.status, target):
            raise ClientError(f"Cannot change order status from {order.status.value} to {target.value}")

        updated = self.orders.update_status(order_id, target)
        logger.info(f"Order {order_id} moved from {order.status.value} to {target.value}")
        return updated

    def update_order(self, order_id: UUID, changes: dict) -> Order:
        order = self.orders.update(order_id, changes)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def delete_order(self, order_id: UUID) -> Order:
        """
        Delete an order and all of its items

        Raises:
            NotFoundError: order does not exist
            ServerError: an item could not be deleted, the order is left intact
        """
        order = self.orders.find_by_id(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")
        return self.orders.delete_with_items(order)

    def access_scope(self, user: User) -> Tuple[List[str], List[Any]]:
        """
        SQL conditions restricting an order listing to what the user may see

        Admins see everything, store staff see the orders of their stores and
        everybody else sees the orders they placed.
        """
        if user.role == Role.ADMIN:
            return [], []
        if user.role in (Role.STORE_ADMIN, Role.STORE_WORKER):
            return (
                ['("user" = %s OR store IN (SELECT id FROM stores WHERE owner = %s OR %s = ANY(workers)))'],
                [user.id, user.id, user.id],
            )
        return ['"user" = %s'], [user.id]

    def require_access(self, order_id: UUID, user: User) -> Order:
        """
        Load an order the user placed, works on, or administers

        Raises:
            NotFoundError: order does not exist
            ForbiddenError: none of the above applies
        """
        order = self.orders.find_by_id(order_id)
        if not order:
            raise NotFoundError(f"Order {order_id} not found")
        if user.role == Role.ADMIN or order.user == user.id:
            return order

        store = self.stores.find_by_id(order.store) if order.store else None
        if store and store.is_member(user.id):
            return order
        raise ForbiddenError(f"Order {order_id} is not accessible to user {user.id}")

    def _check_status_permission(self, order: Order, target: OrderStatus, user: User) -> None:
        if user.role == Role.ADMIN:
            return
        store = self.stores.find_by_id(order.store) if order.store else None
        if store and store.is_member(user.id):
            return
        if order.user == user.id and target == OrderStatus.CANCELED:
            return
        raise ForbiddenError(f"User {user.id} cannot set order {order.id} to {target.value}")
