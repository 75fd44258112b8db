"""
Order Repository - Data Access Layer for Orders and Order Items

An order and its items are always written and removed together, inside a
single database transaction.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

import psycopg2

from storefront.core.errors import ServerError
from storefront.core.query import FieldSpec, ResourceSchema
from storefront.domain.order import Order, OrderItem, OrderStatus
from storefront.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

# "user" is a reserved word in PostgreSQL, the column is always quoted
ORDER_SCHEMA = ResourceSchema(
    table="orders",
    fields={
        "id": FieldSpec(type="uuid"),
        "user": FieldSpec(type="uuid", column='"user"'),
        "store": FieldSpec(type="uuid"),
        "order_items": FieldSpec(type="uuid", array=True),
        "total": FieldSpec(type="number"),
        "status": FieldSpec(),
        "currency": FieldSpec(),
        "shipping_address": FieldSpec(),
        "payment_mode": FieldSpec(),
        "created_at": FieldSpec(type="datetime"),
        "updated_at": FieldSpec(type="datetime"),
    },
)

UPDATABLE_COLUMNS = ("shipping_address", "payment_mode")


class OrderRepository(BaseRepository):
    """Repository for Order data access"""

    schema = ORDER_SCHEMA

    @staticmethod
    def _map_row_to_order(row: dict) -> Order:
        return Order(
            id=row["id"],
            user=row.get("user"),
            store=row.get("store"),
            order_items=row.get("order_items") or [],
            total=row.get("total") or Decimal("0"),
            status=row.get("status") or OrderStatus.PENDING,
            currency=row.get("currency") or "UGX",
            shipping_address=row.get("shipping_address"),
            payment_mode=row.get("payment_mode"),
            created_at=row["created_at"],
            updated_at=row.get("updated_at"),
        )

    @staticmethod
    def _map_row_to_item(row: dict) -> OrderItem:
        return OrderItem(id=row["id"], item=row["item"], quantity=row["quantity"])

    def _map_row(self, row: dict) -> Order:
        return self._map_row_to_order(row)

    def find_items(self, item_ids: List[UUID]) -> List[OrderItem]:
        """
        Load order items

        Args:
            item_ids: Item IDs in order position

        Returns:
            Items that still exist, in the same order as ``item_ids``
        """
        if not item_ids:
            return []

        with self.db.cursor() as cursor:
            cursor.execute(
                "SELECT id, item, quantity FROM order_items WHERE id = ANY(%s)",
                (list(item_ids),),
            )
            rows = cursor.fetchall()

        by_id = {row["id"]: self._map_row_to_item(row) for row in rows}
        return [by_id[item_id] for item_id in item_ids if item_id in by_id]

    def find_item(self, item_id: UUID) -> Optional[OrderItem]:
        items = self.find_items([item_id])
        return items[0] if items else None

    def create_with_items(
        self,
        user_id: UUID,
        store_id: UUID,
        lines: List[Tuple[UUID, int]],
        total: Decimal,
        currency: str,
        shipping_address: Optional[str] = None,
        payment_mode: Optional[str] = None
    ) -> Order:
        """
        Persist an order and its items atomically

        Args:
            user_id: ID of the user placing the order
            store_id: ID of the store receiving it
            lines: (product id, quantity) pairs in request order
            total: Precomputed total
            currency: Currency of the total

        Returns:
            Created Order with status PENDING

        Raises:
            ClientError/ServerError: the transaction failed; nothing was written
        """
        with self.db.cursor() as cursor:
            item_ids = []
            for product_id, quantity in lines:
                cursor.execute(
                    "INSERT INTO order_items (item, quantity) VALUES (%s, %s) RETURNING id",
                    (product_id, quantity),
                )
                item_ids.append(cursor.fetchone()["id"])

            cursor.execute(
                f"""
                INSERT INTO orders (
                    "user", store, order_items, total, status, currency,
                    shipping_address, payment_mode
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {self.returning}
                """,
                (
                    user_id, store_id, item_ids, total, OrderStatus.PENDING.value,
                    currency, shipping_address, payment_mode,
                ),
            )
            row = cursor.fetchone()

        logger.info(f"Created order {row['id']} with {len(item_ids)} items, total {total} {currency}")
        return self._map_row_to_order(row)

    def delete_with_items(self, order: Order) -> Order:
        """
        Delete an order's items, then the order, in one transaction

        An item that is already gone is logged and skipped. Any other failure
        rolls the whole transaction back and leaves the order intact.

        Returns:
            Snapshot of the deleted order

        Raises:
            ServerError: an item could not be deleted
        """
        with self.db.cursor() as cursor:
            for item_id in order.order_items:
                try:
                    cursor.execute("DELETE FROM order_items WHERE id = %s", (item_id,))
                except psycopg2.Error as e:
                    logger.error(f"Deleting item {item_id} of order {order.id} failed: {e}")
                    raise ServerError(
                        f"Could not delete order item {item_id}; order {order.id} was left unchanged"
                    )
                if cursor.rowcount == 0:
                    logger.warning(f"Order item {item_id} of order {order.id} was already missing")

            cursor.execute(
                f"DELETE FROM orders WHERE id = %s RETURNING {self.returning}",
                (order.id,),
            )
            row = cursor.fetchone()

        logger.info(f"Deleted order {order.id} and {len(order.order_items)} items")
        return self._map_row_to_order(row) if row else order

    def update_status(self, order_id: UUID, status: OrderStatus) -> Optional[Order]:
        return self._update(order_id, {"status": OrderStatus(status).value})

    def update(self, order_id: UUID, changes: Dict[str, Any]) -> Optional[Order]:
        allowed = {column: value for column, value in changes.items() if column in UPDATABLE_COLUMNS}
        return self._update(order_id, allowed)
