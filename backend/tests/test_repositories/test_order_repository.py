"""
Unit tests for OrderRepository: atomic placement and cascade delete
"""
import uuid
from decimal import Decimal

import pytest
from psycopg2 import errors as pg_errors

from storefront.core.errors import ServerError
from storefront.domain.order import Order, OrderStatus
from storefront.repositories.order_repository import OrderRepository


class TestCreateWithItems:

    def test_items_then_order_in_one_transaction(self, mock_db, mock_cursor, make_order_row):
        # Arrange
        item_ids = [uuid.uuid4(), uuid.uuid4()]
        order_row = make_order_row(order_items=item_ids)
        mock_cursor.fetchone.side_effect = [{"id": item_ids[0]}, {"id": item_ids[1]}, order_row]
        p1, p2 = uuid.uuid4(), uuid.uuid4()

        # Act
        order = OrderRepository(mock_db).create_with_items(
            user_id=order_row["user"],
            store_id=order_row["store"],
            lines=[(p1, 2), (p2, 1)],
            total=Decimal("40"),
            currency="UGX",
        )

        # Assert
        mock_db.cursor.assert_called_once()
        calls = mock_cursor.execute.call_args_list
        assert len(calls) == 3
        assert calls[0].args[1] == (p1, 2)
        assert calls[1].args[1] == (p2, 1)
        order_sql, order_params = calls[2].args
        assert 'INSERT INTO orders' in order_sql
        assert '"user"' in order_sql
        assert order_params[2] == item_ids
        assert order_params[3] == Decimal("40")
        assert order_params[4] == "PENDING"
        assert isinstance(order, Order)
        assert order.order_items == item_ids


class TestDeleteWithItems:

    def _order(self, make_order_row):
        return OrderRepository._map_row_to_order(make_order_row())

    def test_deletes_every_item_then_the_order(self, mock_db, mock_cursor, make_order_row):
        order = self._order(make_order_row)
        mock_cursor.rowcount = 1
        mock_cursor.fetchone.return_value = make_order_row(id=order.id, order_items=order.order_items)

        deleted = OrderRepository(mock_db).delete_with_items(order)

        calls = mock_cursor.execute.call_args_list
        assert [call.args[1] for call in calls[:2]] == [(item_id,) for item_id in order.order_items]
        assert all("DELETE FROM order_items" in call.args[0] for call in calls[:2])
        assert "DELETE FROM orders" in calls[2].args[0]
        assert deleted.id == order.id
        mock_db.cursor.assert_called_once()

    def test_missing_item_is_skipped(self, mock_db, mock_cursor, make_order_row):
        order = self._order(make_order_row)
        mock_cursor.rowcount = 0
        mock_cursor.fetchone.return_value = make_order_row(id=order.id)

        deleted = OrderRepository(mock_db).delete_with_items(order)

        assert deleted.id == order.id
        assert len(mock_cursor.execute.call_args_list) == 3

    def test_item_failure_aborts_before_the_order_is_touched(self, mock_db, mock_cursor, make_order_row):
        order = self._order(make_order_row)
        mock_cursor.execute.side_effect = [None, pg_errors.InternalError("disk full")]
        mock_cursor.rowcount = 1

        with pytest.raises(ServerError) as exc:
            OrderRepository(mock_db).delete_with_items(order)

        assert str(order.order_items[1]) in exc.value.message
        assert len(mock_cursor.execute.call_args_list) == 2


class TestFindItems:

    def test_items_come_back_in_order_position(self, mock_db, mock_cursor):
        first, second = uuid.uuid4(), uuid.uuid4()
        product = uuid.uuid4()
        mock_cursor.fetchall.return_value = [
            {"id": second, "item": product, "quantity": 1},
            {"id": first, "item": product, "quantity": 2},
        ]

        items = OrderRepository(mock_db).find_items([first, second])

        assert [item.id for item in items] == [first, second]
        assert items[0].quantity == 2

    def test_deleted_item_is_not_found(self, mock_db, mock_cursor):
        mock_cursor.fetchall.return_value = []

        assert OrderRepository(mock_db).find_item(uuid.uuid4()) is None


class TestUpdateStatus:

    def test_status_is_written_as_text(self, mock_db, mock_cursor, make_order_row):
        row = make_order_row(status="PROCESSING")
        mock_cursor.fetchone.return_value = row

        order = OrderRepository(mock_db).update_status(row["id"], OrderStatus.PROCESSING)

        assert mock_cursor.execute.call_args.args[1][0] == "PROCESSING"
        assert order.status == OrderStatus.PROCESSING
