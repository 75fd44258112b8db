"""
Tests for the order endpoints: guard, placement and scoped listing
"""
import uuid
from unittest.mock import MagicMock

import pytest

from storefront.api.deps import get_user_repository
from storefront.repositories.user_repository import UserRepository


@pytest.fixture
def customer(app, make_user_row):
    user = UserRepository._map_row_to_user(make_user_row())
    users = MagicMock()
    users.find_by_id.return_value = user
    app.dependency_overrides[get_user_repository] = lambda: users
    yield user
    app.dependency_overrides.clear()


def order_body(product_id=None):
    return {"items": [{"id": str(product_id or uuid.uuid4()), "quantity": 2}]}


class TestPlaceOrder:

    def test_requires_authentication(self, client, mock_cursor):
        response = client.post(f"/api/orders?store={uuid.uuid4()}", json=order_body())

        assert response.status_code == 401
        mock_cursor.execute.assert_not_called()

    def test_store_is_required(self, client, customer, auth_header):
        response = client.post("/api/orders", json=order_body(), headers=auth_header(customer.id))

        assert response.status_code == 400

    def test_unknown_product_is_not_found(self, client, customer, auth_header, mock_cursor):
        mock_cursor.fetchall.return_value = []
        product_id = uuid.uuid4()

        response = client.post(
            f"/api/orders?store={uuid.uuid4()}",
            json=order_body(product_id),
            headers=auth_header(customer.id),
        )

        assert response.status_code == 404
        assert str(product_id) in response.json()["message"]

    def test_empty_items_are_rejected(self, client, customer, auth_header):
        response = client.post(
            f"/api/orders?store={uuid.uuid4()}",
            json={"items": []},
            headers=auth_header(customer.id),
        )

        assert response.status_code == 400


class TestListOrders:

    def test_customer_sees_only_own_orders(self, client, customer, auth_header, mock_cursor, make_order_row):
        mock_cursor.fetchone.return_value = {"total": 1}
        mock_cursor.fetchall.return_value = [make_order_row(user=customer.id)]

        response = client.get("/api/orders", headers=auth_header(customer.id))

        assert response.status_code == 200
        count_sql, count_params = mock_cursor.execute.call_args_list[0].args
        assert '"user" = %s' in count_sql
        assert count_params == [customer.id]
        assert response.json()["data"][0]["user"] == str(customer.id)
