"""
Unit tests for ProductRepository

These tests validate repository logic without requiring a database connection.
"""
import json
import uuid
from decimal import Decimal

from psycopg2.extras import Json

from storefront.domain.product import Product
from storefront.repositories.product_repository import ProductRepository


class TestProductRepository:
    """Test ProductRepository methods"""

    def test_find_by_id_returns_product(self, mock_db, mock_cursor, make_product_row):
        """Test find_by_id returns a Product domain model"""
        # Arrange
        row = make_product_row(price="1500", discount="10")
        mock_cursor.fetchone.return_value = row

        # Act
        product = ProductRepository(mock_db).find_by_id(row["id"])

        # Assert
        assert isinstance(product, Product)
        assert product.name == "Paracetamol 500mg"
        assert product.actual_price == Decimal("1350")
        mock_cursor.execute.assert_called_once()

    def test_find_by_id_returns_none_when_not_found(self, mock_db, mock_cursor):
        mock_cursor.fetchone.return_value = None

        assert ProductRepository(mock_db).find_by_id(uuid.uuid4()) is None

    def test_find_many_keys_products_by_id(self, mock_db, mock_cursor, make_product_row):
        first, second = make_product_row(), make_product_row()
        mock_cursor.fetchall.return_value = [first, second]

        products = ProductRepository(mock_db).find_many([first["id"], second["id"], first["id"]])

        assert set(products) == {first["id"], second["id"]}
        queried_ids = mock_cursor.execute.call_args.args[1][0]
        assert sorted(queried_ids, key=str) == sorted([first["id"], second["id"]], key=str)

    def test_find_many_without_ids_skips_the_database(self, mock_db, mock_cursor):
        assert ProductRepository(mock_db).find_many([]) == {}
        mock_cursor.execute.assert_not_called()

    def test_create_wraps_documents_as_json(self, mock_db, mock_cursor, make_product_row):
        store_id = uuid.uuid4()
        mock_cursor.fetchone.return_value = make_product_row(store=store_id)
        data = {
            "name": "Paracetamol 500mg",
            "store": store_id,
            "pricing": {"price": Decimal("12.50"), "discount": Decimal("0"), "currency": "UGX"},
        }

        ProductRepository(mock_db).create(data, images=[{"id": "p_0", "url": "https://cdn/p_0.jpg"}])

        sql, params = mock_cursor.execute.call_args.args
        assert "INSERT INTO products" in sql
        documents = [param for param in params if isinstance(param, Json)]
        assert len(documents) == 2
        pricing = json.loads(documents[0].dumps(documents[0].adapted))
        assert pricing["price"] == 12.5

    def test_update_merges_pricing(self, mock_db, mock_cursor, make_product_row):
        row = make_product_row()
        mock_cursor.fetchone.return_value = row

        ProductRepository(mock_db).update(row["id"], {"pricing": {"price": Decimal("20"), "currency": None}, "store": uuid.uuid4()})

        sql, params = mock_cursor.execute.call_args.args
        assert "pricing = pricing || %s" in sql
        assert "store" not in sql.split("WHERE")[0]
        assert params[0].adapted == {"price": Decimal("20")}

    def test_set_discount_merges_only_the_discount(self, mock_db, mock_cursor, make_product_row):
        row = make_product_row()
        mock_cursor.fetchone.return_value = row

        ProductRepository(mock_db).set_discount(row["id"], Decimal("15"))

        sql, params = mock_cursor.execute.call_args.args
        assert "pricing = pricing || %s" in sql
        assert params[0].adapted == {"discount": Decimal("15")}

    def test_set_categories_replaces_and_deduplicates(self, mock_db, mock_cursor, make_product_row):
        category = uuid.uuid4()
        row = make_product_row(categories=[category])
        mock_cursor.fetchone.return_value = row

        ProductRepository(mock_db).set_categories(row["id"], [category, category])

        sql, params = mock_cursor.execute.call_args.args
        assert "categories = %s" in sql
        assert params[0] == [category]
