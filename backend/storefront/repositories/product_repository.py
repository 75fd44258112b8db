"""
Product Repository - Data Access Layer for Products

Handles all database queries for products and returns Product domain models.
Pricing and packaging are JSONB documents; their members are exposed to the
list-query engine as ``price``/``pricing.price`` and so on.
"""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from storefront.core.query import FieldSpec, ResourceSchema
from storefront.domain.product import Product
from storefront.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

PRICE = FieldSpec(type="number", column="pricing", expression="(pricing->>'price')::numeric")
DISCOUNT = FieldSpec(type="number", column="pricing", expression="(pricing->>'discount')::numeric")
CURRENCY = FieldSpec(column="pricing", expression="(pricing->>'currency')")

PRODUCT_SCHEMA = ResourceSchema(
    table="products",
    fields={
        "id": FieldSpec(type="uuid"),
        "name": FieldSpec(),
        "tradename": FieldSpec(),
        "catch_phrase": FieldSpec(),
        "description": FieldSpec(),
        "directions": FieldSpec(),
        "manufacturer": FieldSpec(),
        "tags": FieldSpec(array=True),
        "store": FieldSpec(type="uuid"),
        "categories": FieldSpec(type="uuid", array=True),
        "pricing": FieldSpec(filterable=False),
        "price": PRICE,
        "pricing.price": PRICE,
        "discount": DISCOUNT,
        "pricing.discount": DISCOUNT,
        "currency": CURRENCY,
        "pricing.currency": CURRENCY,
        "packaging": FieldSpec(filterable=False),
        "packaging.size": FieldSpec(column="packaging", expression="(packaging->>'size')"),
        "packaging.quantity": FieldSpec(column="packaging", expression="(packaging->>'quantity')"),
        "packaging.weight": FieldSpec(column="packaging", expression="(packaging->>'weight')"),
        "images": FieldSpec(filterable=False),
        "created_at": FieldSpec(type="datetime"),
        "updated_at": FieldSpec(type="datetime"),
    },
)

WRITABLE_COLUMNS = (
    "name", "tradename", "catch_phrase", "description", "directions",
    "manufacturer", "tags", "categories", "pricing", "packaging", "images",
)

# Nested documents are merged into the stored value on update
MERGED_COLUMNS = ("pricing", "packaging")


class ProductRepository(BaseRepository):
    """
    Repository for Product data access

    All SQL queries for products are centralized here.
    Returns Product domain models, not raw dictionaries.
    """

    schema = PRODUCT_SCHEMA
    json_columns = ("pricing", "packaging", "images")

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        return Product(
            id=row["id"],
            name=row["name"],
            tradename=row.get("tradename"),
            catch_phrase=row.get("catch_phrase"),
            description=row.get("description"),
            directions=row.get("directions"),
            manufacturer=row.get("manufacturer"),
            tags=row.get("tags") or [],
            store=row["store"],
            categories=row.get("categories") or [],
            pricing=row.get("pricing") or {},
            packaging=row.get("packaging") or {},
            images=row.get("images") or [],
            created_at=row["created_at"],
            updated_at=row.get("updated_at"),
        )

    def _map_row(self, row: dict) -> Product:
        return self._map_row_to_product(row)

    def find_many(self, product_ids: List[UUID]) -> Dict[UUID, Product]:
        """
        Find several products in one query

        Args:
            product_ids: Product IDs (duplicates allowed)

        Returns:
            Dict of product id -> Product for the ids that exist
        """
        if not product_ids:
            return {}

        with self.db.cursor() as cursor:
            cursor.execute(
                f"SELECT {self.returning} FROM products WHERE id = ANY(%s)",
                (list(set(product_ids)),),
            )
            rows = cursor.fetchall()

        products = (self._map_row_to_product(row) for row in rows)
        return {product.id: product for product in products}

    def find_by_store(self, store_id: UUID) -> List[Product]:
        with self.db.cursor() as cursor:
            cursor.execute(
                f"SELECT {self.returning} FROM products WHERE store = %s ORDER BY created_at DESC",
                (store_id,),
            )
            rows = cursor.fetchall()
        return [self._map_row_to_product(row) for row in rows]

    def create(self, data: Dict[str, Any], images: List[dict] = None, product_id: UUID = None) -> Product:
        """
        Insert a new product

        Args:
            data: Product fields; ``store`` is required
            images: Uploaded images [{id, url}]
            product_id: Pre-generated id when images were uploaded under it

        Returns:
            Created Product
        """
        values = {column: data[column] for column in WRITABLE_COLUMNS if data.get(column) is not None}
        values["store"] = data["store"]
        if images is not None:
            values["images"] = images
        if product_id is not None:
            values["id"] = product_id
        return self._insert(values)

    def update(self, product_id: UUID, changes: Dict[str, Any]) -> Optional[Product]:
        """
        Patch a product

        ``pricing`` and ``packaging`` are merged key by key into the stored
        documents; every other column is replaced.
        """
        allowed = {}
        for column, value in changes.items():
            if column not in WRITABLE_COLUMNS:
                continue
            if column in MERGED_COLUMNS and isinstance(value, dict):
                value = {key: item for key, item in value.items() if item is not None}
                if not value:
                    continue
            allowed[column] = value
        return self._update(product_id, allowed, merge=MERGED_COLUMNS)

    def set_discount(self, product_id: UUID, discount) -> Optional[Product]:
        return self._update(product_id, {"pricing": {"discount": discount}}, merge=MERGED_COLUMNS)

    def set_categories(self, product_id: UUID, category_ids: List[UUID]) -> Optional[Product]:
        unique_ids = list(dict.fromkeys(category_ids))
        return self._update(product_id, {"categories": unique_ids})

    def search_in_store(self, store_id: UUID, q: str, limit: int = 16) -> List[Product]:
        """Case-insensitive substring search over a store's product names, trade names and tags"""
        pattern = f"%{q}%"
        with self.db.cursor() as cursor:
            cursor.execute(
                f"""
                SELECT {self.returning}
                FROM products
                WHERE store = %s
                  AND (name ILIKE %s
                       OR tradename ILIKE %s
                       OR array_to_string(tags, ' ') ILIKE %s)
                ORDER BY name ASC
                LIMIT %s
                """,
                (store_id, pattern, pattern, pattern, limit),
            )
            rows = cursor.fetchall()
        return [self._map_row_to_product(row) for row in rows]
