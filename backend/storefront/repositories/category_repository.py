"""
Category Repository - Data Access Layer for the category tree
"""
import logging
from typing import Any, Dict, List, Optional, Set
from uuid import UUID

from storefront.core.query import FieldSpec, ResourceSchema
from storefront.domain.category import Category
from storefront.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

CATEGORY_SCHEMA = ResourceSchema(
    table="categories",
    fields={
        "id": FieldSpec(type="uuid"),
        "name": FieldSpec(),
        "description": FieldSpec(),
        "parent": FieldSpec(type="uuid"),
        "icon": FieldSpec(),
        "image": FieldSpec(filterable=False),
        "featured": FieldSpec(type="boolean"),
        "created_at": FieldSpec(type="datetime"),
        "updated_at": FieldSpec(type="datetime"),
    },
)

WRITABLE_COLUMNS = ("name", "description", "parent", "icon", "image", "featured")


class CategoryRepository(BaseRepository):
    """Repository for Category data access"""

    schema = CATEGORY_SCHEMA
    json_columns = ("image",)

    @staticmethod
    def _map_row_to_category(row: dict) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            description=row.get("description"),
            parent=row.get("parent"),
            icon=row.get("icon"),
            image=row.get("image"),
            featured=bool(row.get("featured")),
            created_at=row["created_at"],
            updated_at=row.get("updated_at"),
        )

    def _map_row(self, row: dict) -> Category:
        return self._map_row_to_category(row)

    def create(self, data: Dict[str, Any]) -> Category:
        values = {column: data[column] for column in WRITABLE_COLUMNS if data.get(column) is not None}
        return self._insert(values)

    def update(self, category_id: UUID, changes: Dict[str, Any]) -> Optional[Category]:
        allowed = {column: value for column, value in changes.items() if column in WRITABLE_COLUMNS}
        return self._update(category_id, allowed)

    def find_children(self, category_id: UUID) -> List[Category]:
        with self.db.cursor() as cursor:
            cursor.execute(
                f"SELECT {self.returning} FROM categories WHERE parent = %s ORDER BY name ASC",
                (category_id,),
            )
            rows = cursor.fetchall()
        return [self._map_row_to_category(row) for row in rows]

    def find_ancestor_ids(self, category_id: UUID) -> List[UUID]:
        """
        Walk up the tree from a category

        Args:
            category_id: Starting category (included in the result)

        Returns:
            IDs from the category up to its root
        """
        with self.db.cursor() as cursor:
            cursor.execute(
                """
                WITH RECURSIVE ancestors(id, parent, depth) AS (
                    SELECT id, parent, 0 FROM categories WHERE id = %s
                    UNION
                    SELECT c.id, c.parent, a.depth + 1
                    FROM categories c
                    JOIN ancestors a ON c.id = a.parent
                )
                SELECT id FROM ancestors ORDER BY depth
                """,
                (category_id,),
            )
            rows = cursor.fetchall()
        return [row["id"] for row in rows]

    def find_existing_ids(self, category_ids: List[UUID]) -> Set[UUID]:
        if not category_ids:
            return set()
        with self.db.cursor() as cursor:
            cursor.execute(
                "SELECT id FROM categories WHERE id = ANY(%s)",
                (list(category_ids),),
            )
            rows = cursor.fetchall()
        return {row["id"] for row in rows}

    def delete(self, category_id: UUID) -> Optional[Category]:
        """
        Delete a category in one transaction

        Children are detached (their parent becomes NULL) and the id is
        removed from every product's category set.

        Returns:
            Snapshot of the deleted category, None if it did not exist
        """
        with self.db.cursor() as cursor:
            cursor.execute(
                """
                UPDATE products
                SET categories = array_remove(categories, %s), updated_at = NOW()
                WHERE %s = ANY(categories)
                """,
                (category_id, category_id),
            )
            detached_products = cursor.rowcount
            cursor.execute(
                f"DELETE FROM categories WHERE id = %s RETURNING {self.returning}",
                (category_id,),
            )
            row = cursor.fetchone()

        if not row:
            return None
        logger.info(f"Deleted category {category_id} (removed from {detached_products} products)")
        return self._map_row_to_category(row)
