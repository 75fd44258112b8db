"""
Category Service
Keeps the category tree consistent: parents must exist and no category may
become its own ancestor.
"""
import logging
from typing import Optional
from uuid import UUID

from storefront.core.errors import ClientError, NotFoundError
from storefront.domain.category import Category, CategoryCreate, CategoryUpdate
from storefront.repositories import CategoryRepository

logger = logging.getLogger(__name__)


class CategoryService:

    def __init__(self, categories: CategoryRepository):
        self.categories = categories

    def _check_parent(self, parent_id: Optional[UUID], category_id: Optional[UUID] = None) -> None:
        if parent_id is None:
            return
        if category_id is not None and parent_id == category_id:
            raise ClientError("A category cannot be its own parent")

        ancestors = self.categories.find_ancestor_ids(parent_id)
        if not ancestors:
            raise NotFoundError(f"Parent category {parent_id} not found")
        if category_id is not None and category_id in ancestors:
            raise ClientError(f"Category {category_id} is an ancestor of {parent_id}")

    def create_category(self, data: CategoryCreate) -> Category:
        self._check_parent(data.parent)
        return self.categories.create(data.model_dump(exclude_none=True))

    def get_category_details(self, category_id: UUID) -> Category:
        """Category with its direct subcategories"""
        category = self.categories.find_by_id(category_id)
        if not category:
            raise NotFoundError(f"Category {category_id} not found")
        category.subcategories = self.categories.find_children(category_id)
        return category

    def update_category(self, category_id: UUID, changes: CategoryUpdate) -> Category:
        values = changes.model_dump(exclude_unset=True)
        if values.get("parent") is not None:
            self._check_parent(values["parent"], category_id)

        category = self.categories.update(category_id, values)
        if not category:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    def delete_category(self, category_id: UUID) -> Category:
        category = self.categories.delete(category_id)
        if not category:
            raise NotFoundError(f"Category {category_id} not found")
        return category
