"""
Category Domain Model

Categories form a tree through an optional parent reference. Subcategories
are derived from children pointing at a parent and are never stored.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CategoryImage(BaseModel):
    id: Optional[str] = None
    url: Optional[str] = None


class Category(BaseModel):
    id: UUID = Field(..., description="Category ID")
    name: str = Field(..., description="Unique category name")
    description: Optional[str] = None
    parent: Optional[UUID] = Field(None, description="Parent category ID")
    icon: Optional[str] = None
    image: Optional[CategoryImage] = None
    featured: bool = False
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = None

    # Populated on the details endpoint only
    subcategories: Optional[List["Category"]] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    parent: Optional[UUID] = None
    icon: Optional[str] = None
    featured: bool = False


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    parent: Optional[UUID] = None
    icon: Optional[str] = None
    featured: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")
