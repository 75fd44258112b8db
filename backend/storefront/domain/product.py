"""
Product Domain Model

Represents a product listed by a store.
This is the single source of truth for product data structure.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Pricing(BaseModel):
    """Listed price, discount percent and currency"""
    price: Decimal = Field(Decimal("0"), description="Listed price", ge=0)
    discount: Decimal = Field(Decimal("0"), description="Discount percent", ge=0, le=100)
    currency: str = Field("UGX", description="ISO currency code")


class Packaging(BaseModel):
    size: Optional[str] = None
    quantity: Optional[str] = None
    weight: Optional[str] = None


class ProductImage(BaseModel):
    id: Optional[str] = None
    url: str


class Product(BaseModel):
    """
    Product domain model - represents a product in a store's inventory

    Fields:
        id: Product ID
        name: Product name
        tradename: Brand/trade name
        store: ID of the store that lists the product
        categories: Category IDs the product belongs to
        pricing: price, discount percent, currency
        packaging: size, quantity, weight
        images: Uploaded images [{id, url}], first one is the main image

    Computed:
        actual_price: price after discount
        image: URL of the main image, "" when there is none
    """

    id: UUID = Field(..., description="Product ID")
    name: str = Field(..., description="Product name")
    tradename: Optional[str] = None
    catch_phrase: Optional[str] = None
    description: Optional[str] = None
    directions: Optional[str] = None
    manufacturer: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    store: UUID = Field(..., description="Store ID")
    categories: List[UUID] = Field(default_factory=list)
    pricing: Pricing = Field(default_factory=Pricing)
    packaging: Packaging = Field(default_factory=Packaging)
    images: List[ProductImage] = Field(default_factory=list)
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def actual_price(self) -> Decimal:
        """Price after applying the discount percent"""
        if self.pricing.discount > 0:
            return self.pricing.price * (100 - self.pricing.discount) / 100
        return self.pricing.price

    @property
    def image(self) -> str:
        return self.images[0].url if self.images else ""

    def to_dict(self) -> dict:
        """
        Convert to dictionary with computed fields

        Decimal values become floats for JSON compatibility
        """
        data = self.model_dump(mode="json")
        data["pricing"]["price"] = float(self.pricing.price)
        data["pricing"]["discount"] = float(self.pricing.discount)
        data["actual_price"] = float(self.actual_price)
        data["image"] = self.image
        return data


class ProductCreate(BaseModel):
    """Schema for creating a new product"""
    name: str = Field(..., min_length=1)
    store: UUID
    tradename: Optional[str] = None
    catch_phrase: Optional[str] = None
    description: Optional[str] = None
    directions: Optional[str] = None
    manufacturer: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    categories: List[UUID] = Field(default_factory=list)
    pricing: Pricing = Field(default_factory=Pricing)
    packaging: Packaging = Field(default_factory=Packaging)


class PricingUpdate(BaseModel):
    price: Optional[Decimal] = Field(None, ge=0)
    discount: Optional[Decimal] = Field(None, ge=0, le=100)
    currency: Optional[str] = None


class PackagingUpdate(BaseModel):
    size: Optional[str] = None
    quantity: Optional[str] = None
    weight: Optional[str] = None


class ProductUpdate(BaseModel):
    """Schema for patching a product; nested objects are merged, not replaced"""
    name: Optional[str] = Field(None, min_length=1)
    tradename: Optional[str] = None
    catch_phrase: Optional[str] = None
    description: Optional[str] = None
    directions: Optional[str] = None
    manufacturer: Optional[str] = None
    tags: Optional[List[str]] = None
    pricing: Optional[PricingUpdate] = None
    packaging: Optional[PackagingUpdate] = None

    model_config = ConfigDict(extra="forbid")


class DiscountChange(BaseModel):
    discount: Decimal = Field(..., ge=0, le=100)


class CategoryAssignment(BaseModel):
    categories: List[UUID] = Field(..., min_length=1)
