"""
Order Domain Models

An order belongs to a user and a store and owns an ordered list of line
items. ``total`` is a snapshot taken when the order is placed and is never
recomputed when product prices change later.

Status lifecycle:
    DRAFT -> PENDING -> PROCESSING -> COMPLETED | CANCELED | REJECTED
Placement creates PENDING orders; the status-update endpoint drives the rest.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"
    REJECTED = "REJECTED"


ALLOWED_TRANSITIONS = {
    OrderStatus.DRAFT: {OrderStatus.PENDING},
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELED, OrderStatus.REJECTED},
    OrderStatus.PROCESSING: {OrderStatus.COMPLETED, OrderStatus.CANCELED, OrderStatus.REJECTED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELED: set(),
    OrderStatus.REJECTED: set(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


class OrderItem(BaseModel):
    """
    Order Item domain model - one quantity+product pairing inside an order

    Fields:
        id: Order item ID
        item: Product ID
        quantity: Units ordered
        product: Product details, populated on the order details endpoint
    """

    id: UUID = Field(..., description="Order item ID")
    item: UUID = Field(..., description="Product ID")
    quantity: int = Field(..., description="Quantity ordered", ge=1)
    product: Optional[dict] = None

    model_config = ConfigDict(from_attributes=True)


class Order(BaseModel):
    """
    Order domain model - represents a customer order placed with a store

    Fields:
        id: Order ID
        user: ID of the user who placed it
        store: ID of the store it goes to
        order_items: Ordered list of OrderItem IDs
        total: Sum of quantity x actual price at placement time
        status: Order status
        currency: Currency of the total
    """

    id: UUID = Field(..., description="Order ID")
    user: Optional[UUID] = Field(None, description="User ID")
    store: Optional[UUID] = Field(None, description="Store ID")
    order_items: List[UUID] = Field(default_factory=list)
    total: Decimal = Field(Decimal("0"), description="Order total snapshot", ge=0)
    status: OrderStatus = OrderStatus.PENDING
    currency: str = "UGX"
    shipping_address: Optional[str] = None
    payment_mode: Optional[str] = None
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = None

    # Populated on the order details endpoint
    items: Optional[List[OrderItem]] = None
    customer: Optional[dict] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        """Convert to dictionary with Decimal to float conversion"""
        data = self.model_dump(mode="json", exclude_none=True)
        data["total"] = float(self.total)
        return data


class PlacedItem(BaseModel):
    """One requested line of a new order"""
    id: UUID = Field(..., description="Product ID")
    quantity: int = Field(..., ge=1)


class OrderCreate(BaseModel):
    items: List[PlacedItem] = Field(..., min_length=1)
    shipping_address: Optional[str] = None
    payment_mode: Optional[str] = None


class OrderUpdate(BaseModel):
    shipping_address: Optional[str] = None
    payment_mode: Optional[str] = None

    model_config = ConfigDict(extra="forbid")
