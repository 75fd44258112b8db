"""
Store Domain Model

A store belongs to a STORE_ADMIN owner, has a geolocation used by the nearby
search, and a set of worker accounts.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from storefront.domain.user import NormalizedEmail


class StoreStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class GeoPoint(BaseModel):
    """GeoJSON point; coordinates are [lng, lat]"""
    type: str = "Point"
    coordinates: List[float] = Field(default_factory=lambda: [0.0, 0.0])


class Store(BaseModel):
    """
    Store domain model

    Fields:
        id: Store ID
        owner: User ID of the STORE_ADMIN who created it
        name: Unique store name
        email: Unique contact email
        latitude/longitude: Store position, exposed as a GeoJSON ``location``
        workers: User IDs of store workers
        status: ACTIVE, INACTIVE or SUSPENDED
    """

    id: UUID = Field(..., description="Store ID")
    owner: UUID = Field(..., description="Owner user ID")
    name: str = Field(..., description="Store name")
    email: Optional[str] = Field(None, description="Contact email")
    slug: Optional[str] = None
    description: Optional[str] = None
    phones: List[str] = Field(default_factory=list)
    website: Optional[str] = None
    cover_image: Optional[str] = None
    account_number: Optional[str] = None
    license_number: Optional[str] = None
    landmark: Optional[str] = None
    physical_address: Optional[str] = None
    average_rating: Optional[float] = None
    latitude: float = 0.0
    longitude: float = 0.0
    workers: List[UUID] = Field(default_factory=list)
    status: StoreStatus = StoreStatus.ACTIVE
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def location(self) -> GeoPoint:
        return GeoPoint(coordinates=[self.longitude, self.latitude])

    def is_member(self, user_id: UUID) -> bool:
        """Owner or worker of this store"""
        return user_id == self.owner or user_id in self.workers

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json", exclude={"latitude", "longitude"})
        data["location"] = self.location.model_dump()
        return data


class StoreCreate(BaseModel):
    """Schema for creating a store (multipart form fields)"""
    name: str = Field(..., min_length=1, max_length=50)
    email: NormalizedEmail
    website: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    account_number: Optional[str] = None
    license_number: Optional[str] = None
    physical_address: Optional[str] = None
    landmark: Optional[str] = None
    phones: List[str] = Field(default_factory=list)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class StoreUpdate(BaseModel):
    """Schema for patching a store; owner and workers have their own flows"""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[NormalizedEmail] = None
    slug: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    account_number: Optional[str] = None
    license_number: Optional[str] = None
    physical_address: Optional[str] = None
    landmark: Optional[str] = None
    phones: Optional[List[str]] = None
    status: Optional[StoreStatus] = None

    model_config = ConfigDict(extra="forbid")


class StoreLocation(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class StoreSearch(BaseModel):
    q: str = Field(..., min_length=1, max_length=100)
