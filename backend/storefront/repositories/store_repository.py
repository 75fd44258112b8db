"""
Store Repository - Data Access Layer for Stores

Besides the shared CRUD this covers the geographic lookup, text search,
recommendations and worker membership of stores.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from storefront.core.query import FieldSpec, ResourceSchema
from storefront.domain.store import GeoPoint, Store, StoreStatus
from storefront.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

# Mean Earth radius in miles
EARTH_RADIUS_MILES = 3963

STORE_SCHEMA = ResourceSchema(
    table="stores",
    fields={
        "id": FieldSpec(type="uuid"),
        "owner": FieldSpec(type="uuid"),
        "name": FieldSpec(),
        "email": FieldSpec(),
        "slug": FieldSpec(),
        "description": FieldSpec(),
        "phones": FieldSpec(array=True),
        "website": FieldSpec(),
        "cover_image": FieldSpec(),
        "account_number": FieldSpec(),
        "license_number": FieldSpec(),
        "landmark": FieldSpec(),
        "physical_address": FieldSpec(),
        "average_rating": FieldSpec(type="number"),
        "latitude": FieldSpec(type="number"),
        "longitude": FieldSpec(type="number"),
        "location": FieldSpec(type="number", columns=("latitude", "longitude"), filterable=False),
        "workers": FieldSpec(type="uuid", array=True),
        "status": FieldSpec(),
        "created_at": FieldSpec(type="datetime"),
        "updated_at": FieldSpec(type="datetime"),
    },
)

CREATE_COLUMNS = (
    "name", "email", "slug", "description", "phones", "website", "cover_image",
    "account_number", "license_number", "landmark", "physical_address",
    "latitude", "longitude",
)

UPDATABLE_COLUMNS = (
    "name", "email", "slug", "description", "phones", "website", "cover_image",
    "account_number", "license_number", "landmark", "physical_address", "status",
)

# Great-circle distance (haversine) between the row and (%(lat)s, %(lng)s);
# ASIN argument clamped to 1: float rounding exceeds it for antipodal points
DISTANCE_SQL = f"""
    {EARTH_RADIUS_MILES} * 2 * ASIN(LEAST(1, SQRT(
        POWER(SIN(RADIANS(latitude - %(lat)s) / 2), 2)
        + COS(RADIANS(%(lat)s)) * COS(RADIANS(latitude))
        * POWER(SIN(RADIANS(longitude - %(lng)s) / 2), 2)
    )))
"""


class StoreRepository(BaseRepository):
    """Repository for Store data access"""

    schema = STORE_SCHEMA

    @staticmethod
    def _map_row_to_store(row: dict) -> Store:
        return Store(
            id=row["id"],
            owner=row["owner"],
            name=row["name"],
            email=row.get("email"),
            slug=row.get("slug"),
            description=row.get("description"),
            phones=row.get("phones") or [],
            website=row.get("website"),
            cover_image=row.get("cover_image"),
            account_number=row.get("account_number"),
            license_number=row.get("license_number"),
            landmark=row.get("landmark"),
            physical_address=row.get("physical_address"),
            average_rating=row.get("average_rating"),
            latitude=row.get("latitude") or 0.0,
            longitude=row.get("longitude") or 0.0,
            workers=row.get("workers") or [],
            status=row.get("status") or StoreStatus.ACTIVE,
            created_at=row["created_at"],
            updated_at=row.get("updated_at"),
        )

    def _map_row(self, row: dict) -> Store:
        return self._map_row_to_store(row)

    def _serialize_row(self, row: dict, projected: bool) -> dict:
        if not projected:
            return self._map_row(row).to_dict()
        data = dict(row)
        if "latitude" in data and "longitude" in data:
            data["location"] = GeoPoint(coordinates=[data["longitude"], data["latitude"]]).model_dump()
        return data

    def create(self, store_id: UUID, owner_id: UUID, data: Dict[str, Any]) -> Store:
        """
        Insert a new store

        Args:
            store_id: Pre-generated id (the cover image is uploaded under it first)
            owner_id: ID of the STORE_ADMIN owning the store
            data: Store fields (name, email, description, ...)

        Returns:
            Created Store

        Raises:
            ClientError: name or email already taken, owner does not exist
        """
        values = {column: data[column] for column in CREATE_COLUMNS if data.get(column) is not None}
        values["id"] = store_id
        values["owner"] = owner_id
        return self._insert(values)

    def update(self, store_id: UUID, changes: Dict[str, Any]) -> Optional[Store]:
        allowed = {column: value for column, value in changes.items() if column in UPDATABLE_COLUMNS}
        if isinstance(allowed.get("status"), StoreStatus):
            allowed["status"] = allowed["status"].value
        return self._update(store_id, allowed)

    def update_location(self, store_id: UUID, lat: float, lng: float) -> Optional[Store]:
        return self._update(store_id, {"latitude": lat, "longitude": lng})

    def add_worker(self, store_id: UUID, worker_id: UUID) -> Optional[Store]:
        """
        Append a worker to the store (no-op if already a member)

        Returns:
            Updated Store or None if the store does not exist
        """
        with self.db.cursor() as cursor:
            cursor.execute(
                f"""
                UPDATE stores
                SET workers = CASE
                        WHEN %s = ANY(workers) THEN workers
                        ELSE array_append(workers, %s)
                    END,
                    updated_at = NOW()
                WHERE id = %s
                RETURNING {self.returning}
                """,
                (worker_id, worker_id, store_id),
            )
            row = cursor.fetchone()
        return self._map_row_to_store(row) if row else None

    def count_products(self, store_id: UUID) -> int:
        with self.db.cursor() as cursor:
            cursor.execute("SELECT COUNT(*) AS total FROM products WHERE store = %s", (store_id,))
            return cursor.fetchone()["total"]

    def find_nearby(self, lat: float, lng: float, distance: float) -> List[Tuple[Store, float]]:
        """
        Find stores within a radius

        Args:
            lat: Latitude of the center
            lng: Longitude of the center
            distance: Radius in miles

        Returns:
            List of (Store, distance in miles), closest first
        """
        with self.db.cursor() as cursor:
            cursor.execute(
                f"""
                SELECT * FROM (
                    SELECT {self.returning}, {DISTANCE_SQL} AS distance
                    FROM stores
                ) AS located
                WHERE distance <= %(distance)s
                ORDER BY distance ASC
                """,
                {"lat": lat, "lng": lng, "distance": distance},
            )
            rows = cursor.fetchall()

        return [(self._map_row_to_store(row), float(row["distance"])) for row in rows]

    def search(self, q: str, limit: int = 16) -> List[Store]:
        """Case-insensitive substring search over name, description and address"""
        pattern = f"%{q}%"
        with self.db.cursor() as cursor:
            cursor.execute(
                f"""
                SELECT {self.returning}
                FROM stores
                WHERE name ILIKE %s
                   OR description ILIKE %s
                   OR physical_address ILIKE %s
                ORDER BY name ASC
                LIMIT %s
                """,
                (pattern, pattern, pattern, limit),
            )
            rows = cursor.fetchall()
        return [self._map_row_to_store(row) for row in rows]

    def find_recommended(self, limit: int = 16) -> List[Store]:
        """Active stores, best rated first, then newest"""
        with self.db.cursor() as cursor:
            cursor.execute(
                f"""
                SELECT {self.returning}
                FROM stores
                WHERE status = %s
                ORDER BY average_rating DESC NULLS LAST, created_at DESC
                LIMIT %s
                """,
                (StoreStatus.ACTIVE.value, limit),
            )
            rows = cursor.fetchall()
        return [self._map_row_to_store(row) for row in rows]
