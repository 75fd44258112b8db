"""
Order placement and cascade delete against a real PostgreSQL

Set TEST_DATABASE_URL to a disposable database to run:
    TEST_DATABASE_URL=postgresql://... pytest -m integration
"""
import os
import uuid
from decimal import Decimal
from pathlib import Path

import pytest

from storefront.core.config import Settings
from storefront.core.database import Database
from storefront.domain.order import OrderStatus, PlacedItem
from storefront.domain.user import AccountType, Role
from storefront.repositories import OrderRepository, ProductRepository, StoreRepository, UserRepository
from storefront.services.order_service import OrderService

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not os.getenv("TEST_DATABASE_URL"), reason="TEST_DATABASE_URL not set"),
]

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "storefront" / "db" / "schema.sql"


@pytest.fixture(scope="module")
def db():
    settings = Settings(
        _env_file=None,
        DATABASE_URL=os.environ["TEST_DATABASE_URL"],
        DB_POOL_MAX=2,
        JWT_SECRET_KEY="integration",
        MEDIA_CLOUD_NAME="unused",
        MEDIA_API_KEY="unused",
        MEDIA_API_SECRET="unused",
    )
    database = Database(settings)
    with database.cursor() as cursor:
        cursor.execute(SCHEMA_PATH.read_text())
    yield database
    database.close()


@pytest.fixture
def marketplace(db):
    """A store admin, a customer, a store and two products; removed afterwards"""
    users = UserRepository(db)
    stores = StoreRepository(db)
    products = ProductRepository(db)
    tag = uuid.uuid4().hex[:8]

    owner = users.create(
        {"email": f"owner-{tag}@example.com", "username": f"owner{tag}"},
        password_hash="x", role=Role.STORE_ADMIN, account_type=AccountType.STORE_ADMIN,
    )
    customer = users.create(
        {"email": f"buyer-{tag}@example.com", "username": f"buyer{tag}"},
        password_hash="x", role=Role.CUSTOMER, account_type=AccountType.CUSTOMER,
    )
    store = stores.create(uuid.uuid4(), owner.id, {"name": f"Store {tag}", "email": f"store-{tag}@example.com"})
    cheap = products.create({"name": "Plasters", "store": store.id, "pricing": {"price": Decimal("10")}})
    dear = products.create({"name": "Thermometer", "store": store.id, "pricing": {"price": Decimal("20")}})

    yield {"users": users, "stores": stores, "products": products, "owner": owner,
           "customer": customer, "store": store, "cheap": cheap, "dear": dear}

    products.delete(cheap.id)
    products.delete(dear.id)
    stores.delete(store.id)
    users.delete(customer.id)
    users.delete(owner.id)


def test_place_then_delete_order(db, marketplace):
    orders = OrderRepository(db)
    service = OrderService(orders, marketplace["products"], marketplace["stores"], marketplace["users"])

    order = service.place_order(
        marketplace["customer"],
        marketplace["store"].id,
        [PlacedItem(id=marketplace["cheap"].id, quantity=2), PlacedItem(id=marketplace["dear"].id, quantity=1)],
    )

    assert order.status == OrderStatus.PENDING
    assert order.total == Decimal("40")
    assert len(orders.find_items(order.order_items)) == 2

    service.delete_order(order.id)

    assert orders.find_by_id(order.id) is None
    assert orders.find_items(order.order_items) == []
