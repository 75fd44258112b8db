"""
Unit tests for ProductService
"""
import asyncio
import io
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import UploadFile

from storefront.core.errors import ClientError, ForbiddenError, NotFoundError
from storefront.core.media import MediaAsset
from storefront.domain.product import ProductCreate, ProductUpdate
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.store_repository import StoreRepository
from storefront.repositories.user_repository import UserRepository
from storefront.services.product_service import ProductService


@pytest.fixture
def repos():
    return {"products": MagicMock(), "stores": MagicMock(), "categories": MagicMock()}


@pytest.fixture
def media():
    host = MagicMock()
    host.upload_file = AsyncMock(side_effect=lambda upload, folder, public_id: MediaAsset(
        id=f"medcab/{folder}/{public_id}", url=f"https://cdn/{public_id}.jpg"
    ))
    return host


@pytest.fixture
def service(repos, media):
    return ProductService(repos["products"], repos["stores"], repos["categories"], media)


@pytest.fixture
def worker(make_user_row):
    return UserRepository._map_row_to_user(make_user_row(role="STORE_WORKER", account_type="store_worker"))


@pytest.fixture
def store(repos, worker, make_store_row):
    store = StoreRepository._map_row_to_store(make_store_row(workers=[worker.id]))
    repos["stores"].find_by_id.return_value = store
    return store


def image(name="photo.jpg"):
    return UploadFile(file=io.BytesIO(b"img"), filename=name)


class TestRegisterProduct:

    def test_more_than_five_images_is_rejected(self, service, repos, media, worker, store):
        data = ProductCreate(name="Paracetamol", store=store.id)

        with pytest.raises(ClientError):
            asyncio.run(service.register_product(data, worker, [image() for _ in range(6)]))

        media.upload_file.assert_not_called()
        repos["products"].create.assert_not_called()

    def test_images_are_uploaded_under_the_new_product_id(self, service, repos, media, worker, store, make_product_row):
        repos["categories"].find_existing_ids.return_value = set()
        repos["products"].create.return_value = ProductRepository._map_row_to_product(make_product_row(store=store.id))
        data = ProductCreate(name="Paracetamol", store=store.id)

        asyncio.run(service.register_product(data, worker, [image("a.jpg"), image("b.jpg")]))

        kwargs = repos["products"].create.call_args.kwargs
        product_id = kwargs["product_id"]
        assert [img["url"] for img in kwargs["images"]] == [
            f"https://cdn/{product_id}_0.jpg",
            f"https://cdn/{product_id}_1.jpg",
        ]

    def test_non_member_is_forbidden(self, service, repos, store, make_user_row):
        outsider = UserRepository._map_row_to_user(make_user_row(role="STORE_WORKER"))
        data = ProductCreate(name="Paracetamol", store=store.id)

        with pytest.raises(ForbiddenError):
            asyncio.run(service.register_product(data, outsider))
        repos["products"].create.assert_not_called()


class TestCreateProduct:

    def test_missing_categories_are_not_found(self, service, repos, worker, store):
        known, missing = uuid.uuid4(), uuid.uuid4()
        repos["categories"].find_existing_ids.return_value = {known}
        data = ProductCreate(name="Paracetamol", store=store.id, categories=[known, missing])

        with pytest.raises(NotFoundError) as exc:
            service.create_product(data, worker)

        assert str(missing) in exc.value.message
        repos["products"].create.assert_not_called()

    def test_admin_bypasses_membership(self, service, repos, store, make_user_row, make_product_row):
        admin = UserRepository._map_row_to_user(make_user_row(role="ADMIN", account_type=None))
        repos["categories"].find_existing_ids.return_value = set()
        repos["products"].create.return_value = ProductRepository._map_row_to_product(make_product_row(store=store.id))

        product = service.create_product(ProductCreate(name="Paracetamol", store=store.id), admin)

        assert product.store == store.id

    def test_unknown_store(self, service, repos, worker):
        repos["stores"].find_by_id.return_value = None

        with pytest.raises(NotFoundError):
            service.create_product(ProductCreate(name="Paracetamol", store=uuid.uuid4()), worker)


class TestMaintenance:

    def test_update_passes_only_the_fields_sent(self, service, repos, worker, store, make_product_row):
        product = ProductRepository._map_row_to_product(make_product_row(store=store.id))
        repos["products"].find_by_id.return_value = product

        service.update_product(product.id, ProductUpdate(name="Panadol Extra"), worker)

        repos["products"].update.assert_called_once_with(product.id, {"name": "Panadol Extra"})

    def test_unknown_product(self, service, repos, worker):
        repos["products"].find_by_id.return_value = None

        with pytest.raises(NotFoundError):
            service.delete_product(uuid.uuid4(), worker)
        repos["products"].delete.assert_not_called()

    def test_set_categories_checks_they_exist(self, service, repos, worker, store, make_product_row):
        product = ProductRepository._map_row_to_product(make_product_row(store=store.id))
        repos["products"].find_by_id.return_value = product
        repos["categories"].find_existing_ids.return_value = set()

        with pytest.raises(NotFoundError):
            service.set_categories(product.id, [uuid.uuid4()], worker)
        repos["products"].set_categories.assert_not_called()
