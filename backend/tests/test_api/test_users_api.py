"""
Tests for the admin-only user endpoints
"""
from unittest.mock import MagicMock

import pytest

from storefront.api.deps import get_user_repository
from storefront.core.query import Page
from storefront.repositories.user_repository import USER_SCHEMA, UserRepository


@pytest.fixture
def users(app):
    repository = MagicMock()
    repository.schema = USER_SCHEMA
    repository.table = "users"
    app.dependency_overrides[get_user_repository] = lambda: repository
    yield repository
    app.dependency_overrides.clear()


def signed_in(users, make_user_row, role):
    user = UserRepository._map_row_to_user(make_user_row(role=role))
    users.find_by_id.return_value = user
    return user


class TestListUsers:

    def test_customer_is_forbidden(self, client, users, auth_header, make_user_row):
        user = signed_in(users, make_user_row, "CUSTOMER")

        response = client.get("/api/users", headers=auth_header(user.id))

        assert response.status_code == 403
        users.find_page.assert_not_called()

    def test_admin_gets_the_listing(self, client, users, auth_header, make_user_row):
        admin = signed_in(users, make_user_row, "ADMIN")
        users.find_page.return_value = Page(items=[{"id": str(admin.id)}], total=1, page=1, limit=16)

        response = client.get("/api/users", headers=auth_header(admin.id), params={"role": "ADMIN"})

        assert response.status_code == 200
        assert response.json()["total"] == 1
        query = users.find_page.call_args.args[0]
        assert [(f.field, f.value) for f in query.filters] == [("role", "ADMIN")]

    def test_password_cannot_be_filtered(self, client, users, auth_header, make_user_row):
        admin = signed_in(users, make_user_row, "ADMIN")

        response = client.get("/api/users", headers=auth_header(admin.id), params={"password": "x"})

        assert response.status_code == 400


class TestDeleteUsers:

    def test_delete_all_reports_count(self, client, users, auth_header, make_user_row):
        admin = signed_in(users, make_user_row, "ADMIN")
        users.delete_all.return_value = 7

        response = client.delete("/api/users", headers=auth_header(admin.id))

        assert response.status_code == 200
        assert response.json()["count"] == 7

    def test_delete_unknown_user(self, client, users, auth_header, make_user_row):
        admin = signed_in(users, make_user_row, "ADMIN")
        users.delete.return_value = None

        response = client.delete(f"/api/users/{admin.id}", headers=auth_header(admin.id))

        assert response.status_code == 404
