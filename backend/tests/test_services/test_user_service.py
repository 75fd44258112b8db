"""
Unit tests for UserService (signup / sign-in)
"""
from unittest.mock import MagicMock

import pytest

from storefront.core.auth import PasswordHasher, verify_token
from storefront.core.errors import ClientError
from storefront.domain.user import AccountType, Role, UserCreate
from storefront.repositories.user_repository import UserRepository
from storefront.services.user_service import UserService


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def users():
    return MagicMock()


@pytest.fixture
def service(users, hasher, settings):
    return UserService(users, hasher, settings)


class TestSignup:

    def test_role_is_derived_from_account_type(self, service, users, make_user_row, settings):
        users.find_by_email.return_value = None
        users.create.return_value = UserRepository._map_row_to_user(
            make_user_row(role="STORE_ADMIN", account_type="store_admin")
        )
        data = UserCreate(email="jane@example.com", username="jane", password="secret1")

        user, token = service.signup(data, "store_admin")

        kwargs = users.create.call_args.kwargs
        assert kwargs["role"] == Role.STORE_ADMIN
        assert kwargs["account_type"] == AccountType.STORE_ADMIN
        assert kwargs["password_hash"].startswith("$2")
        assert verify_token(token, settings).claims["id"] == str(user.id)

    def test_registered_email_is_rejected(self, service, users, make_user_row):
        users.find_by_email.return_value = UserRepository._map_row_to_user(make_user_row())
        data = UserCreate(email="JANE@example.com", username="jane2", password="secret1")

        with pytest.raises(ClientError):
            service.signup(data, "customer")
        users.find_by_email.assert_called_once_with("jane@example.com")
        users.create.assert_not_called()

    def test_unknown_account_type(self, service, users):
        data = UserCreate(email="jane@example.com", username="jane", password="secret1")

        with pytest.raises(ClientError):
            service.signup(data, "superuser")
        users.create.assert_not_called()


class TestSignin:

    def test_wrong_password_is_a_client_error(self, service, users, hasher, make_user_row):
        user = UserRepository._map_row_to_user(make_user_row())
        users.find_credentials.return_value = (user, hasher.hash("right-password"))

        with pytest.raises(ClientError) as exc:
            service.signin("jane@example.com", "wrong-password")

        assert exc.value.status_code == 400

    def test_unknown_email_gets_the_same_message(self, service, users):
        users.find_credentials.return_value = None

        with pytest.raises(ClientError) as exc:
            service.signin("nobody@example.com", "whatever")

        assert exc.value.message == "Invalid email or password"

    def test_correct_password_issues_token(self, service, users, hasher, make_user_row, settings):
        user = UserRepository._map_row_to_user(make_user_row())
        users.find_credentials.return_value = (user, hasher.hash("right-password"))

        signed_in, token = service.signin("jane@example.com", "right-password")

        claims = verify_token(token, settings).claims
        assert signed_in.id == user.id
        assert claims["email"] == "jane@example.com"
