"""
User Service
Signup and sign-in

The role of a new user comes from ``derive_role(account_type)``; clients
never send a role.
"""
import logging
from typing import Tuple

from storefront.core.auth import PasswordHasher, issue_token
from storefront.core.config import Settings
from storefront.core.errors import ClientError
from storefront.domain.user import AccountType, User, UserCreate, derive_role
from storefront.repositories import UserRepository

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class UserService:

    def __init__(self, users: UserRepository, hasher: PasswordHasher, settings: Settings):
        self.users = users
        self.hasher = hasher
        self.settings = settings

    def _token_for(self, user: User) -> str:
        return issue_token(
            user.id,
            self.settings,
            claims={"username": user.username, "email": user.email, "role": user.role.value},
        )

    def signup(self, data: UserCreate, account_type: str) -> Tuple[User, str]:
        """
        Register a user and sign it in

        Args:
            data: Validated signup fields
            account_type: customer, store_admin, store_worker or delivery_agent

        Returns:
            (created User, access token)

        Raises:
            ClientError: unknown account type, email or username taken
        """
        role = derive_role(account_type)
        if self.users.find_by_email(data.email):
            raise ClientError(f"Email {data.email} is already registered")

        profile = data.model_dump(exclude={"password", "phone"}, exclude_none=True)
        if data.phone:
            profile["phones"] = [data.phone]

        user = self.users.create(
            profile,
            password_hash=self.hasher.hash(data.password),
            role=role,
            account_type=AccountType(role.value.lower()),
        )
        logger.info(f"User {user.id} signed up as {role.value}")
        return user, self._token_for(user)

    def signin(self, email: str, password: str) -> Tuple[User, str]:
        """
        Check credentials and issue a token

        Raises:
            ClientError: unknown email or wrong password (same message for both)
        """
        found = self.users.find_credentials(email)
        if not found:
            raise ClientError(INVALID_CREDENTIALS)

        user, password_hash = found
        if not self.hasher.verify(password, password_hash):
            logger.info(f"Failed sign-in for {email}")
            raise ClientError(INVALID_CREDENTIALS)

        return user, self._token_for(user)
