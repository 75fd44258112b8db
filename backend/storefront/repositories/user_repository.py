"""
User Repository - Data Access Layer for Users

The password hash lives in the users table but never leaves this module
except through ``find_credentials``, which sign-in uses.
"""
from typing import Any, Dict, Optional, Tuple

from storefront.core.query import FieldSpec, ResourceSchema
from storefront.domain.user import AccountType, Role, User
from storefront.repositories.base import BaseRepository

USER_SCHEMA = ResourceSchema(
    table="users",
    fields={
        "id": FieldSpec(type="uuid"),
        "email": FieldSpec(),
        "username": FieldSpec(),
        "first_name": FieldSpec(),
        "last_name": FieldSpec(),
        "phones": FieldSpec(array=True),
        "avatar": FieldSpec(filterable=False),
        "role": FieldSpec(),
        "account_type": FieldSpec(),
        "city": FieldSpec(),
        "created_at": FieldSpec(type="datetime"),
        "updated_at": FieldSpec(type="datetime"),
        "password": FieldSpec(),
    },
    hidden=frozenset({"password"}),
)

# Profile fields written at creation; role, account type and password have their own flows
PROFILE_COLUMNS = ("email", "username", "first_name", "last_name", "phones", "avatar", "city")


class UserRepository(BaseRepository):
    """Repository for User data access"""

    schema = USER_SCHEMA
    json_columns = ("avatar",)

    @staticmethod
    def _map_row_to_user(row: dict) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            username=row["username"],
            first_name=row.get("first_name"),
            last_name=row.get("last_name"),
            phones=row.get("phones") or [],
            avatar=row.get("avatar"),
            role=row["role"],
            account_type=row.get("account_type"),
            city=row.get("city"),
            created_at=row["created_at"],
            updated_at=row.get("updated_at"),
        )

    def _map_row(self, row: dict) -> User:
        return self._map_row_to_user(row)

    def find_by_email(self, email: str) -> Optional[User]:
        with self.db.cursor() as cursor:
            cursor.execute(
                f"SELECT {self.returning} FROM users WHERE LOWER(email) = LOWER(%s)",
                (email,),
            )
            row = cursor.fetchone()
        return self._map_row_to_user(row) if row else None

    def find_credentials(self, email: str) -> Optional[Tuple[User, str]]:
        """
        Find a user together with its password hash

        Args:
            email: Email the user signs in with (case-insensitive)

        Returns:
            (User, password hash) or None if no user has that email
        """
        with self.db.cursor() as cursor:
            cursor.execute(
                f"SELECT {self.returning}, password FROM users WHERE LOWER(email) = LOWER(%s)",
                (email,),
            )
            row = cursor.fetchone()

        if not row:
            return None
        return self._map_row_to_user(row), row["password"]

    def create(
        self,
        data: Dict[str, Any],
        password_hash: str,
        role: Role,
        account_type: Optional[AccountType] = None
    ) -> User:
        """
        Insert a new user

        Args:
            data: Profile fields (email, username, first_name, ...)
            password_hash: bcrypt hash of the password
            role: Role derived from the account type
            account_type: Account type chosen at signup

        Returns:
            Created User

        Raises:
            ClientError: email or username already taken
        """
        values = {column: data[column] for column in PROFILE_COLUMNS if data.get(column) is not None}
        if data.get("id"):
            values["id"] = data["id"]
        values["password"] = password_hash
        values["role"] = Role(role).value
        if account_type is not None:
            values["account_type"] = AccountType(account_type).value
        return self._insert(values)

    def delete_all(self) -> int:
        """
        Delete every user

        Returns:
            Number of deleted users
        """
        with self.db.cursor() as cursor:
            cursor.execute("DELETE FROM users")
            return cursor.rowcount
