"""
User Domain Model

Users are customers, store staff, delivery agents and platform admins.
The role of a user is derived from the account type it signed up with and is
never written directly by clients.
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field

from storefront.core.errors import ClientError

# Emails are unique case-insensitively; they are stored and compared lowercased
NormalizedEmail = Annotated[EmailStr, AfterValidator(lambda value: value.lower())]


class Role(str, Enum):
    CUSTOMER = "CUSTOMER"
    STORE_ADMIN = "STORE_ADMIN"
    STORE_WORKER = "STORE_WORKER"
    DELIVERY_AGENT = "DELIVERY_AGENT"
    # Platform operators; never derivable from a signup
    ADMIN = "ADMIN"


class AccountType(str, Enum):
    CUSTOMER = "customer"
    STORE_ADMIN = "store_admin"
    STORE_WORKER = "store_worker"
    DELIVERY_AGENT = "delivery_agent"


def derive_role(account_type) -> Role:
    """
    Map an account type onto the role it grants

    Args:
        account_type: AccountType or its string value, case-insensitive

    Returns:
        Role whose value is the uppercased account type

    Raises:
        ClientError: unknown account type
    """
    raw = account_type.value if isinstance(account_type, AccountType) else str(account_type or "")
    try:
        account = AccountType(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(a.value for a in AccountType)
        raise ClientError(f"Invalid account_type '{raw}'. Expected one of: {allowed}")
    return Role(account.value.upper())


class Avatar(BaseModel):
    id: Optional[str] = None
    url: Optional[str] = None


class User(BaseModel):
    """
    User domain model (password hash is never part of it)

    Fields:
        id: User ID
        email: Unique email address
        username: Unique handle
        role: Role derived from account_type at creation
        account_type: Account type chosen at signup
        first_name, last_name, phones, city: Profile
        avatar: Uploaded avatar {id, url}
    """

    id: UUID = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    username: str = Field(..., description="Username")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phones: List[str] = Field(default_factory=list)
    avatar: Optional[Avatar] = None
    role: Role = Field(Role.CUSTOMER, description="Role derived from account type")
    account_type: Optional[AccountType] = None
    city: Optional[str] = None
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class UserCreate(BaseModel):
    """Schema for signing up a new user"""
    email: NormalizedEmail
    username: str = Field(..., min_length=1, max_length=30)
    password: str = Field(..., min_length=6)
    phone: Optional[str] = Field(None, max_length=13)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    city: Optional[str] = None


class SignIn(BaseModel):
    email: NormalizedEmail
    password: str
