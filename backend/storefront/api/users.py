"""
Users API Endpoints
Platform administration of user accounts
"""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Request

from storefront.api.deps import get_settings, get_user_repository
from storefront.api.listing import envelope, paginated_list
from storefront.core.auth import authorize
from storefront.core.config import Settings
from storefront.core.errors import NotFoundError
from storefront.domain.user import User
from storefront.repositories import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()

admin_only = authorize(["admin"])


@router.get("")
def list_users(
    request: Request,
    admin: User = Depends(admin_only),
    users: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_settings),
):
    """List users with filters, projection, sorting and pagination"""
    return paginated_list(users, request, settings)


@router.delete("/{user_id}")
def delete_user(
    user_id: UUID,
    admin: User = Depends(admin_only),
    users: UserRepository = Depends(get_user_repository),
):
    user = users.delete(user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    logger.info(f"Admin {admin.id} deleted user {user_id}")
    return envelope(user.to_dict(), "User deleted")


@router.delete("")
def delete_users(
    admin: User = Depends(admin_only),
    users: UserRepository = Depends(get_user_repository),
):
    deleted = users.delete_all()
    logger.warning(f"Admin {admin.id} deleted all {deleted} users")
    return envelope(message=f"{deleted} users deleted", count=deleted)
