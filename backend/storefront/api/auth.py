"""
Authentication API Endpoints
Signup, sign-in and the current user
"""
import logging

from fastapi import APIRouter, Depends, Query

from storefront.api.deps import get_password_hasher, get_settings, get_user_repository
from storefront.api.listing import envelope
from storefront.core.auth import authenticate
from storefront.core.config import Settings
from storefront.domain.user import SignIn, User, UserCreate
from storefront.repositories import UserRepository
from storefront.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_user_service(
    users: UserRepository = Depends(get_user_repository),
    hasher=Depends(get_password_hasher),
    settings: Settings = Depends(get_settings),
) -> UserService:
    return UserService(users, hasher, settings)


@router.post("/signup", status_code=201)
def signup(
    data: UserCreate,
    account_type: str = Query("customer", description="customer, store_admin, store_worker or delivery_agent"),
    service: UserService = Depends(get_user_service),
):
    """
    Register a new user

    The role is derived from ``account_type``; the response carries an
    access token so the client is signed in right away.
    """
    user, token = service.signup(data, account_type)
    return envelope(user.to_dict(), "Account created", token=token)


@router.post("/signin")
def signin(credentials: SignIn, service: UserService = Depends(get_user_service)):
    user, token = service.signin(credentials.email, credentials.password)
    return envelope(user.to_dict(), "Signed in", token=token)


@router.get("/me")
def me(user: User = Depends(authenticate)):
    return envelope(user.to_dict())
