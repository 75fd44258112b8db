"""
Request-scoped access to the process-wide resources

Settings, the database pool, the media host and the password hasher are
created once and kept on ``app.state``. ``authenticate`` builds on the
settings and user lookup providers; ``storefront.api.deps`` re-exports them
for the routers.
"""
from fastapi import Depends, Request

from storefront.core.config import Settings
from storefront.core.database import Database
from storefront.core.media import MediaHost
from storefront.repositories.user_repository import UserRepository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_media_host(request: Request) -> MediaHost:
    return request.app.state.media


def get_password_hasher(request: Request):
    """PasswordHasher built from BCRYPT_ROUNDS at startup"""
    return request.app.state.hasher


def get_user_repository(db: Database = Depends(get_database)) -> UserRepository:
    return UserRepository(db)
