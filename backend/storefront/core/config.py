"""
Centralized application configuration

Settings are read once from the environment (and an optional .env file) when
the application is created. Missing required variables raise a validation
error at startup instead of failing on the first request.
"""
import json
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration"""

    # API Settings
    API_TITLE: str = "Storefront API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Multi-tenant storefront marketplace backend"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str
    DB_POOL_MIN: int = 1
    DB_POOL_MAX: int = 10

    # Tokens and passwords
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60 * 24
    BCRYPT_ROUNDS: int = 10

    # Media host (Cloudinary upload API)
    MEDIA_CLOUD_NAME: str
    MEDIA_API_KEY: str
    MEDIA_API_SECRET: str
    MEDIA_ROOT_FOLDER: str = "medcab"
    MEDIA_UPLOAD_URL: str = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"
    MEDIA_TIMEOUT_SECONDS: float = 30.0

    # Uploads staged on local disk before being pushed to the media host
    UPLOAD_SCRATCH_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 16 * 1024 * 1024
    MAX_PRODUCT_IMAGES: int = 5

    # Listing and orders
    DEFAULT_PAGE_LIMIT: int = 16
    DEFAULT_CURRENCY: str = "UGX"

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://yourdomain.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        # Try JSON parse first (for array format)
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def media_upload_url(self) -> str:
        return self.MEDIA_UPLOAD_URL.format(cloud_name=self.MEDIA_CLOUD_NAME)

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings once per process"""
    return Settings()
